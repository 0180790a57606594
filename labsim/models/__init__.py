"""
Models package.

Import all models here so they are registered with SQLAlchemy.
This file also makes it easy to import models from one place.
"""

from labsim.models.lab import Lab, OwnerProgression, ResourcePool
from labsim.models.job import Job, JobCooldown, JobStatus
from labsim.models.research import OwnerUnlocks, ResearchPurchase
from labsim.models.artifact import ScoredArtifact, Visibility
from labsim.models.notification import Notification, NotificationKind
from labsim.models.scheduling import CallbackStatus, ScheduledCallback, TimeWarpSetting

# Export all models
__all__ = [
    "Lab",
    "OwnerProgression",
    "ResourcePool",
    "Job",
    "JobCooldown",
    "JobStatus",
    "OwnerUnlocks",
    "ResearchPurchase",
    "ScoredArtifact",
    "Visibility",
    "Notification",
    "NotificationKind",
    "TimeWarpSetting",
    "CallbackStatus",
    "ScheduledCallback",
]
