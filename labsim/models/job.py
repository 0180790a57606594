"""
Job models.

A job is one schedulable unit of player work. Rows are never deleted; the
base values are snapshotted at creation so completion rewards are always
recomputed from what the player originally requested.
"""

import uuid
from typing import Optional

from sqlalchemy import JSON, BigInteger, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from labsim.models.base_model import OwnerScopedModel


class JobStatus:
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    ALL = [QUEUED, IN_PROGRESS, COMPLETED]


class Job(OwnerScopedModel):
    __tablename__ = "jobs"

    content_id: Mapped[str] = mapped_column(String(100), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)  # training|contract|hire|research
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=JobStatus.QUEUED)
    # Per-owner creation order, drives FIFO promotion
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)

    # Snapshot of catalog base values
    base_duration_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    base_cost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cost_resource: Mapped[str] = mapped_column(String(30), nullable=False, default="cash")
    charged_cost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    compute_cost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    base_reward_money: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    base_reward_rp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    base_reward_xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Effective-time timestamps (epoch ms); completes_at only while/after in_progress
    started_at_ms: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    completes_at_ms: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    # Real time of request
    created_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    completed_at_ms: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    rewards: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    artifact_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)

    __table_args__ = (
        UniqueConstraint("owner_id", "sequence", name="uq_jobs_owner_sequence"),
        Index("ix_jobs_owner_status", "owner_id", "status"),
    )


class JobCooldown(OwnerScopedModel):
    """Single availability timestamp per owner per job id."""

    __tablename__ = "job_cooldowns"

    content_id: Mapped[str] = mapped_column(String(100), nullable=False)
    available_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (UniqueConstraint("owner_id", "content_id", name="uq_job_cooldowns_owner_content"),)
