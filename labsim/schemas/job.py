"""
Pydantic schemas for jobs and the job board.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from labsim.schemas.base import OwnerScopedRead


class JobStart(BaseModel):
    job_id: str = Field(..., min_length=1, max_length=100)


class JobRewardsRead(BaseModel):
    cash: int = 0
    research_points: int = 0
    experience: int = 0


class JobRead(OwnerScopedRead):
    content_id: str
    kind: str
    status: str
    sequence: int
    charged_cost: int
    cost_resource: str
    started_at_ms: Optional[int] = None
    completes_at_ms: Optional[int] = None
    created_at_ms: int
    completed_at_ms: Optional[int] = None
    rewards: Optional[JobRewardsRead] = None


class StartJobResult(BaseModel):
    """Outcome of an admitted start request."""

    job_id: UUID
    content_id: str
    status: str
    position: Optional[int] = None
    effective_cost: int
    cost_resource: str
    started_at_ms: Optional[int] = None
    completes_at_ms: Optional[int] = None


class CompletionResult(BaseModel):
    job_id: UUID
    outcome: str  # completed|already_completed|deferred|missing
    rewards: Optional[JobRewardsRead] = None
    levels_gained: int = 0
    new_level: Optional[int] = None
    artifact_id: Optional[UUID] = None
    promoted_job_id: Optional[UUID] = None


class ActiveJobsRead(BaseModel):
    jobs: List[JobRead]
    effective_now_ms: int


class ActiveHireRead(BaseModel):
    job_id: UUID
    content_id: str
    name: str
    stat: str
    bonus: int
    completes_at_ms: int
    remaining_ms: int


class JobBoardEntry(BaseModel):
    """One catalog job as seen by a particular owner."""

    id: str
    name: str
    kind: str
    is_unlocked: bool
    lock_reason: Optional[str] = None
    meets_level: bool
    can_afford: bool
    base_cost: int
    effective_cost: int
    base_duration_ms: int
    effective_duration_ms: int
    compute_cost: int
    reward_cash: int
    reward_research_points: int
    reward_experience: int
    cooldown_remaining_ms: int = 0

    model_config = ConfigDict(from_attributes=True)
