"""
Pydantic schemas for labs and owner state.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from labsim.core.catalog import FounderType
from labsim.schemas.base import OwnerScopedRead


class LabCreate(BaseModel):
    owner_id: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=120)
    founder_type: FounderType


class LabRead(OwnerScopedRead):
    name: str
    founder_type: str


class ProgressionRead(BaseModel):
    level: int
    experience: int
    upgrade_points: int
    queue_rank: int
    staff_rank: int
    compute_rank: int
    speed_rank: int
    money_multiplier_rank: int

    model_config = ConfigDict(from_attributes=True)


class ResourcePoolRead(BaseModel):
    cash: int
    research_points: int
    staff_count: int
    speed_bonus: float
    money_bonus: float

    model_config = ConfigDict(from_attributes=True)


class UnlocksRead(BaseModel):
    blueprint_ids: List[str]
    job_ids: List[str]
    system_flags: List[str]


class CapacityRead(BaseModel):
    parallel_capacity: int
    in_flight: int
    queue_capacity: int
    queued: int
    compute_capacity: int
    compute_used: int
    staff_capacity: int
    staff_used: int


class LabStateRead(BaseModel):
    lab: LabRead
    progression: ProgressionRead
    resources: ResourcePoolRead
    unlocks: UnlocksRead
    capacity: CapacityRead
    effective_now_ms: int
