"""
Pydantic schemas for scored artifacts and leaderboards.
"""

from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from labsim.schemas.base import OwnerScopedRead


class ArtifactRead(OwnerScopedRead):
    job_id: UUID
    blueprint_id: str
    model_type: str
    name: str
    version: int
    score: int
    trained_at_ms: int
    visibility: str


class VisibilityUpdate(BaseModel):
    visibility: Literal["public", "private"]


class BlueprintAggregate(BaseModel):
    blueprint_id: str
    model_type: str
    latest_version: ArtifactRead
    best_version: ArtifactRead
    version_count: int
    public_count: int
    all_versions: List[ArtifactRead]


class ModelLeaderboardRow(BaseModel):
    rank: int
    owner_id: str
    lab_name: Optional[str] = None
    blueprint_id: str
    model_name: str
    version: int
    score: int
    is_current_player: bool = False


class LabLeaderboardRow(BaseModel):
    rank: int
    owner_id: str
    lab_name: str
    level: int
    lab_score: int
    best_public_scores: Dict[str, int]
    is_current_player: bool = False

    model_config = ConfigDict(from_attributes=True)


class ModelLeaderboardSlice(BaseModel):
    rows: List[ModelLeaderboardRow]
    my_rank: Optional[int] = None
    has_public_model: bool


class LabLeaderboardSlice(BaseModel):
    rows: List[LabLeaderboardRow]
    my_rank: Optional[int] = None
