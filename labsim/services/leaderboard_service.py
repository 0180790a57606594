"""
Leaderboard aggregation.

Scored artifacts are grouped per blueprint for the owner's model view and
ranked across owners for the public leaderboards. Only public artifacts are
ever visible to anyone but their owner.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog, ModelType
from labsim.errors import NotFound
from labsim.models.artifact import ScoredArtifact, Visibility
from labsim.repositories.artifact_repository import ArtifactRepository
from labsim.repositories.lab_repository import LabRepository
from labsim.schemas.leaderboard import (
    ArtifactRead,
    BlueprintAggregate,
    LabLeaderboardRow,
    LabLeaderboardSlice,
    ModelLeaderboardRow,
    ModelLeaderboardSlice,
)

logger = logging.getLogger(__name__)

NEIGHBOR_RADIUS = 20
UPGRADE_SCORE_PER_RANK = 20
LEVEL_SCORE = 100

T = TypeVar("T")


@dataclass
class ModelAggregate:
    blueprint_id: str
    model_type: str
    latest: ScoredArtifact
    best: ScoredArtifact
    version_count: int
    public_count: int
    versions: List[ScoredArtifact] = field(default_factory=list)


def _best(artifacts: Iterable[ScoredArtifact]) -> ScoredArtifact:
    # Highest score; ties go to the earliest version
    return min(artifacts, key=lambda artifact: (-artifact.score, artifact.version))


def aggregate(artifacts: Iterable[ScoredArtifact]) -> List[ModelAggregate]:
    """Group one owner's artifacts per blueprint: latest, best, and counts."""
    groups: Dict[str, List[ScoredArtifact]] = {}
    for artifact in artifacts:
        groups.setdefault(artifact.blueprint_id, []).append(artifact)

    aggregates = []
    for blueprint_id, versions in groups.items():
        versions.sort(key=lambda artifact: artifact.version)
        aggregates.append(
            ModelAggregate(
                blueprint_id=blueprint_id,
                model_type=versions[-1].model_type,
                latest=versions[-1],
                best=_best(versions),
                version_count=len(versions),
                public_count=sum(1 for artifact in versions if artifact.visibility == Visibility.PUBLIC),
                versions=versions,
            )
        )
    aggregates.sort(key=lambda item: item.latest.trained_at_ms, reverse=True)
    return aggregates


def dense_ranks(scores: Sequence[int]) -> List[int]:
    """Dense ranks for scores already sorted high to low: 90, 80, 80, 70 -> 1, 2, 2, 3."""
    ranks = []
    previous = None
    rank = 0
    for score in scores:
        if score != previous:
            rank += 1
            previous = score
        ranks.append(rank)
    return ranks


def best_per_owner(artifacts: Iterable[ScoredArtifact]) -> List[ScoredArtifact]:
    """Each owner's best public artifact, sorted best first."""
    by_owner: Dict[str, List[ScoredArtifact]] = {}
    for artifact in artifacts:
        if artifact.visibility != Visibility.PUBLIC:
            continue
        by_owner.setdefault(artifact.owner_id, []).append(artifact)
    best = [_best(owned) for owned in by_owner.values()]
    best.sort(key=lambda artifact: (-artifact.score, artifact.trained_at_ms, artifact.owner_id))
    return best


def lab_score(
    level: int,
    best_public_scores: Dict[str, int],
    queue_rank: int,
    staff_rank: int,
    compute_rank: int,
) -> int:
    model_score = sum(best_public_scores.get(model_type.value, 0) for model_type in ModelType)
    upgrade_score = (queue_rank + staff_rank + compute_rank) * UPGRADE_SCORE_PER_RANK
    return level * LEVEL_SCORE + model_score + upgrade_score


def best_public_scores(artifacts: Iterable[ScoredArtifact]) -> Dict[str, int]:
    scores: Dict[str, int] = {}
    for artifact in artifacts:
        if artifact.visibility != Visibility.PUBLIC:
            continue
        scores[artifact.model_type] = max(scores.get(artifact.model_type, 0), artifact.score)
    return scores


def neighbor_slice(rows: Sequence[T], index: Optional[int], radius: int = NEIGHBOR_RADIUS) -> List[T]:
    """Up to ``radius`` rows above and below ``index``; the top rows when index is None."""
    if index is None:
        return list(rows[: radius * 2 + 1])
    start = max(0, index - radius)
    return list(rows[start : index + radius + 1])


class LeaderboardService:
    def __init__(self, db: AsyncSession, catalog: ContentCatalog):
        self.db = db
        self.catalog = catalog
        self.artifacts = ArtifactRepository(db)
        self.labs = LabRepository(db)

    async def owner_models(self, owner_id: str, viewer_id: Optional[str] = None) -> List[BlueprintAggregate]:
        """Per-blueprint aggregates; other viewers only see public versions."""
        public_only = viewer_id is not None and viewer_id != owner_id
        artifacts = await self.artifacts.list_for_owner(owner_id, public_only=public_only)
        return [
            BlueprintAggregate(
                blueprint_id=item.blueprint_id,
                model_type=item.model_type,
                latest_version=ArtifactRead.model_validate(item.latest),
                best_version=ArtifactRead.model_validate(item.best),
                version_count=item.version_count,
                public_count=item.public_count,
                all_versions=[ArtifactRead.model_validate(version) for version in item.versions],
            )
            for item in aggregate(artifacts)
        ]

    async def set_visibility(self, owner_id: str, artifact_id: UUID, visibility: str) -> ScoredArtifact:
        if visibility not in (Visibility.PUBLIC, Visibility.PRIVATE):
            raise ValueError(f"Unknown visibility: {visibility}")
        artifact = await self.artifacts.get(artifact_id)
        if artifact is None or artifact.owner_id != owner_id:
            raise NotFound(f"Model {artifact_id} not found")
        artifact.visibility = visibility
        await self.db.flush()
        logger.info(f"Owner {owner_id} set model {artifact_id} {visibility}")
        return artifact

    async def model_leaderboard(self, blueprint_id: str, viewer_id: Optional[str] = None) -> ModelLeaderboardSlice:
        if self.catalog.get_blueprint(blueprint_id) is None:
            raise NotFound(f"Unknown blueprint: {blueprint_id}")

        best = best_per_owner(await self.artifacts.list_public(blueprint_id))
        lab_names = {lab.owner_id: lab.name for lab in await self.labs.list_labs()}
        ranks = dense_ranks([artifact.score for artifact in best])
        rows = [
            ModelLeaderboardRow(
                rank=rank,
                owner_id=artifact.owner_id,
                lab_name=lab_names.get(artifact.owner_id),
                blueprint_id=artifact.blueprint_id,
                model_name=artifact.name,
                version=artifact.version,
                score=artifact.score,
                is_current_player=artifact.owner_id == viewer_id,
            )
            for artifact, rank in zip(best, ranks)
        ]

        index = next((i for i, row in enumerate(rows) if row.owner_id == viewer_id), None)
        return ModelLeaderboardSlice(
            rows=neighbor_slice(rows, index),
            my_rank=rows[index].rank if index is not None else None,
            has_public_model=index is not None,
        )

    async def lab_leaderboard(self, viewer_id: Optional[str] = None) -> LabLeaderboardSlice:
        labs = {lab.owner_id: lab for lab in await self.labs.list_labs()}
        progressions = {row.owner_id: row for row in await self.labs.list_progressions()}
        scores_by_owner: Dict[str, List[ScoredArtifact]] = {}
        for artifact in await self.artifacts.list_public():
            scores_by_owner.setdefault(artifact.owner_id, []).append(artifact)

        rows = []
        for owner_id, lab in labs.items():
            progression = progressions.get(owner_id)
            if progression is None:
                continue
            best_scores = best_public_scores(scores_by_owner.get(owner_id, []))
            rows.append(
                LabLeaderboardRow(
                    rank=0,
                    owner_id=owner_id,
                    lab_name=lab.name,
                    level=progression.level,
                    lab_score=lab_score(
                        progression.level,
                        best_scores,
                        progression.queue_rank,
                        progression.staff_rank,
                        progression.compute_rank,
                    ),
                    best_public_scores=best_scores,
                    is_current_player=owner_id == viewer_id,
                )
            )

        rows.sort(key=lambda row: (-row.lab_score, -row.level, row.owner_id))
        for position, row in enumerate(rows, start=1):
            row.rank = position

        index = next((i for i, row in enumerate(rows) if row.owner_id == viewer_id), None)
        return LabLeaderboardSlice(
            rows=neighbor_slice(rows, index),
            my_rank=rows[index].rank if index is not None else None,
        )
