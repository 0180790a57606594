"""
Repository for scored artifacts.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from labsim.models.artifact import ScoredArtifact, Visibility


class ArtifactRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, artifact_id: UUID) -> Optional[ScoredArtifact]:
        result = await self.db.execute(select(ScoredArtifact).where(ScoredArtifact.id == artifact_id))
        return result.scalar_one_or_none()

    async def max_version(self, owner_id: str, blueprint_id: str) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.max(ScoredArtifact.version), 0)).where(
                and_(ScoredArtifact.owner_id == owner_id, ScoredArtifact.blueprint_id == blueprint_id)
            )
        )
        return int(result.scalar_one())

    async def add(self, artifact: ScoredArtifact) -> ScoredArtifact:
        self.db.add(artifact)
        await self.db.flush()
        return artifact

    async def list_for_owner(self, owner_id: str, public_only: bool = False) -> List[ScoredArtifact]:
        query = select(ScoredArtifact).where(ScoredArtifact.owner_id == owner_id)
        if public_only:
            query = query.where(ScoredArtifact.visibility == Visibility.PUBLIC)
        query = query.order_by(ScoredArtifact.blueprint_id.asc(), ScoredArtifact.version.asc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_public(self, blueprint_id: Optional[str] = None) -> List[ScoredArtifact]:
        query = select(ScoredArtifact).where(ScoredArtifact.visibility == Visibility.PUBLIC)
        if blueprint_id is not None:
            query = query.where(ScoredArtifact.blueprint_id == blueprint_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_for_owner(self, owner_id: str) -> int:
        result = await self.db.execute(
            select(func.count(ScoredArtifact.id)).where(ScoredArtifact.owner_id == owner_id)
        )
        return int(result.scalar_one())

    async def has_model_type(self, owner_id: str, model_type: str) -> bool:
        result = await self.db.execute(
            select(ScoredArtifact.id)
            .where(and_(ScoredArtifact.owner_id == owner_id, ScoredArtifact.model_type == model_type))
            .limit(1)
        )
        return result.scalar_one_or_none() is not None
