"""
Repository for lab, progression, resource pool and unlock rows.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from labsim.models.lab import Lab, OwnerProgression, ResourcePool
from labsim.models.research import OwnerUnlocks


class LabRepository:
    """Per-owner singleton rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_lab(self, owner_id: str) -> Optional[Lab]:
        result = await self.db.execute(select(Lab).where(Lab.owner_id == owner_id))
        return result.scalar_one_or_none()

    async def list_labs(self) -> List[Lab]:
        result = await self.db.execute(select(Lab).order_by(Lab.created_at.asc()))
        return list(result.scalars().all())

    async def get_progression(self, owner_id: str) -> Optional[OwnerProgression]:
        result = await self.db.execute(
            select(OwnerProgression).where(OwnerProgression.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def list_progressions(self) -> List[OwnerProgression]:
        result = await self.db.execute(select(OwnerProgression))
        return list(result.scalars().all())

    async def get_pool(self, owner_id: str, lock: bool = False) -> Optional[ResourcePool]:
        """
        Fetch the owner's resource pool.

        With lock=True the row is held FOR UPDATE until the transaction ends;
        every mutating engine operation takes this lock first so that two
        concurrent requests for the same owner serialize.
        """
        query = select(ResourcePool).where(ResourcePool.owner_id == owner_id)
        if lock:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_unlocks(self, owner_id: str) -> Optional[OwnerUnlocks]:
        result = await self.db.execute(select(OwnerUnlocks).where(OwnerUnlocks.owner_id == owner_id))
        return result.scalar_one_or_none()

    async def create(
        self,
        lab: Lab,
        progression: OwnerProgression,
        pool: ResourcePool,
        unlocks: OwnerUnlocks,
    ) -> Lab:
        self.db.add_all([lab, progression, pool, unlocks])
        await self.db.flush()
        await self.db.refresh(lab)
        return lab
