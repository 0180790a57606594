"""
Repository for research purchase markers.
"""

from typing import List, Optional, Set
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from labsim.models.research import ResearchPurchase


class ResearchRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_purchase(self, owner_id: str, node_id: str) -> Optional[ResearchPurchase]:
        result = await self.db.execute(
            select(ResearchPurchase).where(
                and_(ResearchPurchase.owner_id == owner_id, ResearchPurchase.node_id == node_id)
            )
        )
        return result.scalar_one_or_none()

    async def purchased_node_ids(self, owner_id: str) -> Set[str]:
        result = await self.db.execute(
            select(ResearchPurchase.node_id).where(ResearchPurchase.owner_id == owner_id)
        )
        return set(result.scalars().all())

    async def list_purchases(self, owner_id: str) -> List[ResearchPurchase]:
        result = await self.db.execute(
            select(ResearchPurchase)
            .where(ResearchPurchase.owner_id == owner_id)
            .order_by(ResearchPurchase.purchased_at_ms.asc())
        )
        return list(result.scalars().all())

    async def add_purchase(
        self,
        owner_id: str,
        node_id: str,
        purchased_at_ms: int,
        job_id: Optional[UUID] = None,
    ) -> ResearchPurchase:
        purchase = ResearchPurchase(
            owner_id=owner_id,
            node_id=node_id,
            purchased_at_ms=purchased_at_ms,
            job_id=job_id,
        )
        self.db.add(purchase)
        await self.db.flush()
        return purchase
