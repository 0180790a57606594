"""
Research service - research tree view.
"""

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog
from labsim.repositories.research_repository import ResearchRepository
from labsim.schemas.research import ResearchNodeState
from labsim.services.owner_context import load_owner_context
from labsim.services.unlock_graph import is_available, is_purchased


class ResearchService:
    def __init__(self, db: AsyncSession, catalog: ContentCatalog):
        self.db = db
        self.catalog = catalog
        self.research = ResearchRepository(db)

    async def tree(self, owner_id: str) -> List[ResearchNodeState]:
        ctx = await load_owner_context(self.db, owner_id, lock=False)
        bonuses = ctx.bonuses(self.catalog)
        purchased = await self.research.purchased_node_ids(owner_id)

        nodes = []
        for node in self.catalog.research_nodes:
            owned = is_purchased(node, purchased)
            in_progress = not owned and ctx.has_active(node.id)
            availability = is_available(
                node,
                catalog=self.catalog,
                level=ctx.progression.level,
                purchased_ids=purchased,
                research_points=ctx.pool.research_points,
                bonuses=bonuses,
            )
            if owned:
                lock_reason = None
            elif in_progress:
                lock_reason = "Researching"
            else:
                lock_reason = availability.reason
            nodes.append(
                ResearchNodeState(
                    id=node.id,
                    name=node.name,
                    category=node.category.value,
                    description=node.description,
                    cost_rp=node.cost_rp,
                    effective_cost=availability.effective_cost,
                    min_level=node.min_level,
                    prerequisites=list(node.prerequisites),
                    is_purchased=owned,
                    is_in_progress=in_progress,
                    is_available=not owned and not in_progress and availability.available,
                    lock_reason=lock_reason,
                )
            )
        return nodes
