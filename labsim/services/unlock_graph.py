"""
Research unlock graph.

Pure evaluation of research node availability and unlock effects, plus the
DB-backed application of a purchased node's unlocks.
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog, PerkType, ResearchNode
from labsim.models.research import OwnerUnlocks
from labsim.repositories.lab_repository import LabRepository
from labsim.repositories.research_repository import ResearchRepository
from labsim.services.bonus_composer import OwnerBonuses, effective_cost

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnlockSet:
    blueprint_ids: FrozenSet[str] = field(default_factory=frozenset)
    job_ids: FrozenSet[str] = field(default_factory=frozenset)
    system_flags: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_row(cls, row: OwnerUnlocks) -> "UnlockSet":
        return cls(
            blueprint_ids=frozenset(row.blueprint_ids or []),
            job_ids=frozenset(row.job_ids or []),
            system_flags=frozenset(row.system_flags or []),
        )

    def write_to(self, row: OwnerUnlocks) -> None:
        # Reassign whole lists so the JSON columns register as changed
        row.blueprint_ids = sorted(self.blueprint_ids)
        row.job_ids = sorted(self.job_ids)
        row.system_flags = sorted(self.system_flags)


@dataclass(frozen=True)
class PerkDelta:
    speed: float = 0
    money: float = 0


@dataclass(frozen=True)
class NodeAvailability:
    available: bool
    effective_cost: int
    # level | prerequisite | affordability
    requirement: Optional[str] = None
    reason: Optional[str] = None
    missing_prerequisites: tuple = ()
    shortfall: int = 0


def is_purchased(node: ResearchNode, purchased_ids: Iterable[str]) -> bool:
    return node.is_starter or node.id in set(purchased_ids)


def is_available(
    node: ResearchNode,
    *,
    catalog: ContentCatalog,
    level: int,
    purchased_ids: Iterable[str],
    research_points: int,
    bonuses: OwnerBonuses,
) -> NodeAvailability:
    """
    Evaluate whether a node can be purchased right now.

    Checks run level first, then prerequisites, then affordability; the first
    failure is reported.
    """
    purchased = set(purchased_ids)
    cost = effective_cost(node.cost_rp, bonuses)

    if level < node.min_level:
        return NodeAvailability(
            available=False,
            effective_cost=cost,
            requirement="level",
            reason=f"Requires level {node.min_level}",
        )

    missing = tuple(
        prereq
        for prereq in node.prerequisites
        if not is_purchased(catalog.get_node(prereq), purchased)
    )
    if missing:
        names = ", ".join(catalog.get_node(prereq).name for prereq in missing)
        return NodeAvailability(
            available=False,
            effective_cost=cost,
            requirement="prerequisite",
            reason=f"Requires: {names}",
            missing_prerequisites=missing,
        )

    if research_points < cost:
        return NodeAvailability(
            available=False,
            effective_cost=cost,
            requirement="affordability",
            reason=f"Need {cost - research_points} more RP",
            shortfall=cost - research_points,
        )

    return NodeAvailability(available=True, effective_cost=cost)


def apply_unlock(node: ResearchNode, unlocks: UnlockSet) -> UnlockSet:
    """Union the node's unlocks into the set. Applying twice changes nothing."""
    return UnlockSet(
        blueprint_ids=unlocks.blueprint_ids | frozenset(node.unlocks.blueprint_ids),
        job_ids=unlocks.job_ids | frozenset(node.unlocks.job_ids),
        system_flags=unlocks.system_flags | frozenset(node.unlocks.system_flags),
    )


def perk_delta(node: ResearchNode) -> PerkDelta:
    perk_type = node.unlocks.perk_type
    if perk_type == PerkType.SPEED:
        return PerkDelta(speed=node.unlocks.perk_value)
    if perk_type == PerkType.MONEY_MULTIPLIER:
        return PerkDelta(money=node.unlocks.perk_value)
    return PerkDelta()


def starter_unlocks(catalog: ContentCatalog) -> UnlockSet:
    unlocks = UnlockSet()
    for node in catalog.starter_nodes():
        unlocks = apply_unlock(node, unlocks)
    return unlocks


class UnlockGraphService:
    """Applies a completed research node to an owner's persisted state."""

    def __init__(self, db: AsyncSession, catalog: ContentCatalog):
        self.db = db
        self.catalog = catalog
        self.labs = LabRepository(db)
        self.research = ResearchRepository(db)

    async def apply_node(
        self,
        owner_id: str,
        node: ResearchNode,
        now_ms: int,
        job_id: Optional[UUID] = None,
    ) -> bool:
        """
        Record the purchase and apply unlocks and perks.

        Returns False without touching anything when the owner already holds
        a purchase record for the node, so a re-delivered completion never
        applies a perk twice.
        """
        if await self.research.get_purchase(owner_id, node.id) is not None:
            logger.info(f"Research node {node.id} already applied for owner {owner_id}")
            return False

        await self.research.add_purchase(owner_id, node.id, now_ms, job_id=job_id)

        row = await self.labs.get_unlocks(owner_id)
        if row is None:
            row = OwnerUnlocks(owner_id=owner_id, blueprint_ids=[], job_ids=[], system_flags=[])
            self.db.add(row)
        apply_unlock(node, UnlockSet.from_row(row)).write_to(row)

        delta = perk_delta(node)
        if delta.speed or delta.money:
            pool = await self.labs.get_pool(owner_id)
            if pool is not None:
                pool.speed_bonus = (pool.speed_bonus or 0) + delta.speed
                pool.money_bonus = (pool.money_bonus or 0) + delta.money

        await self.db.flush()
        logger.info(f"Applied research node {node.id} for owner {owner_id}")
        return True
