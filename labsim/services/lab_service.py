"""
Lab service - lab creation and owner state views.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog, FounderType, HireEffect, JobKind
from labsim.errors import AppError
from labsim.models.job import JobStatus
from labsim.models.lab import Lab, OwnerProgression, ResourcePool
from labsim.models.research import OwnerUnlocks
from labsim.repositories.job_repository import JobRepository
from labsim.repositories.lab_repository import LabRepository
from labsim.schemas.job import ActiveHireRead, JobBoardEntry
from labsim.schemas.lab import (
    CapacityRead,
    LabCreate,
    LabRead,
    LabStateRead,
    ProgressionRead,
    ResourcePoolRead,
    UnlocksRead,
)
from labsim.services.bonus_composer import effective_cost, effective_duration, effective_reward
from labsim.services.owner_context import load_owner_context
from labsim.services.time_authority import TimeAuthority
from labsim.services.unlock_graph import starter_unlocks

logger = logging.getLogger(__name__)


class LabService:
    def __init__(self, db: AsyncSession, catalog: ContentCatalog, time_authority: Optional[TimeAuthority] = None):
        self.db = db
        self.catalog = catalog
        self.time = time_authority or TimeAuthority(db)
        self.labs = LabRepository(db)
        self.jobs = JobRepository(db)

    async def create_lab(self, data: LabCreate) -> Lab:
        """Found a lab: starting resources, level 1 and the free starter unlocks."""
        if await self.labs.get_lab(data.owner_id) is not None:
            raise AppError(409, "lab_exists", f"Owner {data.owner_id} already has a lab")

        unlocks = starter_unlocks(self.catalog)
        unlocks_row = OwnerUnlocks(owner_id=data.owner_id, blueprint_ids=[], job_ids=[], system_flags=[])
        unlocks.write_to(unlocks_row)

        lab = await self.labs.create(
            Lab(owner_id=data.owner_id, name=data.name, founder_type=FounderType(data.founder_type).value),
            OwnerProgression(
                owner_id=data.owner_id,
                level=1,
                experience=0,
                upgrade_points=0,
                queue_rank=0,
                staff_rank=0,
                compute_rank=0,
                speed_rank=0,
                money_multiplier_rank=0,
            ),
            ResourcePool(
                owner_id=data.owner_id,
                cash=self.catalog.starting_cash,
                research_points=self.catalog.starting_research_points,
                staff_count=0,
                speed_bonus=0,
                money_bonus=0,
            ),
            unlocks_row,
        )
        logger.info(f"Created lab {lab.name!r} ({lab.founder_type}) for owner {lab.owner_id}")
        return lab

    async def get_state(self, owner_id: str) -> LabStateRead:
        ctx = await load_owner_context(self.db, owner_id, lock=False)
        snapshot = ctx.capacity(self.catalog, ctx.bonuses(self.catalog))
        return LabStateRead(
            lab=LabRead.model_validate(ctx.lab),
            progression=ProgressionRead.model_validate(ctx.progression),
            resources=ResourcePoolRead.model_validate(ctx.pool),
            unlocks=UnlocksRead(
                blueprint_ids=sorted(ctx.unlocks.blueprint_ids),
                job_ids=sorted(ctx.unlocks.job_ids),
                system_flags=sorted(ctx.unlocks.system_flags),
            ),
            capacity=CapacityRead(**snapshot.as_dict()),
            effective_now_ms=await self.time.effective_now(owner_id),
        )

    async def job_board(self, owner_id: str) -> List[JobBoardEntry]:
        """Every catalog job as this owner would see it right now."""
        ctx = await load_owner_context(self.db, owner_id, lock=False)
        bonuses = ctx.bonuses(self.catalog)
        now_eff = await self.time.effective_now(owner_id)
        cooldowns = {row.content_id: row.available_at_ms for row in await self.jobs.list_cooldowns(owner_id)}

        entries = []
        for job in self.catalog.jobs:
            is_unlocked = not job.requires_unlock or job.id in ctx.unlocks.job_ids
            meets_level = ctx.progression.level >= job.min_level
            cost = effective_cost(job.base_cost, bonuses)
            if not meets_level:
                lock_reason = f"Requires level {job.min_level}"
            elif not is_unlocked:
                lock_reason = "Unlock via Research"
            else:
                lock_reason = None
            entries.append(
                JobBoardEntry(
                    id=job.id,
                    name=job.name,
                    kind=job.kind.value,
                    is_unlocked=is_unlocked,
                    lock_reason=lock_reason,
                    meets_level=meets_level,
                    can_afford=ctx.pool.cash >= cost,
                    base_cost=job.base_cost,
                    effective_cost=cost,
                    base_duration_ms=job.duration_ms,
                    effective_duration_ms=effective_duration(job.duration_ms, job.kind, bonuses),
                    compute_cost=job.compute_cost,
                    reward_cash=effective_reward(job.rewards.money, bonuses),
                    reward_research_points=job.rewards.research_points,
                    reward_experience=job.rewards.experience,
                    cooldown_remaining_ms=max(0, cooldowns.get(job.id, 0) - now_eff),
                )
            )
        return entries

    async def active_hires(self, owner_id: str) -> List[ActiveHireRead]:
        now_eff = await self.time.effective_now(owner_id)
        hires = []
        for job in await self.jobs.list_by_status(owner_id, JobStatus.IN_PROGRESS):
            if job.kind != JobKind.HIRE.value:
                continue
            definition = self.catalog.get_job(job.content_id)
            if definition is None or not isinstance(definition.effect, HireEffect):
                continue
            hires.append(
                ActiveHireRead(
                    job_id=job.id,
                    content_id=job.content_id,
                    name=definition.name,
                    stat=definition.effect.stat.value,
                    bonus=definition.effect.bonus,
                    completes_at_ms=job.completes_at_ms,
                    remaining_ms=max(0, job.completes_at_ms - now_eff),
                )
            )
        return hires
