"""
Owner state loaded once per engine operation.
"""

from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog, JobKind
from labsim.errors import NotFound
from labsim.models.job import Job, JobStatus
from labsim.models.lab import Lab, OwnerProgression, ResourcePool
from labsim.repositories.job_repository import JobRepository
from labsim.repositories.lab_repository import LabRepository
from labsim.services.admission_service import CapacitySnapshot, capacity_snapshot
from labsim.services.bonus_composer import OwnerBonuses, compose_bonuses
from labsim.services.unlock_graph import UnlockSet


@dataclass
class OwnerContext:
    lab: Lab
    progression: OwnerProgression
    pool: ResourcePool
    unlocks: UnlockSet
    in_progress: List[Job]
    queued: List[Job]

    @property
    def owner_id(self) -> str:
        return self.lab.owner_id

    def bonuses(self, catalog: ContentCatalog, exclude_job_id: Optional[UUID] = None) -> OwnerBonuses:
        """Current bonuses; a completing hire no longer counts as active."""
        active_hires = []
        for job in self.in_progress:
            if job.kind != JobKind.HIRE.value or job.id == exclude_job_id:
                continue
            definition = catalog.get_job(job.content_id)
            if definition is not None:
                active_hires.append(definition)

        return compose_bonuses(
            catalog,
            founder_type=self.lab.founder_type,
            level=self.progression.level,
            speed_rank=self.progression.speed_rank,
            money_multiplier_rank=self.progression.money_multiplier_rank,
            research_speed=self.pool.speed_bonus or 0,
            research_money=self.pool.money_bonus or 0,
            active_hires=active_hires,
        )

    def capacity(self, catalog: ContentCatalog, bonuses: OwnerBonuses) -> CapacitySnapshot:
        return capacity_snapshot(
            catalog,
            founder_type=self.lab.founder_type,
            progression=self.progression,
            pool=self.pool,
            bonuses=bonuses,
            in_progress=self.in_progress,
            queued_count=len(self.queued),
            queued_hires=sum(1 for job in self.queued if job.kind == JobKind.HIRE.value),
        )

    def has_active(self, content_id: str) -> bool:
        return any(job.content_id == content_id for job in self.in_progress + self.queued)


async def load_owner_context(db: AsyncSession, owner_id: str, lock: bool = True) -> OwnerContext:
    """
    Load everything an engine step needs for one owner.

    With lock=True the resource pool row is locked first, before any other
    read, so concurrent operations for the same owner run one at a time.
    """
    labs = LabRepository(db)
    pool = await labs.get_pool(owner_id, lock=lock)
    lab = await labs.get_lab(owner_id)
    progression = await labs.get_progression(owner_id)
    if pool is None or lab is None or progression is None:
        raise NotFound(f"No lab found for owner {owner_id}")

    unlocks_row = await labs.get_unlocks(owner_id)
    jobs = JobRepository(db)
    return OwnerContext(
        lab=lab,
        progression=progression,
        pool=pool,
        unlocks=UnlockSet.from_row(unlocks_row) if unlocks_row is not None else UnlockSet(),
        in_progress=await jobs.list_by_status(owner_id, JobStatus.IN_PROGRESS),
        queued=await jobs.list_by_status(owner_id, JobStatus.QUEUED),
    )
