"""
Repository for job and cooldown database operations.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from labsim.models.job import Job, JobCooldown, JobStatus


class JobRepository:
    """Job rows are append-only; status moves queued -> in_progress -> completed."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, job_id: UUID, lock: bool = False) -> Optional[Job]:
        query = select(Job).where(Job.id == job_id)
        if lock:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def add(self, job: Job) -> Job:
        self.db.add(job)
        await self.db.flush()
        return job

    async def next_sequence(self, owner_id: str) -> int:
        result = await self.db.execute(
            select(func.coalesce(func.max(Job.sequence), 0)).where(Job.owner_id == owner_id)
        )
        return int(result.scalar_one()) + 1

    async def list_by_status(self, owner_id: str, status: str) -> List[Job]:
        query = (
            select(Job)
            .where(and_(Job.owner_id == owner_id, Job.status == status))
            .order_by(Job.sequence.asc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_active(self, owner_id: str) -> List[Job]:
        query = (
            select(Job)
            .where(and_(Job.owner_id == owner_id, Job.status.in_([JobStatus.QUEUED, JobStatus.IN_PROGRESS])))
            .order_by(Job.sequence.asc())
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def oldest_queued(self, owner_id: str) -> Optional[Job]:
        query = (
            select(Job)
            .where(and_(Job.owner_id == owner_id, Job.status == JobStatus.QUEUED))
            .order_by(Job.sequence.asc())
            .limit(1)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_history(self, owner_id: str, limit: int = 50) -> List[Job]:
        query = (
            select(Job)
            .where(and_(Job.owner_id == owner_id, Job.status == JobStatus.COMPLETED))
            .order_by(Job.completed_at_ms.desc(), Job.sequence.desc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count_completed(self, owner_id: str, kind: Optional[str] = None) -> int:
        query = select(func.count(Job.id)).where(
            and_(Job.owner_id == owner_id, Job.status == JobStatus.COMPLETED)
        )
        if kind is not None:
            query = query.where(Job.kind == kind)
        result = await self.db.execute(query)
        return int(result.scalar_one())

    # ------------------------------------------------------------------
    # Cooldowns
    # ------------------------------------------------------------------

    async def get_cooldown(self, owner_id: str, content_id: str) -> Optional[JobCooldown]:
        result = await self.db.execute(
            select(JobCooldown).where(
                and_(JobCooldown.owner_id == owner_id, JobCooldown.content_id == content_id)
            )
        )
        return result.scalar_one_or_none()

    async def list_cooldowns(self, owner_id: str) -> List[JobCooldown]:
        result = await self.db.execute(select(JobCooldown).where(JobCooldown.owner_id == owner_id))
        return list(result.scalars().all())

    async def set_cooldown(self, owner_id: str, content_id: str, available_at_ms: int) -> JobCooldown:
        cooldown = await self.get_cooldown(owner_id, content_id)
        if cooldown is None:
            cooldown = JobCooldown(owner_id=owner_id, content_id=content_id, available_at_ms=available_at_ms)
            self.db.add(cooldown)
        else:
            cooldown.available_at_ms = available_at_ms
        await self.db.flush()
        return cooldown
