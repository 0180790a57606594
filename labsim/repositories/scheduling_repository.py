"""
Repository for time warp anchors and scheduled callbacks.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from labsim.models.scheduling import CallbackStatus, ScheduledCallback, TimeWarpSetting


class SchedulingRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Time warp
    # ------------------------------------------------------------------

    async def get_time_warp(self, owner_id: str, lock: bool = False) -> Optional[TimeWarpSetting]:
        query = select(TimeWarpSetting).where(TimeWarpSetting.owner_id == owner_id)
        if lock:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def add_time_warp(self, setting: TimeWarpSetting) -> TimeWarpSetting:
        self.db.add(setting)
        await self.db.flush()
        return setting

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    async def get_callback_for_job(self, job_id: UUID) -> Optional[ScheduledCallback]:
        result = await self.db.execute(select(ScheduledCallback).where(ScheduledCallback.job_id == job_id))
        return result.scalar_one_or_none()

    async def add_callback(self, callback: ScheduledCallback) -> ScheduledCallback:
        self.db.add(callback)
        await self.db.flush()
        return callback

    async def list_pending_for_owner(self, owner_id: str) -> List[ScheduledCallback]:
        result = await self.db.execute(
            select(ScheduledCallback).where(
                and_(
                    ScheduledCallback.owner_id == owner_id,
                    ScheduledCallback.status == CallbackStatus.PENDING,
                )
            )
        )
        return list(result.scalars().all())

    async def list_due_ids(self, now_ms: int, limit: int) -> List[UUID]:
        result = await self.db.execute(
            select(ScheduledCallback.id)
            .where(
                and_(
                    ScheduledCallback.status == CallbackStatus.PENDING,
                    ScheduledCallback.fire_at_ms <= now_ms,
                )
            )
            .order_by(ScheduledCallback.fire_at_ms.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def claim_due(self, callback_id: UUID, now_ms: int) -> Optional[ScheduledCallback]:
        """
        Lock one due callback for delivery.

        SKIP LOCKED lets several workers poll the same table without
        delivering a callback twice at the same moment.
        """
        query = (
            select(ScheduledCallback)
            .where(
                and_(
                    ScheduledCallback.id == callback_id,
                    ScheduledCallback.status == CallbackStatus.PENDING,
                    ScheduledCallback.fire_at_ms <= now_ms,
                )
            )
            .with_for_update(skip_locked=True)
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_callback(self, callback_id: UUID) -> Optional[ScheduledCallback]:
        result = await self.db.execute(select(ScheduledCallback).where(ScheduledCallback.id == callback_id))
        return result.scalar_one_or_none()
