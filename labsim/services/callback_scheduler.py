"""
Durable callback scheduling.

Each in-progress job owns exactly one ScheduledCallback row. The row keeps
the job's effective deadline; fire_at_ms is the real instant the worker
should deliver it and is re-derived whenever the owner's time scale changes
or an early delivery has to be deferred.
"""

import logging
from typing import Awaitable, Callable, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from labsim.models.scheduling import CallbackStatus, ScheduledCallback
from labsim.repositories.scheduling_repository import SchedulingRepository

logger = logging.getLogger(__name__)

COMPLETE_JOB_HANDLER = "complete_job"


class CallbackScheduler:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = SchedulingRepository(db)

    async def register_at(
        self,
        owner_id: str,
        job_id: UUID,
        fire_at_ms: int,
        effective_deadline_ms: int,
        handler: str = COMPLETE_JOB_HANDLER,
        payload: Optional[dict] = None,
    ) -> ScheduledCallback:
        """Schedule the job's callback, reusing its row if one already exists."""
        callback = await self.repo.get_callback_for_job(job_id)
        if callback is not None:
            callback.fire_at_ms = fire_at_ms
            callback.effective_deadline_ms = effective_deadline_ms
            callback.status = CallbackStatus.PENDING
            await self.db.flush()
            return callback

        callback = ScheduledCallback(
            owner_id=owner_id,
            job_id=job_id,
            handler=handler,
            payload=payload or {"job_id": str(job_id)},
            effective_deadline_ms=effective_deadline_ms,
            fire_at_ms=fire_at_ms,
            status=CallbackStatus.PENDING,
            attempts=0,
        )
        await self.repo.add_callback(callback)
        logger.debug(f"Scheduled {handler} for job {job_id} at real {fire_at_ms}")
        return callback

    async def defer(self, job_id: UUID, fire_at_ms: int) -> Optional[ScheduledCallback]:
        """Move the job's pending callback later instead of adding a second one."""
        callback = await self.repo.get_callback_for_job(job_id)
        if callback is None:
            return None
        callback.fire_at_ms = fire_at_ms
        callback.status = CallbackStatus.PENDING
        await self.db.flush()
        logger.info(f"Deferred callback for job {job_id} to real {fire_at_ms}")
        return callback

    async def reschedule_owner(
        self,
        owner_id: str,
        real_time_for: Callable[[int], Awaitable[int]],
    ) -> int:
        """Recompute fire_at_ms of every pending callback the owner has."""
        callbacks: List[ScheduledCallback] = await self.repo.list_pending_for_owner(owner_id)
        for callback in callbacks:
            callback.fire_at_ms = await real_time_for(callback.effective_deadline_ms)
        await self.db.flush()
        if callbacks:
            logger.info(f"Rescheduled {len(callbacks)} callback(s) for owner {owner_id}")
        return len(callbacks)

    async def mark_delivered(self, callback: ScheduledCallback, now_ms: int) -> None:
        callback.status = CallbackStatus.DELIVERED
        callback.delivered_at_ms = now_ms
        callback.attempts = (callback.attempts or 0) + 1
        callback.last_error = None
        await self.db.flush()

    async def mark_failed(
        self,
        callback_id: UUID,
        error: str,
        now_ms: int,
        backoff_ms: int,
        max_attempts: int,
    ) -> Optional[ScheduledCallback]:
        """
        Record a failed delivery.

        The callback stays pending and retries after a linear backoff until
        max_attempts is reached, then it is parked as failed.
        """
        callback = await self.repo.get_callback(callback_id)
        if callback is None:
            return None
        callback.attempts = (callback.attempts or 0) + 1
        callback.last_error = error[:2000]
        if callback.attempts >= max_attempts:
            callback.status = CallbackStatus.FAILED
            logger.error(f"Callback {callback_id} for job {callback.job_id} failed {callback.attempts} times, giving up")
        else:
            callback.fire_at_ms = now_ms + backoff_ms * callback.attempts
        await self.db.flush()
        return callback
