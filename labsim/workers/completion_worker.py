"""Completion worker: delivers due scheduled callbacks.

Each due callback is claimed with SELECT FOR UPDATE SKIP LOCKED and handled
in its own transaction, so several workers can poll the same table. A
handler failure rolls that transaction back and records the attempt in a
fresh one; the callback is retried after a backoff (at-least-once delivery,
made safe by the idempotent completion step).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import random
import socket
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import async_sessionmaker

from labsim.core.catalog import ContentCatalog, get_catalog
from labsim.core.config import settings
from labsim.db.session import async_session_maker, get_async_session_context
from labsim.repositories.scheduling_repository import SchedulingRepository
from labsim.services.callback_scheduler import COMPLETE_JOB_HANDLER, CallbackScheduler
from labsim.services.job_lifecycle_service import CompletionOutcome, JobLifecycleService
from labsim.services.time_authority import TimeAuthority
from labsim.utils.time import Clock, utc_now_ms

logger = logging.getLogger(__name__)


class CompletionWorker:
    """Poll and deliver due completion callbacks."""

    def __init__(
        self,
        catalog: Optional[ContentCatalog] = None,
        session_factory: async_sessionmaker = async_session_maker,
        worker_id: Optional[str] = None,
        poll_interval: float = settings.WORKER_POLL_INTERVAL_SECONDS,
        batch_size: int = settings.WORKER_BATCH_SIZE,
        clock: Clock = utc_now_ms,
        rng: Optional[random.Random] = None,
        time_authority_options: Optional[dict] = None,
    ) -> None:
        self.catalog = catalog or get_catalog()
        self.session_factory = session_factory
        self.worker_id = worker_id or f"completion-{socket.gethostname()}-{os.getpid()}"
        self.poll_interval = poll_interval
        self.batch_size = batch_size
        self.clock = clock
        self.rng = rng or random.Random()
        self.time_authority_options = time_authority_options or {}
        self._stop_event = asyncio.Event()

    def request_stop(self) -> None:
        self._stop_event.set()

    async def run_once(self) -> int:
        """Deliver every callback due now (up to batch_size). Returns the number delivered."""
        now_ms = self.clock()
        async with get_async_session_context(self.session_factory) as session:
            due_ids = await SchedulingRepository(session).list_due_ids(now_ms, self.batch_size)

        delivered = 0
        for callback_id in due_ids:
            if await self._deliver(callback_id):
                delivered += 1
        return delivered

    async def _deliver(self, callback_id: UUID) -> bool:
        try:
            async with get_async_session_context(self.session_factory) as session:
                callback = await SchedulingRepository(session).claim_due(callback_id, self.clock())
                if callback is None:
                    # Claimed by another worker, rescheduled or already delivered
                    return False

                if callback.handler != COMPLETE_JOB_HANDLER:
                    raise ValueError(f"Unknown callback handler: {callback.handler}")

                logger.info(f"Worker {self.worker_id} delivering callback {callback.id} for job {callback.job_id}")
                time_authority = TimeAuthority(session, clock=self.clock, **self.time_authority_options)
                service = JobLifecycleService(session, self.catalog, time_authority=time_authority, rng=self.rng)
                result = await service.complete_job(callback.job_id)

                if result.outcome == CompletionOutcome.DEFERRED:
                    return False
                await CallbackScheduler(session).mark_delivered(callback, self.clock())
                return True
        except Exception as exc:
            logger.exception(f"Callback {callback_id} failed: {exc}")
            async with get_async_session_context(self.session_factory) as session:
                await CallbackScheduler(session).mark_failed(
                    callback_id,
                    str(exc),
                    self.clock(),
                    backoff_ms=settings.CALLBACK_RETRY_BACKOFF_SECONDS * 1000,
                    max_attempts=settings.CALLBACK_MAX_ATTEMPTS,
                )
            return False

    async def run_forever(self) -> None:
        """Poll indefinitely until stopped, respecting poll_interval when idle."""
        logger.info(f"Completion worker {self.worker_id} started")
        while not self._stop_event.is_set():
            delivered = await self.run_once()
            if delivered:
                continue

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                continue
        logger.info(f"Completion worker {self.worker_id} stopped")


def main() -> int:
    parser = argparse.ArgumentParser(description="Deliver due job completion callbacks")
    parser.add_argument("--once", action="store_true", help="Deliver due callbacks once and exit")
    parser.add_argument(
        "--sleep",
        type=float,
        default=settings.WORKER_POLL_INTERVAL_SECONDS,
        help="Seconds between polls when idle",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    worker = CompletionWorker(poll_interval=args.sleep)
    if args.once:
        delivered = asyncio.run(worker.run_once())
        logger.info(f"Delivered {delivered} callback(s)")
        return 0
    try:
        asyncio.run(worker.run_forever())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
