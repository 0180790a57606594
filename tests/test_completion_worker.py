"""
Completion worker tests.

Each test commits its setup through its own session so the worker's
sessions see it, the way the API and worker processes share a database.
"""

import pytest

from labsim.models.job import JobStatus
from labsim.models.scheduling import CallbackStatus
from labsim.repositories.job_repository import JobRepository
from labsim.repositories.lab_repository import LabRepository
from labsim.repositories.scheduling_repository import SchedulingRepository
from labsim.schemas.lab import LabCreate
from labsim.services.callback_scheduler import CallbackScheduler
from labsim.services.job_lifecycle_service import JobLifecycleService
from labsim.services.lab_service import LabService
from labsim.services.time_authority import TimeAuthority
from labsim.workers.completion_worker import CompletionWorker

MINUTE_MS = 60 * 1000
OWNER = "owner-1"
NO_WARP = {"warp_enabled": False}


async def _start(session_factory, catalog, clock, content_id):
    async with session_factory() as session:
        if await LabRepository(session).get_lab(OWNER) is None:
            await LabService(session, catalog).create_lab(
                LabCreate(owner_id=OWNER, name="Worker Lab", founder_type="technical")
            )
        authority = TimeAuthority(session, clock=clock, **NO_WARP)
        result = await JobLifecycleService(session, catalog, time_authority=authority).start_job(OWNER, content_id)
        await session.commit()
    return result


@pytest.fixture
def worker(catalog, session_factory, clock, rng):
    return CompletionWorker(
        catalog=catalog,
        session_factory=session_factory,
        worker_id="test-worker",
        clock=clock,
        rng=rng,
        time_authority_options=NO_WARP,
    )


@pytest.mark.asyncio
@pytest.mark.db
async def test_nothing_due_delivers_nothing(worker, session_factory, catalog, clock):
    await _start(session_factory, catalog, clock, "job_freelance_gig")

    assert await worker.run_once() == 0


@pytest.mark.asyncio
@pytest.mark.db
async def test_due_callback_completes_job(worker, session_factory, catalog, clock):
    gig = await _start(session_factory, catalog, clock, "job_freelance_gig")
    clock.advance(MINUTE_MS)

    assert await worker.run_once() == 1
    assert await worker.run_once() == 0

    async with session_factory() as session:
        job = await JobRepository(session).get(gig.job_id)
        callback = await SchedulingRepository(session).get_callback_for_job(gig.job_id)
        pool = await LabRepository(session).get_pool(OWNER)
    assert job.status == JobStatus.COMPLETED
    assert callback.status == CallbackStatus.DELIVERED
    assert callback.delivered_at_ms == clock()
    assert callback.attempts == 1
    assert pool.cash == 5200


@pytest.mark.asyncio
@pytest.mark.db
async def test_failed_delivery_is_retried_later(worker, session_factory, catalog, clock, monkeypatch):
    gig = await _start(session_factory, catalog, clock, "job_freelance_gig")
    clock.advance(MINUTE_MS)

    async def explode(self, job_id):
        raise RuntimeError("boom")

    monkeypatch.setattr(JobLifecycleService, "complete_job", explode)

    assert await worker.run_once() == 0

    async with session_factory() as session:
        callback = await SchedulingRepository(session).get_callback_for_job(gig.job_id)
        job = await JobRepository(session).get(gig.job_id)
    assert callback.status == CallbackStatus.PENDING
    assert callback.attempts == 1
    assert callback.last_error == "boom"
    assert callback.fire_at_ms > clock()
    assert job.status == JobStatus.IN_PROGRESS


@pytest.mark.asyncio
@pytest.mark.db
async def test_callback_is_parked_after_max_attempts(db, lifecycle, make_lab, clock):
    await make_lab()
    gig = await lifecycle.start_job(OWNER, "job_freelance_gig")
    callback = await SchedulingRepository(db).get_callback_for_job(gig.job_id)
    scheduler = CallbackScheduler(db)

    await scheduler.mark_failed(callback.id, "first", clock(), backoff_ms=1000, max_attempts=2)
    assert callback.status == CallbackStatus.PENDING
    assert callback.fire_at_ms == clock() + 1000

    await scheduler.mark_failed(callback.id, "second", clock(), backoff_ms=1000, max_attempts=2)
    assert callback.status == CallbackStatus.FAILED
    assert callback.attempts == 2
    assert callback.last_error == "second"
