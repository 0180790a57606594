import pytest

from labsim.core.catalog import UpgradeType
from labsim.errors import AdmissionDenied, NotFound, PrerequisiteUnmet
from labsim.models.job import JobStatus
from labsim.models.notification import NotificationKind
from labsim.repositories.job_repository import JobRepository
from labsim.repositories.lab_repository import LabRepository
from labsim.services.notification_service import NotificationService
from labsim.services.upgrade_service import UpgradeService

OWNER = "owner-1"
MINUTE_MS = 60 * 1000


@pytest.fixture
def upgrades(db, catalog, time_authority):
    return UpgradeService(db, catalog, time_authority=time_authority)


@pytest.mark.asyncio
@pytest.mark.db
async def test_purchase_spends_point_and_raises_rank(db, catalog, upgrades, make_lab):
    await make_lab(upgrade_points=2)

    result = await upgrades.purchase(OWNER, UpgradeType.QUEUE)

    assert result.new_rank == 1
    assert result.new_value == 2
    assert result.upgrade_points == 1
    progression = await LabRepository(db).get_progression(OWNER)
    assert progression.queue_rank == 1

    (notification,) = await NotificationService(db, catalog).list_notifications(OWNER, kind=NotificationKind.UNLOCK)
    assert notification.message == "Queue Capacity is now rank 1 (2 slots)."


@pytest.mark.asyncio
@pytest.mark.db
async def test_purchase_without_points_is_denied(upgrades, make_lab):
    await make_lab()

    with pytest.raises(AdmissionDenied) as exc_info:
        await upgrades.purchase(OWNER, UpgradeType.SPEED)

    assert exc_info.value.reason == "no_upgrade_points"


@pytest.mark.asyncio
@pytest.mark.db
async def test_rank_gate_requires_level(upgrades, make_lab):
    await make_lab(upgrade_points=5, compute_rank=2)

    with pytest.raises(PrerequisiteUnmet) as exc_info:
        await upgrades.purchase(OWNER, UpgradeType.COMPUTE)

    assert exc_info.value.details["required_level"] == 6


@pytest.mark.asyncio
@pytest.mark.db
async def test_max_rank_is_denied(upgrades, make_lab):
    await make_lab(level=20, upgrade_points=5, staff_rank=6)

    with pytest.raises(AdmissionDenied) as exc_info:
        await upgrades.purchase(OWNER, UpgradeType.STAFF)

    assert exc_info.value.reason == "max_rank"


@pytest.mark.asyncio
@pytest.mark.db
async def test_list_upgrades_reports_lock_reasons(upgrades, make_lab):
    await make_lab(upgrade_points=1, compute_rank=2, staff_rank=6, level=5)

    listing = {upgrade.id: upgrade for upgrade in await upgrades.list_upgrades(OWNER)}

    assert listing["queue"].can_upgrade
    assert listing["queue"].next_value == 2
    assert listing["compute"].lock_reason == "Requires level 6"
    assert listing["staff"].is_max_rank
    assert listing["staff"].lock_reason == "Max rank"
    assert listing["money_multiplier"].current_value == 100


@pytest.mark.asyncio
@pytest.mark.db
async def test_unknown_owner(upgrades):
    with pytest.raises(NotFound):
        await upgrades.list_upgrades("nobody")


@pytest.mark.asyncio
@pytest.mark.db
async def test_notification_uses_effective_time(db, catalog, upgrades, time_authority, make_lab, clock):
    await make_lab(upgrade_points=1)
    await time_authority.set_time_scale(OWNER, 5)
    clock.advance(MINUTE_MS)

    await upgrades.purchase(OWNER, UpgradeType.SPEED)

    (notification,) = await NotificationService(db, catalog).list_notifications(OWNER, kind=NotificationKind.UNLOCK)
    assert notification.created_at_ms == clock() + 4 * MINUTE_MS
    assert notification.created_at_ms == await time_authority.effective_now(OWNER)


@pytest.mark.asyncio
@pytest.mark.db
async def test_queue_rank_promotes_backlog(db, upgrades, lifecycle, make_lab, clock):
    await make_lab(queue_rank=1, upgrade_points=1)
    await lifecycle.start_job(OWNER, "job_research_literature")
    await lifecycle.start_job(OWNER, "job_research_literature")
    queued = await lifecycle.start_job(OWNER, "job_research_literature")
    assert queued.status == JobStatus.QUEUED

    await upgrades.purchase(OWNER, UpgradeType.QUEUE)

    promoted = await JobRepository(db).get(queued.job_id)
    assert promoted.status == JobStatus.IN_PROGRESS
    assert promoted.started_at_ms == clock()


@pytest.mark.asyncio
@pytest.mark.db
async def test_compute_rank_promotes_job_waiting_for_compute(db, upgrades, lifecycle, make_lab, clock):
    await make_lab(queue_rank=2, upgrade_points=1)
    sweeps = [await lifecycle.start_job(OWNER, "job_research_literature") for _ in range(3)]
    await lifecycle.start_job(OWNER, "job_train_tts_3b")
    waiting = await lifecycle.start_job(OWNER, "job_train_tts_3b")
    clock.advance(3 * MINUTE_MS)
    for sweep in sweeps[:2]:
        await lifecycle.complete_job(sweep.job_id)
    jobs = JobRepository(db)
    assert (await jobs.get(waiting.job_id)).status == JobStatus.QUEUED

    await upgrades.purchase(OWNER, UpgradeType.COMPUTE)

    assert (await jobs.get(waiting.job_id)).status == JobStatus.IN_PROGRESS
    assert await jobs.list_by_status(OWNER, JobStatus.QUEUED) == []
