import pytest

from labsim.core.catalog import load_catalog
from labsim.errors import AdmissionDenied, InsufficientResource
from labsim.models.job import Job
from labsim.models.lab import OwnerProgression, ResourcePool
from labsim.services.admission_service import CapacitySnapshot, admit, capacity_snapshot, decide
from labsim.services.bonus_composer import OwnerBonuses

NOW = 1_700_000_000_000


def _snapshot(**overrides) -> CapacitySnapshot:
    values = dict(
        parallel_capacity=1,
        in_flight=0,
        queue_capacity=0,
        queued=0,
        compute_capacity=1,
        compute_used=0,
        staff_capacity=1,
        staff_used=0,
    )
    values.update(overrides)
    return CapacitySnapshot(**values)


def _pool(**overrides) -> ResourcePool:
    values = dict(cash=5000, research_points=0, staff_count=0, speed_bonus=0, money_bonus=0)
    values.update(overrides)
    return ResourcePool(owner_id="owner-1", **values)


def _progression(**overrides) -> OwnerProgression:
    values = dict(
        level=1,
        experience=0,
        upgrade_points=0,
        queue_rank=0,
        staff_rank=0,
        compute_rank=0,
        speed_rank=0,
        money_multiplier_rank=0,
    )
    values.update(overrides)
    return OwnerProgression(owner_id="owner-1", **values)


@pytest.fixture
def content():
    return load_catalog()


@pytest.mark.unit
def test_free_slot_admits_immediately():
    decision = decide(_snapshot())

    assert decision.immediate
    assert decision.position is None


@pytest.mark.unit
def test_busy_slots_queue_when_backlog_has_room():
    decision = decide(_snapshot(in_flight=1, queue_capacity=2, queued=1))

    assert not decision.immediate
    assert decision.position == 2


@pytest.mark.unit
def test_free_slot_does_not_jump_the_backlog():
    decision = decide(_snapshot(parallel_capacity=2, in_flight=1, queue_capacity=2, queued=1))

    assert not decision.immediate
    assert decision.position == 2


@pytest.mark.unit
def test_zero_backlog_never_queues():
    with pytest.raises(AdmissionDenied) as exc_info:
        decide(_snapshot(in_flight=1, queue_capacity=0))

    assert exc_info.value.reason == "queue_not_unlocked"
    assert exc_info.value.details["reason"] == "queue_not_unlocked"


@pytest.mark.unit
def test_full_backlog_reports_capacity():
    with pytest.raises(AdmissionDenied) as exc_info:
        decide(_snapshot(in_flight=1, queue_capacity=1, queued=1))

    assert exc_info.value.reason == "queue_full"
    assert "1/1" in exc_info.value.message
    assert exc_info.value.details["queue_capacity"] == 1


@pytest.mark.unit
def test_every_shortfall_is_reported(content):
    job = content.get_job("job_train_llm_17b")  # cost 3000, compute 2

    with pytest.raises(InsufficientResource) as exc_info:
        admit(
            job,
            effective_cost=3000,
            pool=_pool(cash=1000),
            snapshot=_snapshot(compute_capacity=1),
            effective_now_ms=NOW,
        )

    error = exc_info.value
    assert [s.resource for s in error.shortfalls] == ["cash", "compute"]
    assert error.resource == "cash"
    assert error.shortfall == 2000
    assert error.details["shortfalls"][1] == {"resource": "compute", "required": 2, "available": 1, "shortfall": 1}
    assert "missing 2000 cash" in error.message


@pytest.mark.unit
def test_research_cost_is_checked_against_research_points(content):
    job = content.get_job("rn_perk_research_speed_1")

    with pytest.raises(InsufficientResource) as exc_info:
        admit(job, effective_cost=120, pool=_pool(research_points=50), snapshot=_snapshot(), effective_now_ms=NOW)

    assert exc_info.value.resource == "research_points"
    assert exc_info.value.shortfall == 70


@pytest.mark.unit
def test_compute_is_checked_for_backlog_jobs(content):
    job = content.get_job("job_train_tts_3b")

    with pytest.raises(InsufficientResource) as exc_info:
        admit(
            job,
            effective_cost=500,
            pool=_pool(),
            snapshot=_snapshot(in_flight=1, compute_used=1, queue_capacity=1),
            effective_now_ms=NOW,
        )

    assert exc_info.value.resource == "compute"
    assert exc_info.value.shortfall == 1


@pytest.mark.unit
def test_backlog_job_queues_when_compute_is_free(content):
    job = content.get_job("job_train_tts_3b")

    decision = admit(
        job,
        effective_cost=500,
        pool=_pool(),
        snapshot=_snapshot(in_flight=1, queue_capacity=1),
        effective_now_ms=NOW,
    )

    assert not decision.immediate
    assert decision.position == 1


@pytest.mark.unit
def test_hire_blocked_when_staff_capacity_full(content):
    job = content.get_job("job_hire_junior_researcher")

    with pytest.raises(AdmissionDenied) as exc_info:
        admit(
            job,
            effective_cost=2000,
            pool=_pool(),
            snapshot=_snapshot(parallel_capacity=3, staff_capacity=1, staff_used=1),
            effective_now_ms=NOW,
        )

    assert exc_info.value.reason == "staff_capacity_full"


@pytest.mark.unit
def test_cooldown_blocks_until_available(content):
    job = content.get_job("job_freelance_gig")

    with pytest.raises(AdmissionDenied) as exc_info:
        admit(
            job,
            effective_cost=0,
            pool=_pool(),
            snapshot=_snapshot(),
            effective_now_ms=NOW,
            cooldown_until_ms=NOW + 30_000,
        )

    assert exc_info.value.reason == "cooldown_active"
    assert exc_info.value.details["remaining_ms"] == 30_000

    decision = admit(
        job,
        effective_cost=0,
        pool=_pool(),
        snapshot=_snapshot(),
        effective_now_ms=NOW + 30_000,
        cooldown_until_ms=NOW + 30_000,
    )
    assert decision.immediate


@pytest.mark.unit
def test_capacity_snapshot_counts_staff_hires_and_compute(content):
    in_progress = [
        Job(kind="hire", compute_cost=0),
        Job(kind="training", compute_cost=1),
    ]

    snapshot = capacity_snapshot(
        content,
        founder_type="business",
        progression=_progression(queue_rank=1, compute_rank=2),
        pool=_pool(staff_count=1),
        bonuses=OwnerBonuses(hire_queue=1),
        in_progress=in_progress,
        queued_count=1,
        queued_hires=1,
    )

    # queue value 2 + staff 1 + ops manager 1
    assert snapshot.parallel_capacity == 4
    assert snapshot.in_flight == 2
    assert snapshot.queue_capacity == 1
    assert snapshot.compute_capacity == 3
    assert snapshot.compute_used == 1
    # staff value 1 + business founder 1
    assert snapshot.staff_capacity == 2
    assert snapshot.staff_used == 3
