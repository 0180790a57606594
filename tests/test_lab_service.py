import pytest

from labsim.errors import AppError, NotFound, PrerequisiteUnmet
from labsim.models.notification import NotificationKind
from labsim.schemas.lab import LabCreate
from labsim.services.lab_service import LabService
from labsim.services.notification_service import NotificationService
from labsim.services.research_service import ResearchService

OWNER = "owner-1"


@pytest.fixture
def labs(db, catalog, time_authority):
    return LabService(db, catalog, time_authority=time_authority)


@pytest.mark.asyncio
@pytest.mark.db
async def test_new_lab_starts_with_cash_and_starter_unlocks(labs, clock):
    await labs.create_lab(LabCreate(owner_id=OWNER, name="Deep Thought", founder_type="business"))

    state = await labs.get_state(OWNER)

    assert state.lab.name == "Deep Thought"
    assert state.lab.founder_type == "business"
    assert state.progression.level == 1
    assert state.resources.cash == 5000
    assert state.unlocks.blueprint_ids == ["bp_tts_3b"]
    assert "job_contract_blog_basic" in state.unlocks.job_ids
    assert state.capacity.parallel_capacity == 1
    assert state.capacity.queue_capacity == 0
    # Business founders get one extra staff seat
    assert state.capacity.staff_capacity == 2
    assert state.effective_now_ms == clock()


@pytest.mark.asyncio
@pytest.mark.db
async def test_second_lab_for_owner_is_rejected(labs):
    await labs.create_lab(LabCreate(owner_id=OWNER, name="One", founder_type="technical"))

    with pytest.raises(AppError) as exc_info:
        await labs.create_lab(LabCreate(owner_id=OWNER, name="Two", founder_type="technical"))

    assert exc_info.value.status_code == 409
    assert exc_info.value.code == "lab_exists"


@pytest.mark.asyncio
@pytest.mark.db
async def test_state_for_unknown_owner(labs):
    with pytest.raises(NotFound):
        await labs.get_state("nobody")


@pytest.mark.asyncio
@pytest.mark.db
async def test_job_board_shows_effective_values(labs, lifecycle, make_lab, clock):
    await make_lab(money_multiplier_rank=4)
    gig = await lifecycle.start_job(OWNER, "job_freelance_gig")
    clock.advance(60 * 1000)
    await lifecycle.complete_job(gig.job_id)

    board = {entry.id: entry for entry in await labs.job_board(OWNER)}

    training = board["job_train_tts_3b"]
    assert training.is_unlocked
    assert training.lock_reason is None
    # 500 / 1.20
    assert training.effective_cost == 416
    assert training.effective_duration_ms == 300_000

    contract = board["job_contract_blog_basic"]
    assert contract.reward_cash == 540

    assert board["job_train_vlm_7b"].lock_reason == "Requires level 2"
    assert board["job_hire_sales_lead"].lock_reason == "Requires level 2"
    assert board["job_freelance_gig"].cooldown_remaining_ms == 10 * 60 * 1000


@pytest.mark.asyncio
@pytest.mark.db
@pytest.mark.parametrize(
    "level, requirement, reason",
    [(1, "level", "Requires level 2"), (2, "unlock", "Unlock via Research")],
)
async def test_job_board_reason_matches_start_denial(labs, lifecycle, make_lab, level, requirement, reason):
    await make_lab(level=level)

    board = {entry.id: entry for entry in await labs.job_board(OWNER)}
    with pytest.raises(PrerequisiteUnmet) as exc_info:
        await lifecycle.start_job(OWNER, "job_train_vlm_7b")

    assert board["job_train_vlm_7b"].lock_reason == reason
    assert exc_info.value.requirement == requirement


@pytest.mark.asyncio
@pytest.mark.db
async def test_active_hires_list_running_bonuses(labs, lifecycle, make_lab, clock):
    await make_lab()
    hire = await lifecycle.start_job(OWNER, "job_hire_junior_researcher")
    clock.advance(60 * 1000)

    (active,) = await labs.active_hires(OWNER)

    assert active.job_id == hire.job_id
    assert active.stat == "speed"
    assert active.bonus == 10
    assert active.remaining_ms == 9 * 60 * 1000


@pytest.mark.asyncio
@pytest.mark.db
async def test_research_tree_reports_node_states(db, catalog, lifecycle, make_lab):
    await make_lab(level=3, research_points=500)
    await lifecycle.purchase_research(OWNER, "rn_perk_research_speed_1")

    tree = {node.id: node for node in await ResearchService(db, catalog).tree(OWNER)}

    assert tree["rn_cap_contracts_basic"].is_purchased
    assert tree["rn_perk_research_speed_1"].is_in_progress
    assert tree["rn_perk_research_speed_1"].lock_reason == "Researching"
    assert tree["rn_bp_unlock_vlm_7b"].is_available
    assert tree["rn_cap_contracts_vision"].lock_reason == "Requires: 7B VLM Blueprint"
    assert tree["rn_bp_unlock_llm_17b"].lock_reason == "Requires level 7"


@pytest.mark.asyncio
@pytest.mark.db
async def test_notifications_can_be_marked_read(db, catalog, clock):
    service = NotificationService(db, catalog)
    first = await service.notify(OWNER, NotificationKind.TASK_COMPLETE, "Done", "+$200", clock())
    await service.notify(OWNER, NotificationKind.LEVEL_UP, "Level 2!", "Nice.", clock() + 1)

    read = await service.mark_read(OWNER, first.id)
    assert read.read
    assert [n.title for n in await service.list_notifications(OWNER, unread_only=True)] == ["Level 2!"]

    assert await service.mark_all_read(OWNER) == 1
    assert await service.list_notifications(OWNER, unread_only=True) == []

    with pytest.raises(NotFound):
        await service.mark_read("someone-else", first.id)


@pytest.mark.asyncio
@pytest.mark.db
async def test_milestones_fire_once(db, catalog, clock):
    service = NotificationService(db, catalog)

    first = await service.emit_milestone(OWNER, "first_model", clock())
    second = await service.emit_milestone(OWNER, "first_model", clock())

    assert first.event_id == "evt_first_model"
    assert first.deep_link == {"view": "lab", "target": "models"}
    assert second is None
    assert await service.emit_milestone(OWNER, "not_a_trigger", clock()) is None
