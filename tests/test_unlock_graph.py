import pytest

from labsim.core.catalog import load_catalog
from labsim.services.bonus_composer import OwnerBonuses
from labsim.services.unlock_graph import (
    PerkDelta,
    UnlockSet,
    apply_unlock,
    is_available,
    is_purchased,
    perk_delta,
    starter_unlocks,
)


@pytest.fixture
def content():
    return load_catalog()


def _availability(content, node_id, level=1, purchased=(), research_points=0, bonuses=None):
    return is_available(
        content.get_node(node_id),
        catalog=content,
        level=level,
        purchased_ids=purchased,
        research_points=research_points,
        bonuses=bonuses or OwnerBonuses(),
    )


@pytest.mark.unit
def test_starter_unlocks_cover_free_root_nodes(content):
    unlocks = starter_unlocks(content)

    assert "job_contract_blog_basic" in unlocks.job_ids
    assert "job_train_tts_3b" in unlocks.job_ids
    assert unlocks.blueprint_ids == frozenset({"bp_tts_3b"})
    assert unlocks.system_flags == frozenset()


@pytest.mark.unit
def test_apply_unlock_twice_changes_nothing(content):
    node = content.get_node("rn_bp_unlock_vlm_7b")

    once = apply_unlock(node, UnlockSet())
    twice = apply_unlock(node, once)

    assert twice == once
    assert once.blueprint_ids == frozenset({"bp_vlm_7b"})
    assert once.job_ids == frozenset({"job_train_vlm_7b"})


@pytest.mark.unit
def test_level_is_checked_before_prerequisites(content):
    result = _availability(content, "rn_cap_contracts_vision", level=2)

    assert not result.available
    assert result.requirement == "level"
    assert result.reason == "Requires level 3"


@pytest.mark.unit
def test_prerequisites_are_checked_before_affordability(content):
    result = _availability(content, "rn_cap_contracts_vision", level=3, research_points=0)

    assert result.requirement == "prerequisite"
    assert result.missing_prerequisites == ("rn_bp_unlock_vlm_7b",)
    assert "7B VLM Blueprint" in result.reason


@pytest.mark.unit
def test_affordability_reports_shortfall(content):
    result = _availability(
        content,
        "rn_cap_contracts_vision",
        level=3,
        purchased={"rn_bp_unlock_vlm_7b"},
        research_points=100,
    )

    assert result.requirement == "affordability"
    assert result.shortfall == 120


@pytest.mark.unit
def test_available_when_every_check_passes(content):
    result = _availability(
        content,
        "rn_cap_contracts_vision",
        level=3,
        purchased={"rn_bp_unlock_vlm_7b"},
        research_points=220,
    )

    assert result.available
    assert result.effective_cost == 220


@pytest.mark.unit
def test_affordability_uses_effective_cost(content):
    result = _availability(
        content,
        "rn_cap_contracts_vision",
        level=3,
        purchased={"rn_bp_unlock_vlm_7b"},
        research_points=183,
        bonuses=OwnerBonuses(founder_money=20),
    )

    assert result.available
    assert result.effective_cost == 183


@pytest.mark.unit
def test_starter_nodes_count_as_purchased(content):
    assert is_purchased(content.get_node("rn_cap_contracts_basic"), [])
    assert not is_purchased(content.get_node("rn_perk_research_speed_1"), [])


@pytest.mark.unit
def test_perk_delta(content):
    assert perk_delta(content.get_node("rn_perk_research_speed_1")) == PerkDelta(speed=10)
    assert perk_delta(content.get_node("rn_perk_money_multiplier_1")) == PerkDelta(money=10)
    assert perk_delta(content.get_node("rn_bp_unlock_vlm_7b")) == PerkDelta()
