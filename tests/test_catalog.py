import copy
import json

import pytest
from pydantic import ValidationError

from labsim.core.catalog import ContentCatalog, CostResource, JobKind, UpgradeType, load_catalog
from labsim.core.default_content import DEFAULT_CONTENT


@pytest.mark.unit
def test_default_catalog_loads():
    catalog = load_catalog()

    assert catalog.get_job("job_train_tts_3b").kind == JobKind.TRAINING
    assert catalog.get_job("job_hire_junior_researcher").kind == JobKind.HIRE
    assert catalog.get_job("nope") is None
    assert {node.id for node in catalog.starter_nodes()} == {"rn_cap_contracts_basic", "rn_bp_unlock_tts_3b"}


@pytest.mark.unit
def test_research_nodes_resolve_to_research_jobs():
    job = load_catalog().get_job("rn_perk_research_speed_1")

    assert job.kind == JobKind.RESEARCH
    assert job.cost_resource == CostResource.RESEARCH_POINTS
    assert job.base_cost == 120
    assert job.duration_ms == 2 * 60 * 1000
    assert job.rewards.experience == 20


@pytest.mark.unit
def test_upgrade_values_and_gates():
    catalog = load_catalog()

    assert catalog.upgrade_value(UpgradeType.QUEUE, 0) == 1
    assert catalog.upgrade_value(UpgradeType.SPEED, 3) == 15
    assert catalog.upgrade_value(UpgradeType.MONEY_MULTIPLIER, 2) == 110
    assert catalog.queue_capacity(0) == 0
    assert catalog.queue_capacity(2) == 2
    assert catalog.required_level_for_rank(2) == 1
    assert catalog.required_level_for_rank(3) == 6
    assert catalog.required_level_for_rank(7) == 16
    assert catalog.is_rank_unlocked(5, 11)
    assert not catalog.is_rank_unlocked(5, 10)


@pytest.mark.unit
def test_xp_for_next_level():
    catalog = load_catalog()

    assert catalog.xp_for_next_level(1) == 100
    assert catalog.xp_for_next_level(19) == 5320
    assert catalog.xp_for_next_level(20) is None


@pytest.mark.unit
def test_prerequisite_cycle_is_rejected():
    content = copy.deepcopy(DEFAULT_CONTENT)
    for node in content["research_nodes"]:
        if node["id"] == "rn_bp_unlock_llm_3b":
            node["prerequisites"] = ["rn_bp_unlock_llm_17b"]

    with pytest.raises(ValidationError, match="cycle"):
        ContentCatalog.model_validate(content)


@pytest.mark.unit
def test_unknown_prerequisite_is_rejected():
    content = copy.deepcopy(DEFAULT_CONTENT)
    content["research_nodes"][2]["prerequisites"] = ["rn_missing"]

    with pytest.raises(ValidationError, match="unknown node rn_missing"):
        ContentCatalog.model_validate(content)


@pytest.mark.unit
def test_duplicate_job_id_is_rejected():
    content = copy.deepcopy(DEFAULT_CONTENT)
    content["jobs"].append(copy.deepcopy(content["jobs"][0]))

    with pytest.raises(ValidationError, match="duplicate job id"):
        ContentCatalog.model_validate(content)


@pytest.mark.unit
def test_catalog_loads_from_json_file(tmp_path):
    content = copy.deepcopy(DEFAULT_CONTENT)
    content["starting_cash"] = 1234
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(content), encoding="utf-8")

    catalog = load_catalog(str(path))

    assert catalog.starting_cash == 1234
    assert catalog.xp_for_next_level(1) == 100
