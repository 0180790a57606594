import pytest

from labsim.core.catalog import load_catalog
from labsim.services.progression import apply_experience


@pytest.fixture
def content():
    return load_catalog()


@pytest.mark.unit
def test_experience_below_threshold_keeps_level(content):
    outcome = apply_experience(content, level=1, experience=50, gained=40)

    assert outcome.level == 1
    assert outcome.experience == 90
    assert outcome.levels_gained == 0
    assert outcome.upgrade_points_gained == 0


@pytest.mark.unit
def test_exact_threshold_levels_up_with_zero_remainder(content):
    outcome = apply_experience(content, level=1, experience=60, gained=40)

    assert outcome.level == 2
    assert outcome.experience == 0
    assert outcome.upgrade_points_gained == 1


@pytest.mark.unit
def test_large_reward_cascades_with_rollover(content):
    # 100 to reach L2, 220 to reach L3, 50 left over
    outcome = apply_experience(content, level=1, experience=0, gained=370)

    assert outcome.level == 3
    assert outcome.experience == 50
    assert outcome.levels_gained == 2
    assert outcome.upgrade_points_gained == 2


@pytest.mark.unit
def test_max_level_accumulates_without_leveling(content):
    outcome = apply_experience(content, level=content.max_level, experience=10, gained=1000)

    assert outcome.level == content.max_level
    assert outcome.experience == 1010
    assert outcome.levels_gained == 0
