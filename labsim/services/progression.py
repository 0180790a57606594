"""
Level and experience rules.
"""

from dataclasses import dataclass

from labsim.core.catalog import ContentCatalog


@dataclass(frozen=True)
class LevelOutcome:
    level: int
    experience: int
    levels_gained: int
    upgrade_points_gained: int


def apply_experience(catalog: ContentCatalog, level: int, experience: int, gained: int) -> LevelOutcome:
    """
    Add experience and cascade level-ups.

    Experience is the progress toward the next level; each level-up consumes
    that level's threshold and carries the remainder forward, so one large
    reward can cross several thresholds. At max level experience keeps
    accumulating without further level-ups.
    """
    experience += max(0, gained)
    start_level = level
    while True:
        needed = catalog.xp_for_next_level(level)
        if needed is None or experience < needed:
            break
        experience -= needed
        level += 1

    levels_gained = level - start_level
    return LevelOutcome(
        level=level,
        experience=experience,
        levels_gained=levels_gained,
        upgrade_points_gained=levels_gained * catalog.upgrade_points_per_level,
    )
