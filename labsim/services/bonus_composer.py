"""
Bonus composition.

Every job's duration, cost and payout is derived from catalog base values and
the owner's current bonus sources:

    duration = base / (1 + speed% / 100)        (hire jobs excluded)
    cost     = floor(base / money_multiplier)
    reward   = floor(base * money_multiplier)

Speed sources add as percentages: founder, speed upgrade, research perks,
active hires and level. The money multiplier is a percentage starting at 100
with founder, upgrade, research and active-hire percentages added on top.

All functions here are pure; arithmetic goes through Fraction so that e.g.
100 * 115% is exactly 115 rather than 114.99999999999999.
"""

import math
from dataclasses import dataclass
from fractions import Fraction
from typing import Iterable, Optional

from labsim.core.catalog import (
    ContentCatalog,
    FounderType,
    HireEffect,
    HireStat,
    JobDefinition,
    JobKind,
    UpgradeType,
)


def _fraction(value: float) -> Fraction:
    return Fraction(value).limit_denominator(1_000_000)


@dataclass(frozen=True)
class OwnerBonuses:
    """Snapshot of all bonus sources for one owner at one instant."""

    founder_speed: float = 0
    founder_money: float = 0
    upgrade_speed: float = 0
    # Percent above the 100% baseline
    upgrade_money: float = 0
    research_speed: float = 0
    research_money: float = 0
    hire_speed: float = 0
    hire_money: float = 0
    hire_queue: int = 0
    level_speed: float = 0

    @property
    def speed_percent(self) -> Fraction:
        return sum(
            (
                _fraction(value)
                for value in (
                    self.founder_speed,
                    self.upgrade_speed,
                    self.research_speed,
                    self.hire_speed,
                    self.level_speed,
                )
            ),
            Fraction(0),
        )

    @property
    def money_percent(self) -> Fraction:
        return Fraction(100) + sum(
            (
                _fraction(value)
                for value in (self.founder_money, self.upgrade_money, self.research_money, self.hire_money)
            ),
            Fraction(0),
        )

    @property
    def money_multiplier(self) -> float:
        return float(self.money_percent / 100)


def effective_duration(base_duration_ms: int, kind: JobKind, bonuses: OwnerBonuses) -> int:
    """Scaled duration in ms, rounded to the nearest ms. Hire jobs never scale."""
    if kind == JobKind.HIRE:
        return base_duration_ms
    factor = 1 + bonuses.speed_percent / 100
    if factor <= 0:
        raise ValueError(f"speed bonus {float(bonuses.speed_percent)}% leaves no positive duration factor")
    return max(1, round(Fraction(base_duration_ms) / factor))


def effective_cost(base_cost: int, bonuses: OwnerBonuses) -> int:
    if base_cost <= 0:
        return 0
    percent = bonuses.money_percent
    if percent <= 0:
        raise ValueError("money multiplier must be positive")
    return max(0, math.floor(Fraction(base_cost) * 100 / percent))


def effective_reward(base_reward: int, bonuses: OwnerBonuses) -> int:
    if base_reward <= 0:
        return 0
    return max(0, math.floor(Fraction(base_reward) * bonuses.money_percent / 100))


def compose_bonuses(
    catalog: ContentCatalog,
    *,
    founder_type: Optional[str],
    level: int,
    speed_rank: int,
    money_multiplier_rank: int,
    research_speed: float,
    research_money: float,
    active_hires: Iterable[JobDefinition] = (),
) -> OwnerBonuses:
    """Collect bonus sources from owner state into an OwnerBonuses snapshot."""
    founder = catalog.founders.get(FounderType(founder_type)) if founder_type else None

    hire_speed = hire_money = 0.0
    hire_queue = 0
    for job in active_hires:
        effect = job.effect
        if not isinstance(effect, HireEffect):
            continue
        if effect.stat == HireStat.SPEED:
            hire_speed += effect.bonus
        elif effect.stat == HireStat.MONEY_MULTIPLIER:
            hire_money += effect.bonus
        elif effect.stat == HireStat.QUEUE:
            hire_queue += effect.bonus

    return OwnerBonuses(
        founder_speed=founder.speed_percent if founder else 0,
        founder_money=founder.money_percent if founder else 0,
        upgrade_speed=catalog.upgrade_value(UpgradeType.SPEED, speed_rank),
        upgrade_money=catalog.upgrade_value(UpgradeType.MONEY_MULTIPLIER, money_multiplier_rank) - 100,
        research_speed=research_speed,
        research_money=research_money,
        hire_speed=hire_speed,
        hire_money=hire_money,
        hire_queue=hire_queue,
        level_speed=max(0, level - 1) * catalog.level_speed_percent_per_level,
    )
