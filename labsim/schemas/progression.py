"""
Pydantic schemas for upgrades and time warp.
"""

from typing import Optional

from pydantic import BaseModel

from labsim.core.catalog import UpgradeType


class UpgradePurchase(BaseModel):
    upgrade_type: UpgradeType


class UpgradeRead(BaseModel):
    id: str
    name: str
    description: str
    unit: str
    current_rank: int
    max_rank: int
    current_value: int
    next_value: Optional[int] = None
    can_upgrade: bool
    is_max_rank: bool
    lock_reason: Optional[str] = None
    required_level_for_next: Optional[int] = None


class UpgradePurchaseResult(BaseModel):
    upgrade_type: UpgradeType
    new_rank: int
    new_value: int
    upgrade_points: int


class TimeScaleUpdate(BaseModel):
    time_scale: int


class TimeWarpRead(BaseModel):
    allowed: bool
    time_scale: float
    effective_now_ms: int
    real_now_ms: int
    rescheduled_callbacks: int = 0
