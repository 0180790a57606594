"""
Per-owner effective time.

Every engine timestamp (job start, completion deadline, cooldown) is in
"effective" milliseconds. Without a time warp effective time equals real
time. With one, effective time runs time_scale times faster from an anchor:

    effective = anchor_effective + (real - anchor_real) * scale

Changing the scale re-anchors at the current instant, so effective time is
continuous and never moves backward, and then re-derives the real fire time
of every pending callback from its fixed effective deadline.
"""

import logging
import math
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.config import settings
from labsim.errors import AdmissionDenied
from labsim.models.scheduling import TimeWarpSetting
from labsim.repositories.lab_repository import LabRepository
from labsim.repositories.scheduling_repository import SchedulingRepository
from labsim.services.callback_scheduler import CallbackScheduler
from labsim.utils.time import Clock, utc_now_ms

logger = logging.getLogger(__name__)


def to_effective(anchor_real_ms: int, anchor_effective_ms: int, scale: float, real_ms: int) -> int:
    return anchor_effective_ms + int((real_ms - anchor_real_ms) * scale)


def to_real(anchor_real_ms: int, anchor_effective_ms: int, scale: float, effective_ms: int) -> int:
    # Round up: a callback may fire late, never early
    return anchor_real_ms + math.ceil((effective_ms - anchor_effective_ms) / scale)


class TimeAuthority:
    def __init__(
        self,
        db: AsyncSession,
        clock: Clock = utc_now_ms,
        warp_enabled: Optional[bool] = None,
        allowed_owners: Optional[List[str]] = None,
        allowed_scales: Optional[List[int]] = None,
    ):
        self.db = db
        self.clock = clock
        self.repo = SchedulingRepository(db)
        self.warp_enabled = settings.TIME_WARP_ENABLED if warp_enabled is None else warp_enabled
        self.allowed_owners = settings.TIME_WARP_ALLOWED_OWNERS if allowed_owners is None else allowed_owners
        self.allowed_scales = settings.ALLOWED_TIME_SCALES if allowed_scales is None else allowed_scales

    def real_now(self) -> int:
        return self.clock()

    def is_warp_allowed(self, owner_id: str) -> bool:
        """Warp is a development facility: global switch plus optional owner allowlist."""
        if not self.warp_enabled:
            return False
        return not self.allowed_owners or owner_id in self.allowed_owners

    async def _active_setting(self, owner_id: str) -> Optional[TimeWarpSetting]:
        if not self.is_warp_allowed(owner_id):
            return None
        return await self.repo.get_time_warp(owner_id)

    async def time_scale(self, owner_id: str) -> float:
        setting = await self._active_setting(owner_id)
        return setting.time_scale if setting is not None else 1

    async def effective_now(self, owner_id: str) -> int:
        real = self.real_now()
        setting = await self._active_setting(owner_id)
        if setting is None:
            return real
        return to_effective(setting.anchor_real_ms, setting.anchor_effective_ms, setting.time_scale, real)

    async def real_time_for(self, owner_id: str, effective_ms: int) -> int:
        """Real instant at which the owner's effective clock reaches effective_ms (never in the past)."""
        real = self.real_now()
        setting = await self._active_setting(owner_id)
        if setting is None:
            return max(effective_ms, real)
        target = to_real(setting.anchor_real_ms, setting.anchor_effective_ms, setting.time_scale, effective_ms)
        return max(target, real)

    async def set_time_scale(self, owner_id: str, scale: int) -> int:
        """
        Change the owner's acceleration factor.

        Returns the number of pending callbacks that were rescheduled.
        Raises AdmissionDenied when warp is not allowed for the owner or the
        scale is outside the allowed set.
        """
        if not self.is_warp_allowed(owner_id):
            raise AdmissionDenied("time_warp_forbidden", "Time warp is not enabled for this owner")
        if scale not in self.allowed_scales:
            raise AdmissionDenied(
                "invalid_time_scale",
                f"Time scale must be one of {self.allowed_scales}",
                details={"allowed": list(self.allowed_scales), "requested": scale},
            )

        # Serialize against start/complete for the same owner
        await LabRepository(self.db).get_pool(owner_id, lock=True)

        real = self.real_now()
        setting = await self.repo.get_time_warp(owner_id, lock=True)
        if setting is None:
            setting = TimeWarpSetting(
                owner_id=owner_id,
                time_scale=scale,
                anchor_real_ms=real,
                anchor_effective_ms=real,
            )
            await self.repo.add_time_warp(setting)
        else:
            current_effective = to_effective(
                setting.anchor_real_ms, setting.anchor_effective_ms, setting.time_scale, real
            )
            setting.anchor_real_ms = real
            setting.anchor_effective_ms = current_effective
            setting.time_scale = scale
            await self.db.flush()

        logger.info(f"Owner {owner_id} time scale set to {scale}x")
        scheduler = CallbackScheduler(self.db)
        return await scheduler.reschedule_owner(
            owner_id, lambda effective_ms: self.real_time_for(owner_id, effective_ms)
        )
