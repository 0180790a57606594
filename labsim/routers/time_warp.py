"""
Time warp router - development-only clock acceleration.
"""

from fastapi import APIRouter, Depends

from labsim.core.dependencies import get_owner_id, get_time_authority
from labsim.schemas.progression import TimeScaleUpdate, TimeWarpRead
from labsim.services.time_authority import TimeAuthority

router = APIRouter(prefix="/dev/time-warp", tags=["dev"])


@router.get("", response_model=TimeWarpRead)
async def get_time_warp(
    owner_id: str = Depends(get_owner_id),
    time_authority: TimeAuthority = Depends(get_time_authority),
):
    return TimeWarpRead(
        allowed=time_authority.is_warp_allowed(owner_id),
        time_scale=await time_authority.time_scale(owner_id),
        effective_now_ms=await time_authority.effective_now(owner_id),
        real_now_ms=time_authority.real_now(),
    )


@router.put("", response_model=TimeWarpRead)
async def set_time_warp(
    data: TimeScaleUpdate,
    owner_id: str = Depends(get_owner_id),
    time_authority: TimeAuthority = Depends(get_time_authority),
):
    """Change the owner's time scale; pending completions are re-timed."""
    rescheduled = await time_authority.set_time_scale(owner_id, data.time_scale)
    return TimeWarpRead(
        allowed=True,
        time_scale=await time_authority.time_scale(owner_id),
        effective_now_ms=await time_authority.effective_now(owner_id),
        real_now_ms=time_authority.real_now(),
        rescheduled_callbacks=rescheduled,
    )
