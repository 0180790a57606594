"""
Time warp settings and scheduled completion callbacks.
"""

import uuid
from typing import Optional

from sqlalchemy import JSON, BigInteger, Float, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from labsim.models.base_model import OwnerScopedModel


class TimeWarpSetting(OwnerScopedModel):
    """
    Per-owner acceleration anchor.

    effective = anchor_effective_ms + (real - anchor_real_ms) * time_scale
    """

    __tablename__ = "time_warp_settings"

    time_scale: Mapped[float] = mapped_column(Float, nullable=False, default=1)
    anchor_real_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    anchor_effective_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (UniqueConstraint("owner_id", name="uq_time_warp_settings_owner"),)


class CallbackStatus:
    PENDING = "pending"
    DELIVERED = "delivered"
    # Gave up after CALLBACK_MAX_ATTEMPTS failed deliveries
    FAILED = "failed"


class ScheduledCallback(OwnerScopedModel):
    """
    One future callback per job.

    effective_deadline_ms is fixed; fire_at_ms is re-derived from it whenever
    the owner's time scale changes.
    """

    __tablename__ = "scheduled_callbacks"

    job_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    handler: Mapped[str] = mapped_column(String(100), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    effective_deadline_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    fire_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=CallbackStatus.PENDING)
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    delivered_at_ms: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)

    __table_args__ = (
        UniqueConstraint("job_id", name="uq_scheduled_callbacks_job"),
        Index("ix_scheduled_callbacks_status_fire", "status", "fire_at_ms"),
    )
