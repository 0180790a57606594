"""
Notification model.

The engine only produces these; presentation reads them.
"""

import uuid
from typing import Optional

from sqlalchemy import JSON, BigInteger, Boolean, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from labsim.models.base_model import OwnerScopedModel


class NotificationKind:
    TASK_COMPLETE = "task_complete"
    HIRE_COMPLETE = "hire_complete"
    RESEARCH_COMPLETE = "research_complete"
    LEVEL_UP = "level_up"
    UNLOCK = "unlock"
    MILESTONE = "milestone"


class Notification(OwnerScopedModel):
    __tablename__ = "notifications"

    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    job_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    event_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    deep_link: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_notifications_owner_read", "owner_id", "read"),
        Index("ix_notifications_owner_event", "owner_id", "event_id"),
    )
