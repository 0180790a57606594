"""
Shared model bases.

Every owner-scoped table carries a UUID primary key, the owning player's id,
and created/updated timestamps.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from labsim.db.base import Base
from labsim.utils.time import utc_now


class OwnerScopedModel(Base):
    """Abstract base for rows that belong to exactly one owner."""

    __abstract__ = True

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    # Python-side defaults keep the values loaded after flush (no async lazy refresh)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
        onupdate=utc_now,
    )
