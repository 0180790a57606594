"""
Shared read-schema fields.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class OwnerScopedRead(BaseModel):
    """Fields every owner-scoped row exposes: id, owner and bookkeeping timestamps."""

    id: UUID
    owner_id: str
    created_at: datetime
    updated_at: datetime

    # Build straight from ORM rows
    model_config = ConfigDict(from_attributes=True)
