"""
Pydantic schemas for notifications.
"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from labsim.schemas.base import OwnerScopedRead


class NotificationRead(OwnerScopedRead):
    kind: str
    title: str
    message: str
    read: bool
    created_at_ms: int
    job_id: Optional[UUID] = None
    event_id: Optional[str] = None
    deep_link: Optional[dict] = None
