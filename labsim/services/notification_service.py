"""
Notification service - business logic for the owner's inbox.
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog
from labsim.errors import NotFound
from labsim.models.notification import Notification, NotificationKind
from labsim.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db: AsyncSession, catalog: ContentCatalog):
        self.db = db
        self.catalog = catalog
        self.repo = NotificationRepository(db)

    async def notify(
        self,
        owner_id: str,
        kind: str,
        title: str,
        message: str,
        now_ms: int,
        job_id: Optional[UUID] = None,
        event_id: Optional[str] = None,
        deep_link: Optional[dict] = None,
    ) -> Notification:
        notification = Notification(
            owner_id=owner_id,
            kind=kind,
            title=title,
            message=message,
            read=False,
            created_at_ms=now_ms,
            job_id=job_id,
            event_id=event_id,
            deep_link=deep_link,
        )
        return await self.repo.add(notification)

    async def emit_milestone(self, owner_id: str, trigger: str, now_ms: int) -> Optional[Notification]:
        """Emit the catalog inbox event for ``trigger`` unless the owner already has it."""
        event = self.catalog.inbox_event(trigger)
        if event is None:
            return None
        if await self.repo.has_event(owner_id, event.event_id):
            return None
        logger.info(f"Milestone {event.event_id} reached by owner {owner_id}")
        return await self.notify(
            owner_id,
            NotificationKind.MILESTONE,
            event.title,
            event.message,
            now_ms,
            event_id=event.event_id,
            deep_link=event.deep_link.model_dump(exclude_none=True) if event.deep_link else None,
        )

    async def list_notifications(
        self,
        owner_id: str,
        unread_only: bool = False,
        kind: Optional[str] = None,
        limit: int = 100,
    ) -> List[Notification]:
        return await self.repo.list_for_owner(owner_id, unread_only=unread_only, kind=kind, limit=limit)

    async def mark_read(self, owner_id: str, notification_id: UUID) -> Notification:
        notification = await self.repo.mark_read(owner_id, notification_id)
        if notification is None:
            raise NotFound(f"Notification {notification_id} not found")
        return notification

    async def mark_all_read(self, owner_id: str) -> int:
        return await self.repo.mark_all_read(owner_id)
