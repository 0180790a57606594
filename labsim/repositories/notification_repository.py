"""
Repository for notifications.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from labsim.models.notification import Notification


class NotificationRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, notification: Notification) -> Notification:
        self.db.add(notification)
        await self.db.flush()
        return notification

    async def has_event(self, owner_id: str, event_id: str) -> bool:
        result = await self.db.execute(
            select(Notification.id)
            .where(and_(Notification.owner_id == owner_id, Notification.event_id == event_id))
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def list_for_owner(
        self,
        owner_id: str,
        unread_only: bool = False,
        kind: Optional[str] = None,
        limit: int = 100,
    ) -> List[Notification]:
        query = select(Notification).where(Notification.owner_id == owner_id)
        if unread_only:
            query = query.where(Notification.read.is_(False))
        if kind:
            query = query.where(Notification.kind == kind)
        query = query.order_by(Notification.created_at_ms.desc()).limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def mark_read(self, owner_id: str, notification_id: UUID) -> Optional[Notification]:
        result = await self.db.execute(
            select(Notification).where(
                and_(Notification.owner_id == owner_id, Notification.id == notification_id)
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            return None
        notification.read = True
        await self.db.flush()
        return notification

    async def mark_all_read(self, owner_id: str) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(and_(Notification.owner_id == owner_id, Notification.read.is_(False)))
            .values(read=True)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount or 0
