"""
Notification router.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog
from labsim.core.dependencies import get_content_catalog, get_db, get_owner_id
from labsim.schemas.notification import NotificationRead
from labsim.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationRead])
async def list_notifications(
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
    unread_only: bool = False,
    kind: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
):
    service = NotificationService(db, catalog)
    return await service.list_notifications(owner_id, unread_only=unread_only, kind=kind, limit=limit)


@router.post("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: UUID,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
):
    service = NotificationService(db, catalog)
    return await service.mark_read(owner_id, notification_id)


@router.post("/read-all")
async def mark_all_notifications_read(
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
):
    service = NotificationService(db, catalog)
    return {"updated": await service.mark_all_read(owner_id)}
