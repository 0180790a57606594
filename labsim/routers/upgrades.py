"""
Upgrade router.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog
from labsim.core.dependencies import get_content_catalog, get_db, get_owner_id, get_time_authority
from labsim.schemas.progression import UpgradePurchase, UpgradePurchaseResult, UpgradeRead
from labsim.services.time_authority import TimeAuthority
from labsim.services.upgrade_service import UpgradeService

router = APIRouter(prefix="/upgrades", tags=["upgrades"])


@router.get("", response_model=List[UpgradeRead])
async def list_upgrades(
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
):
    service = UpgradeService(db, catalog)
    return await service.list_upgrades(owner_id)


@router.post("", response_model=UpgradePurchaseResult)
async def purchase_upgrade(
    data: UpgradePurchase,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
    time_authority: TimeAuthority = Depends(get_time_authority),
):
    service = UpgradeService(db, catalog, time_authority=time_authority)
    return await service.purchase(owner_id, data.upgrade_type)
