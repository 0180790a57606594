"""
Lab router - lab creation and owner state.
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog
from labsim.core.dependencies import get_content_catalog, get_db, get_owner_id, get_time_authority
from labsim.schemas.job import ActiveHireRead
from labsim.schemas.lab import LabCreate, LabRead, LabStateRead
from labsim.services.lab_service import LabService
from labsim.services.time_authority import TimeAuthority

router = APIRouter(prefix="/labs", tags=["labs"])


@router.post("", response_model=LabRead, status_code=status.HTTP_201_CREATED)
async def create_lab(
    data: LabCreate,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
):
    """Found a lab for the calling owner."""
    if data.owner_id != owner_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot create a lab for another owner")
    service = LabService(db, catalog)
    return await service.create_lab(data)


@router.get("/me", response_model=LabStateRead)
async def get_my_lab(
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
    time_authority: TimeAuthority = Depends(get_time_authority),
):
    """Progression, resources, unlocks and capacity in one read."""
    service = LabService(db, catalog, time_authority=time_authority)
    return await service.get_state(owner_id)


@router.get("/me/hires", response_model=List[ActiveHireRead])
async def list_active_hires(
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
    time_authority: TimeAuthority = Depends(get_time_authority),
):
    service = LabService(db, catalog, time_authority=time_authority)
    return await service.active_hires(owner_id)
