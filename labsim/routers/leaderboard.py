"""
Leaderboard router - models, labs and visibility.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog
from labsim.core.dependencies import get_content_catalog, get_db, get_owner_id
from labsim.schemas.leaderboard import (
    ArtifactRead,
    BlueprintAggregate,
    LabLeaderboardSlice,
    ModelLeaderboardSlice,
    VisibilityUpdate,
)
from labsim.services.leaderboard_service import LeaderboardService

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("/labs", response_model=LabLeaderboardSlice)
async def lab_leaderboard(
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
):
    """Labs ranked by lab score; the slice is centered on the caller."""
    service = LeaderboardService(db, catalog)
    return await service.lab_leaderboard(viewer_id=owner_id)


@router.get("/models/{blueprint_id}", response_model=ModelLeaderboardSlice)
async def model_leaderboard(
    blueprint_id: str,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
):
    service = LeaderboardService(db, catalog)
    return await service.model_leaderboard(blueprint_id, viewer_id=owner_id)


@router.get("/owners/{target_owner_id}/models", response_model=List[BlueprintAggregate])
async def owner_models(
    target_owner_id: str,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
):
    """Per-blueprint model aggregates; private versions only for their owner."""
    service = LeaderboardService(db, catalog)
    return await service.owner_models(target_owner_id, viewer_id=owner_id)


@router.patch("/models/{artifact_id}/visibility", response_model=ArtifactRead)
async def set_model_visibility(
    artifact_id: UUID,
    data: VisibilityUpdate,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
):
    service = LeaderboardService(db, catalog)
    return await service.set_visibility(owner_id, artifact_id, data.visibility)
