"""
Research router - tree state and node purchases.
"""

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog
from labsim.core.dependencies import get_content_catalog, get_db, get_owner_id, get_time_authority
from labsim.schemas.job import StartJobResult
from labsim.schemas.research import ResearchNodeState, ResearchPurchaseRequest
from labsim.services.job_lifecycle_service import JobLifecycleService
from labsim.services.research_service import ResearchService
from labsim.services.time_authority import TimeAuthority

router = APIRouter(prefix="/research", tags=["research"])


@router.get("/tree", response_model=List[ResearchNodeState])
async def research_tree(
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
):
    service = ResearchService(db, catalog)
    return await service.tree(owner_id)


@router.post("/purchases", response_model=StartJobResult, status_code=status.HTTP_201_CREATED)
async def purchase_node(
    data: ResearchPurchaseRequest,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
    time_authority: TimeAuthority = Depends(get_time_authority),
):
    """Start researching a node; its unlocks apply when the research job completes."""
    service = JobLifecycleService(db, catalog, time_authority=time_authority)
    return await service.purchase_research(owner_id, data.node_id)
