"""
Job router - job board, start requests and job listings.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog
from labsim.core.dependencies import get_content_catalog, get_db, get_owner_id, get_time_authority
from labsim.schemas.job import ActiveJobsRead, JobBoardEntry, JobRead, JobStart, StartJobResult
from labsim.services.job_lifecycle_service import JobLifecycleService
from labsim.services.lab_service import LabService
from labsim.services.time_authority import TimeAuthority

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("/board", response_model=List[JobBoardEntry])
async def job_board(
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
    time_authority: TimeAuthority = Depends(get_time_authority),
):
    """Every job with its lock state, effective cost and effective duration."""
    service = LabService(db, catalog, time_authority=time_authority)
    return await service.job_board(owner_id)


@router.post("", response_model=StartJobResult, status_code=status.HTTP_201_CREATED)
async def start_job(
    data: JobStart,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
    time_authority: TimeAuthority = Depends(get_time_authority),
):
    """
    Request a job.

    Denials come back as structured errors (admission, resources,
    prerequisites) and leave the owner's state untouched.
    """
    service = JobLifecycleService(db, catalog, time_authority=time_authority)
    return await service.start_job(owner_id, data.job_id)


@router.get("/active", response_model=ActiveJobsRead)
async def list_active_jobs(
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
    time_authority: TimeAuthority = Depends(get_time_authority),
):
    service = JobLifecycleService(db, catalog, time_authority=time_authority)
    jobs = await service.list_active(owner_id)
    return ActiveJobsRead(
        jobs=[JobRead.model_validate(job) for job in jobs],
        effective_now_ms=await time_authority.effective_now(owner_id),
    )


@router.get("/history", response_model=List[JobRead])
async def list_job_history(
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
    limit: int = Query(50, ge=1, le=200),
):
    service = JobLifecycleService(db, catalog)
    return await service.list_history(owner_id, limit=limit)


@router.get("/{job_id}", response_model=JobRead)
async def get_job(
    job_id: UUID,
    owner_id: str = Depends(get_owner_id),
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
):
    service = JobLifecycleService(db, catalog)
    return await service.get_job(owner_id, job_id)
