"""
Shared FastAPI dependencies.
"""

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog, get_catalog
from labsim.db.session import get_db
from labsim.services.time_authority import TimeAuthority

__all__ = ["get_db", "get_owner_id", "get_content_catalog", "get_time_authority"]


async def get_owner_id(x_owner_id: str = Header(..., min_length=1, max_length=100)) -> str:
    """Owner id of the caller; identity is established upstream of this service."""
    return x_owner_id


def get_content_catalog() -> ContentCatalog:
    return get_catalog()


async def get_time_authority(db: AsyncSession = Depends(get_db)) -> TimeAuthority:
    return TimeAuthority(db)
