"""Health check router."""

import logging
from pathlib import Path
from typing import Optional

from alembic.config import Config
from alembic.script import ScriptDirectory
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from labsim.core.catalog import ContentCatalog
from labsim.core.dependencies import get_content_catalog, get_db
from labsim.repositories.scheduling_repository import SchedulingRepository
from labsim.utils.time import utc_now_ms

logger = logging.getLogger(__name__)

router = APIRouter()

PROJECT_ROOT = Path(__file__).resolve().parents[2]
# Callbacks this far past their fire time mean no worker is draining the table
STALE_CALLBACK_MS = 60 * 1000


def migration_head() -> Optional[str]:
    """Newest revision shipped with the code, or None when alembic/ is absent."""
    if not (PROJECT_ROOT / "alembic").is_dir():
        return None
    config = Config(str(PROJECT_ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    return ScriptDirectory.from_config(config).get_current_head()


@router.get("/health")
async def health_check(
    db: AsyncSession = Depends(get_db),
    catalog: ContentCatalog = Depends(get_content_catalog),
):
    """Database, schema revision, catalog and completion backlog in one probe."""
    report = {
        "api_ok": True,
        "db_ok": False,
        "migration_current": None,
        "migration_head": migration_head(),
        "catalog_jobs": len(catalog.jobs),
        "catalog_research_nodes": len(catalog.research_nodes),
        "overdue_callbacks": None,
    }

    try:
        await db.execute(text("SELECT 1"))
        report["db_ok"] = True
        report["overdue_callbacks"] = len(
            await SchedulingRepository(db).list_due_ids(utc_now_ms() - STALE_CALLBACK_MS, limit=1000)
        )
    except SQLAlchemyError as exc:
        logger.warning(f"Health check query failed: {exc}")
        report["migration_ok"] = False
        return report

    try:
        result = await db.execute(text("SELECT version_num FROM alembic_version"))
        report["migration_current"] = result.scalar_one_or_none()
    except SQLAlchemyError:
        # Unmigrated database; PostgreSQL aborts the transaction on the missing table
        await db.rollback()

    report["migration_ok"] = bool(report["migration_current"]) and (
        report["migration_current"] == report["migration_head"]
    )
    return report
