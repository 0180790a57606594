"""
Main FastAPI application.

This is the entry point for the API server.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from labsim.core.catalog import get_catalog
from labsim.core.config import settings
from labsim.errors import AppError, app_error_handler
from labsim.routers import health, jobs, labs, leaderboard, notifications, research, time_warp, upgrades

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for the FastAPI app.

    Configures logging and validates the content catalog before serving, so a
    broken catalog fails at startup rather than on the first request.
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    catalog = get_catalog()
    logger.info(
        f"Starting {settings.APP_NAME} with {len(catalog.jobs)} jobs and "
        f"{len(catalog.research_nodes)} research nodes"
    )

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")


# Create the FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Progression and task scheduling engine for the AI lab game",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_exception_handler(AppError, app_error_handler)

# Include routers (API endpoints)
app.include_router(health.router, tags=["Health"])
app.include_router(labs.router)
app.include_router(jobs.router)
app.include_router(research.router)
app.include_router(upgrades.router)
app.include_router(leaderboard.router)
app.include_router(notifications.router)
app.include_router(time_warp.router)


# Root endpoint
@app.get("/")
async def root():
    return {"name": settings.APP_NAME, "docs": "/docs"}
