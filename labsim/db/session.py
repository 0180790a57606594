"""
Database engine and session handling.

PostgreSQL (asyncpg) in deployments; SQLite (aiosqlite) for local runs and
tests. One session is one transaction: the session owner commits on success
and rolls back on any exception, services only flush.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from labsim.core.config import settings


def _engine_options(url: str) -> dict:
    options = {"echo": settings.DEBUG}  # DEBUG=True prints SQL
    if url.startswith("sqlite"):
        # aiosqlite runs the connection in a worker thread
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_pre_ping"] = True
        options["pool_size"] = settings.DB_POOL_SIZE
    return options


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,  # Rows stay readable after commit
)


@asynccontextmanager
async def get_async_session_context(
    session_factory: async_sessionmaker = async_session_maker,
) -> AsyncGenerator[AsyncSession, None]:
    """One transaction outside a request (worker, scripts)."""
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency: one transaction per request.

    Engine denials raised by a handler roll the whole request back, so a
    refused start never leaves a partial debit behind.
    """
    async with get_async_session_context() as session:
        yield session
