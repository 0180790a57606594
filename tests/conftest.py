"""
Pytest configuration and shared fixtures.

Engine tests run against in-memory SQLite (aiosqlite + StaticPool), a fake
clock and a seeded RNG. Tests marked ``postgres`` need a real database and
are skipped unless TEST_POSTGRES_URL is set.
"""

import copy
import os
import random

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import labsim.models  # noqa: F401
from labsim.core.catalog import ContentCatalog
from labsim.core.default_content import DEFAULT_CONTENT
from labsim.db.base import Base
from labsim.repositories.lab_repository import LabRepository
from labsim.schemas.lab import LabCreate
from labsim.services.job_lifecycle_service import JobLifecycleService
from labsim.services.lab_service import LabService
from labsim.services.time_authority import TimeAuthority

START_MS = 1_700_000_000_000
MINUTE_MS = 60 * 1000


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no database")
    config.addinivalue_line("markers", "db: uses the in-memory SQLite database")
    config.addinivalue_line("markers", "postgres: requires TEST_POSTGRES_URL")


def pytest_collection_modifyitems(config, items):
    run_postgres = bool(os.environ.get("TEST_POSTGRES_URL"))
    skip_postgres = pytest.mark.skip(reason="postgres tests skipped; set TEST_POSTGRES_URL to enable")

    for item in items:
        if "postgres" in item.keywords and not run_postgres:
            item.add_marker(skip_postgres)


class FakeClock:
    """Real-time source the tests move by hand."""

    def __init__(self, start_ms: int = START_MS):
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> int:
        self.now_ms += ms
        return self.now_ms


def build_catalog(**overrides) -> ContentCatalog:
    """
    Built-in content with a neutral technical founder.

    Keyword overrides replace top-level content keys.
    """
    content = copy.deepcopy(DEFAULT_CONTENT)
    content["founders"]["technical"] = {
        "speed_percent": 0,
        "money_percent": 0,
        "staff_bonus": 0,
        "model_score_multiplier": 1.0,
    }
    content.update(overrides)
    return ContentCatalog.model_validate(content)


@pytest.fixture
def catalog() -> ContentCatalog:
    return build_catalog()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def time_authority(db, clock) -> TimeAuthority:
    return TimeAuthority(db, clock=clock, warp_enabled=True, allowed_owners=[], allowed_scales=[1, 5, 20, 100])


@pytest.fixture
def lifecycle(db, catalog, time_authority, rng) -> JobLifecycleService:
    return JobLifecycleService(db, catalog, time_authority=time_authority, rng=rng)


async def create_lab(db, catalog, owner_id: str = "owner-1", founder_type: str = "technical", **state):
    """
    Found a lab and apply direct state overrides.

    Keys matching OwnerProgression or ResourcePool columns (level, queue_rank,
    cash, research_points, ...) are set on the respective row.
    """
    await LabService(db, catalog).create_lab(
        LabCreate(owner_id=owner_id, name=f"Lab {owner_id}", founder_type=founder_type)
    )
    labs = LabRepository(db)
    progression = await labs.get_progression(owner_id)
    pool = await labs.get_pool(owner_id)
    for key, value in state.items():
        if hasattr(progression, key):
            setattr(progression, key, value)
        elif hasattr(pool, key):
            setattr(pool, key, value)
        else:
            raise AttributeError(f"unknown lab state field: {key}")
    await db.flush()
    return progression, pool


@pytest.fixture
def catalog_factory():
    return build_catalog


@pytest.fixture
def make_lab(db, catalog):
    async def _make(owner_id: str = "owner-1", founder_type: str = "technical", content=None, **state):
        return await create_lab(db, content or catalog, owner_id=owner_id, founder_type=founder_type, **state)

    return _make
