"""Root conftest: shared test configuration."""

import os

# Set before fhir_registry.main is imported: module-level settings read them
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("STATIC_DIR", "does-not-exist")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from fhir_registry.db.base import Base
from fhir_registry.infrastructure.database import DatabaseSessionManager
from fhir_registry.infrastructure.fhir_server_storage import SqlFhirServerStorage
import fhir_registry.models  # noqa: F401


@pytest.fixture
async def test_engine():
    """Fresh in-memory SQLite; StaticPool keeps one connection so tables survive."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def test_db_manager(test_engine):
    manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    manager.engine = test_engine
    manager._session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )
    return manager


@pytest.fixture
def sql_storage(test_db_manager):
    return SqlFhirServerStorage(test_db_manager)
