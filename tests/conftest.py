"""Pytest configuration and shared fixtures for all tests.

This module provides function-scoped fixtures for:
- A file-backed SQLite database (aiosqlite) with foreign keys and SAVEPOINTs
- A fixed, manually advanced clock
- Repositories and services wired on that database
- An httpx client talking to the FastAPI application in-process
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine

from leasehold.core.settings import Settings
from leasehold.db.postgres.session import Base, Database
from leasehold.features.registry import Repositories, Services
from leasehold.main import create_app
from tests.utils.clock import FixedClock


def _enable_sqlite_savepoints_and_fks(engine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINT works, and turn on FK checks."""

    @event.listens_for(engine.sync_engine, "connect")
    def on_connect(dbapi_connection, _connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def on_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'leasehold.db'}"


@pytest.fixture
def test_settings(database_url: str) -> Settings:
    """Provide settings pointing at the per-test SQLite database."""
    return Settings(
        database_url_override=database_url,
        log_level="WARNING",
        request_timeout_seconds=5.0,
        max_schedule_months=24,
    )


@pytest_asyncio.fixture
async def database(database_url: str) -> AsyncGenerator[Database, None]:
    """Database handle with every table created from the ORM metadata."""
    engine = create_async_engine(database_url)
    _enable_sqlite_savepoints_and_fks(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield Database(engine)

    await engine.dispose()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def repositories(database: Database) -> Repositories:
    """Repositories that commit after every call."""
    return Repositories.bind(database.session_scope())


@pytest.fixture
def services(
    database: Database, clock: FixedClock, test_settings: Settings
) -> Services:
    return Services.build(
        database, clock=clock, max_schedule_months=test_settings.max_schedule_months
    )


@pytest.fixture
def app(test_settings: Settings, database: Database, clock: FixedClock):
    return create_app(settings=test_settings, database=database, clock=clock)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the application; unhandled errors become 500 responses."""
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
