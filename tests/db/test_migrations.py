"""Tests for the packaged Alembic migrations."""

import asyncio
from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect

from leasehold.db.migrate import (
    BASE,
    current_heads,
    downgrade,
    migrate_to,
    run_migrations,
)
from leasehold.db.postgres.session import Base

pytestmark = pytest.mark.integration

TABLES = {"users", "properties", "leases", "payments"}


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "migrated.db"


@pytest.fixture
def async_url(db_path: Path) -> str:
    return f"sqlite+aiosqlite:///{db_path}"


def table_names(db_path: Path) -> set[str]:
    engine = create_engine(f"sqlite:///{db_path}")
    try:
        return set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_upgrade_creates_every_table(db_path: Path, async_url: str):
    run_migrations(async_url)

    assert TABLES <= table_names(db_path)
    assert asyncio.run(current_heads(async_url))


def test_upgrade_is_idempotent(db_path: Path, async_url: str):
    run_migrations(async_url)
    heads = asyncio.run(current_heads(async_url))

    run_migrations(async_url)

    assert asyncio.run(current_heads(async_url)) == heads


def test_schema_matches_models(db_path: Path, async_url: str):
    run_migrations(async_url)

    engine = create_engine(f"sqlite:///{db_path}")
    try:
        inspector = inspect(engine)
        for table in Base.metadata.sorted_tables:
            migrated = {column["name"] for column in inspector.get_columns(table.name)}
            assert migrated == set(table.columns.keys()), table.name
        lease_indexes = {index["name"] for index in inspector.get_indexes("leases")}
    finally:
        engine.dispose()

    assert "uq_leases_one_active_per_property" in lease_indexes


def test_downgrade_and_migrate_to(db_path: Path, async_url: str):
    run_migrations(async_url)

    downgrade(BASE, async_url)
    assert not TABLES & table_names(db_path)
    assert asyncio.run(current_heads(async_url)) == ()

    migrate_to("head", async_url)
    assert TABLES <= table_names(db_path)

    migrate_to(BASE, async_url)
    assert not TABLES & table_names(db_path)
