"""Programmatic access to the Alembic migrations.

The migration scripts ship inside the package, so the application can bring
the schema up to date at startup without an ``alembic.ini`` on disk.
Every function here blocks and drives its own event loop: call them from a
worker thread when a loop is already running.
"""

import asyncio
import logging
import sys
from importlib.resources import files
from typing import TextIO

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from leasehold.core.settings import get_settings

logger = logging.getLogger(__name__)

HEAD = "head"
BASE = "base"


def build_alembic_config(
    database_url: str | None = None, stdout: TextIO = sys.stdout
) -> Config:
    """Alembic config pointing at the packaged scripts.

    Args:
        database_url: SQLAlchemy URL; defaults to the application settings
        stdout: Stream Alembic writes status lines to
    """
    url = database_url or get_settings().database_url
    cfg = Config(stdout=stdout)
    cfg.set_main_option("script_location", str(files("leasehold.db.migrations")))
    # ConfigParser interpolation: a literal % must be doubled
    cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    # Leave the application's logging configuration alone
    cfg.attributes["configure_logger"] = False
    return cfg


def run_migrations(database_url: str | None = None) -> None:
    """Upgrade the schema to the latest revision. No-op when already there."""
    logger.info("Upgrading database schema to %s", HEAD)
    command.upgrade(build_alembic_config(database_url), HEAD)


def downgrade(revision: str = "-1", database_url: str | None = None) -> None:
    logger.info("Downgrading database schema to %s", revision)
    command.downgrade(build_alembic_config(database_url), revision)


def migrate_to(revision: str, database_url: str | None = None) -> None:
    """Move the schema to ``revision``, upgrading or downgrading as needed."""
    cfg = build_alembic_config(database_url)
    script = ScriptDirectory.from_config(cfg)
    target = script.get_revision(revision)
    heads = asyncio.run(current_heads(cfg.get_main_option("sqlalchemy.url") or ""))

    applied = (
        {rev.revision for rev in script.iterate_revisions(heads, BASE)} if heads else set()
    )
    if target is None or (target.revision in applied and target.revision not in heads):
        logger.info("Downgrading database schema to %s", revision)
        command.downgrade(cfg, revision)
    else:
        logger.info("Upgrading database schema to %s", revision)
        command.upgrade(cfg, revision)


async def current_heads(database_url: str) -> tuple[str, ...]:
    """Revisions currently stamped in the database (empty when unmigrated)."""
    engine = create_async_engine(database_url, poolclass=pool.NullPool)
    try:
        async with engine.connect() as conn:
            return await conn.run_sync(
                lambda sync_conn: MigrationContext.configure(sync_conn).get_current_heads()
            )
    finally:
        await engine.dispose()
