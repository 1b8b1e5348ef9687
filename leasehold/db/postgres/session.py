"""SQLAlchemy database session management.

A ``Database`` owns the async engine (and its connection pool) and hands out
*session scopes*: zero-argument callables returning an async context manager
that yields an ``AsyncSession``. Repositories are built on a scope and never
decide on their own whether they run in a transaction:

- ``Database.session_scope()`` opens a fresh session per call and commits it
  when the block exits cleanly (one unit of work per repository call).
- ``bound_session_scope(session)`` always yields the same session and leaves
  commit/rollback to whoever owns it (a Transaction Context).
"""

from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any, TypeAlias

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from leasehold.core.settings import Settings

SessionScope: TypeAlias = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class Database:
    """Handle on the backing store: engine, pool and session factory."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **engine_kwargs: Any) -> "Database":
        """Create the engine described by the application settings."""
        if settings.database_url.startswith("postgresql"):
            engine_kwargs.setdefault("pool_size", settings.db_pool_size)
        engine = create_async_engine(
            settings.database_url,
            echo=settings.db_echo,
            pool_pre_ping=True,
            **engine_kwargs,
        )
        return cls(engine)

    def session_scope(self) -> SessionScope:
        """Scope that runs each block in its own committed session."""

        @asynccontextmanager
        async def scope() -> AsyncGenerator[AsyncSession, None]:
            async with self.session_factory() as session:
                async with session.begin():
                    yield session

        return scope

    async def ping(self) -> None:
        """Round-trip to the store; raises if it is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self.engine.dispose()


def bound_session_scope(session: AsyncSession) -> SessionScope:
    """Scope that always yields ``session`` without committing it."""

    @asynccontextmanager
    async def scope() -> AsyncGenerator[AsyncSession, None]:
        yield session

    return scope
