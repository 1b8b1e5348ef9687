"""Wiring of repositories and services, and the transaction context.

``Services.build(database)`` gives services whose repositories each run in
their own short session. ``Services.transaction(fn)`` opens one session and
transaction, rebuilds every repository and service on it and hands the bound
set to ``fn``, so multi-entity work commits or rolls back as a unit::

    async def move_in(bound: Services) -> Lease:
        lease = await bound.leases.create(data)
        await bound.payments.create_schedule(lease)
        return lease

    lease = await services.transaction(move_in)

Calling ``transaction`` on an already bound ``Services`` opens a SAVEPOINT
instead of a new transaction.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from leasehold.core.errors import AppError
from leasehold.core.types import Clock, utc_now
from leasehold.db.postgres.session import Database, SessionScope, bound_session_scope
from leasehold.features.leases.repository import (
    LeaseRepository,
    SqlAlchemyLeaseRepository,
)
from leasehold.features.leases.service import LeaseService
from leasehold.features.payments.repository import (
    PaymentRepository,
    SqlAlchemyPaymentRepository,
)
from leasehold.features.payments.service import (
    DEFAULT_MAX_SCHEDULE_MONTHS,
    PaymentService,
)
from leasehold.features.properties.repository import (
    PropertyRepository,
    SqlAlchemyPropertyRepository,
)
from leasehold.features.properties.service import PropertyService
from leasehold.features.users.repository import SqlAlchemyUserRepository, UserRepository
from leasehold.features.users.service import UserService

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Repositories:
    """One repository per entity, all sharing the same session scope."""

    users: UserRepository
    properties: PropertyRepository
    leases: LeaseRepository
    payments: PaymentRepository

    @classmethod
    def bind(cls, scope: SessionScope) -> Repositories:
        return cls(
            users=SqlAlchemyUserRepository(scope),
            properties=SqlAlchemyPropertyRepository(scope),
            leases=SqlAlchemyLeaseRepository(scope),
            payments=SqlAlchemyPaymentRepository(scope),
        )


class Services:
    """The full set of services built on one set of repositories."""

    def __init__(
        self,
        repositories: Repositories,
        *,
        database: Database | None = None,
        session: AsyncSession | None = None,
        clock: Clock = utc_now,
        max_schedule_months: int = DEFAULT_MAX_SCHEDULE_MONTHS,
    ):
        if (database is None) == (session is None):
            raise ValueError("Services needs exactly one of database or session")
        self.repositories = repositories
        self.database = database
        self.session = session
        self.clock = clock
        self.max_schedule_months = max_schedule_months

        self.users = UserService(repositories.users, clock)
        self.properties = PropertyService(
            repositories.properties, repositories.users, clock
        )
        self.payments = PaymentService(
            repositories.payments, repositories.leases, clock, max_schedule_months
        )
        self.leases = LeaseService(
            repositories.leases,
            repositories.properties,
            repositories.users,
            clock,
            transaction=self.transaction,
        )

    @classmethod
    def build(
        cls,
        source: Database | AsyncSession,
        *,
        clock: Clock = utc_now,
        max_schedule_months: int = DEFAULT_MAX_SCHEDULE_MONTHS,
    ) -> Services:
        """Build services on a database handle or on one open session."""
        if isinstance(source, Database):
            return cls(
                Repositories.bind(source.session_scope()),
                database=source,
                clock=clock,
                max_schedule_months=max_schedule_months,
            )
        return cls(
            Repositories.bind(bound_session_scope(source)),
            session=source,
            clock=clock,
            max_schedule_months=max_schedule_months,
        )

    @property
    def in_transaction(self) -> bool:
        return self.session is not None

    async def transaction(self, fn: Callable[[Services], Awaitable[T]]) -> T:
        """Run ``fn`` against services bound to a single transaction.

        Commits when ``fn`` returns. When it raises, the transaction is
        rolled back and an ``AppError`` is re-raised unchanged; any other
        exception becomes ``internal``. Cancellation rolls back and
        propagates. Failing to commit or roll back is ``internal``.
        """
        if self.session is not None:
            savepoint = await self._begin(self.session.begin_nested())
            return await self._run(savepoint, self, fn)

        assert self.database is not None
        async with self.database.session_factory() as session:
            tx = await self._begin(session.begin())
            bound = Services.build(
                session, clock=self.clock, max_schedule_months=self.max_schedule_months
            )
            return await self._run(tx, bound, fn)

    @staticmethod
    async def _begin(pending: AsyncSessionTransaction) -> AsyncSessionTransaction:
        try:
            return await pending
        except Exception as e:
            raise AppError.internal("Failed to begin transaction", e) from e

    @staticmethod
    async def _run(
        tx: AsyncSessionTransaction,
        bound: Services,
        fn: Callable[[Services], Awaitable[T]],
    ) -> T:
        try:
            result = await fn(bound)
        except BaseException as exc:
            try:
                await tx.rollback()
            except Exception as rollback_error:
                logger.error("Rollback failed after %r: %s", exc, rollback_error)
                raise AppError.internal(
                    "Failed to roll back transaction", rollback_error
                ) from rollback_error
            if isinstance(exc, AppError | asyncio.CancelledError) or not isinstance(
                exc, Exception
            ):
                raise
            raise AppError.internal("Transaction failed", exc) from exc

        try:
            await tx.commit()
        except Exception as e:
            raise AppError.internal("Failed to commit transaction", e) from e
        return result


def get_services(request: Request) -> Services:
    """FastAPI dependency: services on the application's database."""
    state = request.app.state
    return Services.build(
        state.database,
        clock=state.clock,
        max_schedule_months=state.settings.max_schedule_months,
    )
