"""Repository for payments."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import and_, delete, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leasehold.db.errors import storage_errors
from leasehold.db.postgres.session import SessionScope
from leasehold.features.payments.entities import Payment, PaymentStatus
from leasehold.features.payments.errors import (
    PaymentAlreadyExistsError,
    PaymentLeaseMissingError,
    PaymentNotFoundError,
)
from leasehold.features.payments.models import PaymentModel


@dataclass(frozen=True, slots=True)
class PaymentFilter:
    lease_id: UUID | None = None
    status: PaymentStatus | None = None


class PaymentRepository(Protocol):
    """Protocol for payment persistence."""

    async def create(self, payment: Payment) -> None:
        ...

    async def create_many(self, payments: Sequence[Payment]) -> None:
        """Persist all payments or none of them."""
        ...

    async def get_by_id(self, payment_id: UUID) -> Payment:
        ...

    async def list_by_filter(
        self, filters: PaymentFilter, limit: int, offset: int
    ) -> tuple[list[Payment], int]:
        ...

    async def list_for_lease(self, lease_id: UUID) -> list[Payment]:
        """Whole schedule of a lease ordered by due date."""
        ...

    async def update(self, payment: Payment) -> None:
        ...

    async def delete(self, payment_id: UUID) -> None:
        ...

    async def delete_due_for_lease(self, lease_id: UUID) -> int:
        """Remove the unpaid payments of a lease and return how many went."""
        ...


def _to_entity(row: PaymentModel) -> Payment:
    return Payment(
        id=row.id,
        lease_id=row.lease_id,
        due_date=row.due_date,
        amount=row.amount,
        status=PaymentStatus(row.status),
        paid_at=row.paid_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_values(payment: Payment) -> dict[str, Any]:
    return {
        "id": payment.id,
        "lease_id": payment.lease_id,
        "due_date": payment.due_date,
        "amount": payment.amount,
        "status": payment.status.value,
        "paid_at": payment.paid_at,
        "created_at": payment.created_at,
        "updated_at": payment.updated_at,
    }


class SqlAlchemyPaymentRepository:
    """SQLAlchemy implementation of PaymentRepository."""

    def __init__(self, get_db_session: SessionScope):
        self.get_db_session = get_db_session

    async def create(self, payment: Payment) -> None:
        await self.create_many([payment])

    async def create_many(self, payments: Sequence[Payment]) -> None:
        if not payments:
            return
        async with storage_errors("create payments"), self.get_db_session() as session:
            try:
                async with session.begin_nested():
                    await session.execute(
                        insert(PaymentModel), [_to_values(p) for p in payments]
                    )
            except IntegrityError as e:
                if await self._any_scheduled(session, payments):
                    raise PaymentAlreadyExistsError(payments[0].lease_id) from e
                raise PaymentLeaseMissingError(payments[0].lease_id) from e

    async def get_by_id(self, payment_id: UUID) -> Payment:
        async with storage_errors("get payment"), self.get_db_session() as session:
            result = await session.execute(
                select(PaymentModel).where(PaymentModel.id == payment_id)
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise PaymentNotFoundError(payment_id)
            return _to_entity(row)

    async def list_by_filter(
        self, filters: PaymentFilter, limit: int, offset: int
    ) -> tuple[list[Payment], int]:
        conditions = []
        if filters.lease_id is not None:
            conditions.append(PaymentModel.lease_id == filters.lease_id)
        if filters.status is not None:
            conditions.append(PaymentModel.status == filters.status.value)

        async with storage_errors("list payments"), self.get_db_session() as session:
            page_stmt = (
                select(PaymentModel, func.count().over().label("total"))
                .where(*conditions)
                .order_by(PaymentModel.created_at.desc(), PaymentModel.id.desc())
                .limit(limit)
                .offset(offset)
            )
            rows = (await session.execute(page_stmt)).all()
            if rows:
                total = rows[0].total
            elif offset > 0:
                count_stmt = (
                    select(func.count()).select_from(PaymentModel).where(*conditions)
                )
                total = (await session.execute(count_stmt)).scalar_one()
            else:
                total = 0
            return [_to_entity(row[0]) for row in rows], total

    async def list_for_lease(self, lease_id: UUID) -> list[Payment]:
        async with storage_errors("list lease payments"), self.get_db_session() as session:
            result = await session.execute(
                select(PaymentModel)
                .where(PaymentModel.lease_id == lease_id)
                .order_by(PaymentModel.due_date, PaymentModel.id)
            )
            return [_to_entity(row) for row in result.scalars()]

    async def update(self, payment: Payment) -> None:
        values = _to_values(payment)
        del values["id"]
        async with storage_errors("update payment"), self.get_db_session() as session:
            try:
                async with session.begin_nested():
                    result = await session.execute(
                        update(PaymentModel)
                        .where(PaymentModel.id == payment.id)
                        .values(**values)
                    )
            except IntegrityError as e:
                raise PaymentAlreadyExistsError(payment.lease_id) from e
            if result.rowcount == 0:
                raise PaymentNotFoundError(payment.id)

    async def delete(self, payment_id: UUID) -> None:
        async with storage_errors("delete payment"), self.get_db_session() as session:
            async with session.begin_nested():
                result = await session.execute(
                    delete(PaymentModel).where(PaymentModel.id == payment_id)
                )
            if result.rowcount == 0:
                raise PaymentNotFoundError(payment_id)

    async def delete_due_for_lease(self, lease_id: UUID) -> int:
        async with storage_errors("delete due payments"), self.get_db_session() as session:
            async with session.begin_nested():
                result = await session.execute(
                    delete(PaymentModel).where(
                        PaymentModel.lease_id == lease_id,
                        PaymentModel.status == PaymentStatus.DUE.value,
                    )
                )
            return result.rowcount

    async def _any_scheduled(
        self, session: AsyncSession, payments: Sequence[Payment]
    ) -> bool:
        clauses = [
            and_(PaymentModel.lease_id == p.lease_id, PaymentModel.due_date == p.due_date)
            for p in payments
        ]
        result = await session.execute(
            select(PaymentModel.id)
            .where(or_(*clauses))
            .limit(1)
        )
        return result.first() is not None
