"""Repository for leases."""

from dataclasses import dataclass
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leasehold.db.errors import storage_errors
from leasehold.db.postgres.session import SessionScope
from leasehold.features.leases.entities import Lease, LeaseStatus
from leasehold.features.leases.errors import (
    ActiveLeaseExistsError,
    LeaseNotFoundError,
    LeaseReferenceMissingError,
)
from leasehold.features.leases.models import LeaseModel


@dataclass(frozen=True, slots=True)
class LeaseFilter:
    property_id: UUID | None = None
    tenant_id: UUID | None = None
    status: LeaseStatus | None = None


class LeaseRepository(Protocol):
    """Protocol for lease persistence."""

    async def create(self, lease: Lease) -> None:
        """Persist a new lease.

        Raises ActiveLeaseExistsError if it is active and the property
        already has an active lease, LeaseReferenceMissingError if the
        property or tenant does not exist.
        """
        ...

    async def get_by_id(self, lease_id: UUID) -> Lease:
        ...

    async def get_active_for_property(self, property_id: UUID) -> Lease:
        """Return the property's active lease or raise LeaseNotFoundError."""
        ...

    async def list_by_filter(
        self, filters: LeaseFilter, limit: int, offset: int
    ) -> tuple[list[Lease], int]:
        ...

    async def update(self, lease: Lease) -> None:
        ...

    async def delete(self, lease_id: UUID) -> None:
        ...


def _to_entity(row: LeaseModel) -> Lease:
    return Lease(
        id=row.id,
        property_id=row.property_id,
        tenant_id=row.tenant_id,
        start_date=row.start_date,
        end_date=row.end_date,
        monthly_rent=row.monthly_rent,
        deposit=row.deposit,
        status=LeaseStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_values(lease: Lease) -> dict[str, Any]:
    return {
        "id": lease.id,
        "property_id": lease.property_id,
        "tenant_id": lease.tenant_id,
        "start_date": lease.start_date,
        "end_date": lease.end_date,
        "monthly_rent": lease.monthly_rent,
        "deposit": lease.deposit,
        "status": lease.status.value,
        "created_at": lease.created_at,
        "updated_at": lease.updated_at,
    }


class SqlAlchemyLeaseRepository:
    """SQLAlchemy implementation of LeaseRepository."""

    def __init__(self, get_db_session: SessionScope):
        self.get_db_session = get_db_session

    async def create(self, lease: Lease) -> None:
        async with storage_errors("create lease"), self.get_db_session() as session:
            try:
                async with session.begin_nested():
                    await session.execute(insert(LeaseModel).values(**_to_values(lease)))
            except IntegrityError as e:
                # Either the partial unique index or one of the references
                if lease.status is LeaseStatus.ACTIVE and await self._find_active(
                    session, lease.property_id
                ):
                    raise ActiveLeaseExistsError(lease.property_id) from e
                raise LeaseReferenceMissingError(lease.id) from e

    async def get_by_id(self, lease_id: UUID) -> Lease:
        async with storage_errors("get lease"), self.get_db_session() as session:
            result = await session.execute(
                select(LeaseModel).where(LeaseModel.id == lease_id)
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise LeaseNotFoundError(lease_id)
            return _to_entity(row)

    async def get_active_for_property(self, property_id: UUID) -> Lease:
        async with storage_errors("get active lease"), self.get_db_session() as session:
            row = await self._find_active(session, property_id)
            if row is None:
                raise LeaseNotFoundError(property_id)
            return _to_entity(row)

    async def list_by_filter(
        self, filters: LeaseFilter, limit: int, offset: int
    ) -> tuple[list[Lease], int]:
        conditions = []
        if filters.property_id is not None:
            conditions.append(LeaseModel.property_id == filters.property_id)
        if filters.tenant_id is not None:
            conditions.append(LeaseModel.tenant_id == filters.tenant_id)
        if filters.status is not None:
            conditions.append(LeaseModel.status == filters.status.value)

        async with storage_errors("list leases"), self.get_db_session() as session:
            page_stmt = (
                select(LeaseModel, func.count().over().label("total"))
                .where(*conditions)
                .order_by(LeaseModel.created_at.desc(), LeaseModel.id.desc())
                .limit(limit)
                .offset(offset)
            )
            rows = (await session.execute(page_stmt)).all()
            if rows:
                total = rows[0].total
            elif offset > 0:
                count_stmt = select(func.count()).select_from(LeaseModel).where(*conditions)
                total = (await session.execute(count_stmt)).scalar_one()
            else:
                total = 0
            return [_to_entity(row[0]) for row in rows], total

    async def update(self, lease: Lease) -> None:
        values = _to_values(lease)
        del values["id"]
        async with storage_errors("update lease"), self.get_db_session() as session:
            try:
                async with session.begin_nested():
                    result = await session.execute(
                        update(LeaseModel).where(LeaseModel.id == lease.id).values(**values)
                    )
            except IntegrityError as e:
                raise ActiveLeaseExistsError(lease.property_id) from e
            if result.rowcount == 0:
                raise LeaseNotFoundError(lease.id)

    async def delete(self, lease_id: UUID) -> None:
        async with storage_errors("delete lease"), self.get_db_session() as session:
            async with session.begin_nested():
                result = await session.execute(
                    delete(LeaseModel).where(LeaseModel.id == lease_id)
                )
            if result.rowcount == 0:
                raise LeaseNotFoundError(lease_id)

    async def _find_active(
        self, session: AsyncSession, property_id: UUID
    ) -> LeaseModel | None:
        result = await session.execute(
            select(LeaseModel).where(
                LeaseModel.property_id == property_id,
                LeaseModel.status == LeaseStatus.ACTIVE.value,
            )
        )
        return result.scalar_one_or_none()
