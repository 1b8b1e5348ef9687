"""Repository for properties."""

from dataclasses import dataclass
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.exc import IntegrityError

from leasehold.db.errors import storage_errors
from leasehold.db.postgres.session import SessionScope
from leasehold.features.properties.entities import Property, PropertyKind
from leasehold.features.properties.errors import (
    PropertyInUseError,
    PropertyNotFoundError,
    PropertyOwnerMissingError,
)
from leasehold.features.properties.models import PropertyModel


@dataclass(frozen=True, slots=True)
class PropertyFilter:
    owner_id: UUID | None = None
    city: str | None = None
    kind: PropertyKind | None = None


class PropertyRepository(Protocol):
    """Protocol for property persistence."""

    async def create(self, prop: Property) -> None:
        ...

    async def get_by_id(self, property_id: UUID) -> Property:
        ...

    async def list_by_filter(
        self, filters: PropertyFilter, limit: int, offset: int
    ) -> tuple[list[Property], int]:
        ...

    async def update(self, prop: Property) -> None:
        ...

    async def delete(self, property_id: UUID) -> None:
        ...


def _to_entity(row: PropertyModel) -> Property:
    return Property(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        address=row.address,
        city=row.city,
        kind=PropertyKind(row.kind),
        bedrooms=row.bedrooms,
        description=row.description,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_values(prop: Property) -> dict[str, Any]:
    return {
        "id": prop.id,
        "owner_id": prop.owner_id,
        "name": prop.name,
        "address": prop.address,
        "city": prop.city,
        "kind": prop.kind.value,
        "bedrooms": prop.bedrooms,
        "description": prop.description,
        "created_at": prop.created_at,
        "updated_at": prop.updated_at,
    }


class SqlAlchemyPropertyRepository:
    """SQLAlchemy implementation of PropertyRepository."""

    def __init__(self, get_db_session: SessionScope):
        self.get_db_session = get_db_session

    async def create(self, prop: Property) -> None:
        async with storage_errors("create property"), self.get_db_session() as session:
            try:
                async with session.begin_nested():
                    await session.execute(
                        insert(PropertyModel).values(**_to_values(prop))
                    )
            except IntegrityError as e:
                # The only constraint an insert can break is the owner reference
                raise PropertyOwnerMissingError(prop.owner_id) from e

    async def get_by_id(self, property_id: UUID) -> Property:
        async with storage_errors("get property"), self.get_db_session() as session:
            result = await session.execute(
                select(PropertyModel).where(PropertyModel.id == property_id)
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise PropertyNotFoundError(property_id)
            return _to_entity(row)

    async def list_by_filter(
        self, filters: PropertyFilter, limit: int, offset: int
    ) -> tuple[list[Property], int]:
        conditions = []
        if filters.owner_id is not None:
            conditions.append(PropertyModel.owner_id == filters.owner_id)
        if filters.city:
            conditions.append(func.lower(PropertyModel.city) == filters.city.lower())
        if filters.kind is not None:
            conditions.append(PropertyModel.kind == filters.kind.value)

        async with storage_errors("list properties"), self.get_db_session() as session:
            page_stmt = (
                select(PropertyModel, func.count().over().label("total"))
                .where(*conditions)
                .order_by(PropertyModel.created_at.desc(), PropertyModel.id.desc())
                .limit(limit)
                .offset(offset)
            )
            rows = (await session.execute(page_stmt)).all()
            if rows:
                total = rows[0].total
            elif offset > 0:
                count_stmt = (
                    select(func.count()).select_from(PropertyModel).where(*conditions)
                )
                total = (await session.execute(count_stmt)).scalar_one()
            else:
                total = 0
            return [_to_entity(row[0]) for row in rows], total

    async def update(self, prop: Property) -> None:
        values = _to_values(prop)
        del values["id"]
        async with storage_errors("update property"), self.get_db_session() as session:
            async with session.begin_nested():
                result = await session.execute(
                    update(PropertyModel)
                    .where(PropertyModel.id == prop.id)
                    .values(**values)
                )
            if result.rowcount == 0:
                raise PropertyNotFoundError(prop.id)

    async def delete(self, property_id: UUID) -> None:
        async with storage_errors("delete property"), self.get_db_session() as session:
            try:
                async with session.begin_nested():
                    result = await session.execute(
                        delete(PropertyModel).where(PropertyModel.id == property_id)
                    )
            except IntegrityError as e:
                raise PropertyInUseError(property_id) from e
            if result.rowcount == 0:
                raise PropertyNotFoundError(property_id)
