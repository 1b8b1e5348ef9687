"""Service for property lifecycle operations."""

import dataclasses
import logging
import uuid
from dataclasses import dataclass
from uuid import UUID

from leasehold.core.errors import AppError
from leasehold.core.types import UNSET, Clock, Unset, supplied_fields, utc_now
from leasehold.db.errors import StorageError
from leasehold.features.properties.entities import Property, PropertyKind
from leasehold.features.properties.errors import (
    PropertyInUseError,
    PropertyNotFoundError,
    PropertyOwnerMissingError,
)
from leasehold.features.properties.repository import PropertyFilter, PropertyRepository
from leasehold.features.users.errors import UserNotFoundError
from leasehold.features.users.repository import UserRepository

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("name", "address", "city", "kind")


@dataclass(frozen=True, slots=True)
class CreatePropertyInput:
    owner_id: UUID
    name: str
    address: str
    city: str
    kind: PropertyKind
    bedrooms: int | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class UpdatePropertyInput:
    """Partial update. ``None`` clears ``bedrooms``/``description``."""

    name: str | None | Unset = UNSET
    address: str | None | Unset = UNSET
    city: str | None | Unset = UNSET
    kind: PropertyKind | None | Unset = UNSET
    bedrooms: int | None | Unset = UNSET
    description: str | None | Unset = UNSET


class PropertyService:
    """Implementation of property operations."""

    def __init__(
        self,
        properties: PropertyRepository,
        users: UserRepository,
        clock: Clock = utc_now,
    ):
        """Initialize the service with dependencies.

        Args:
            properties: Repository for property persistence
            users: Repository used to check that owners exist
            clock: Source of timezone-aware timestamps
        """
        self.properties = properties
        self.users = users
        self.clock = clock

    async def list_by_filter(
        self, filters: PropertyFilter, limit: int, offset: int
    ) -> tuple[list[Property], int]:
        try:
            return await self.properties.list_by_filter(filters, limit, offset)
        except StorageError as e:
            raise AppError.internal("Failed to fetch properties", e) from e

    async def get(self, property_id: UUID) -> Property:
        try:
            return await self.properties.get_by_id(property_id)
        except PropertyNotFoundError as e:
            raise AppError.not_found("Property not found", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to fetch property", e) from e

    async def create(self, data: CreatePropertyInput) -> Property:
        """Create a property for an existing owner.

        Raises:
            AppError: ``not_found`` if the owner does not exist
        """
        await self._ensure_owner_exists(data.owner_id)

        now = self.clock()
        prop = Property(
            id=uuid.uuid4(),
            owner_id=data.owner_id,
            name=data.name,
            address=data.address,
            city=data.city,
            kind=data.kind,
            bedrooms=data.bedrooms,
            description=data.description,
            created_at=now,
            updated_at=now,
        )

        try:
            await self.properties.create(prop)
        except PropertyOwnerMissingError as e:
            raise AppError.not_found("Owner not found", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to create property", e) from e

        logger.info("Created property %s for owner %s", prop.id, prop.owner_id)
        return prop

    async def update(self, property_id: UUID, data: UpdatePropertyInput) -> Property:
        changes = supplied_fields(data)
        for field_name in _REQUIRED_FIELDS:
            if field_name in changes and changes[field_name] is None:
                raise AppError.invalid(f"{field_name} cannot be empty")

        current = await self.get(property_id)
        updated = dataclasses.replace(
            current, **changes, updated_at=max(self.clock(), current.updated_at)
        )

        try:
            await self.properties.update(updated)
        except PropertyNotFoundError as e:
            raise AppError.not_found("Property not found", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to update property", e) from e

        return updated

    async def delete(self, property_id: UUID) -> None:
        try:
            await self.properties.delete(property_id)
        except PropertyNotFoundError as e:
            raise AppError.not_found("Property not found", e) from e
        except PropertyInUseError as e:
            raise AppError.conflict("Property still has leases", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to delete property", e) from e

        logger.info("Deleted property %s", property_id)

    async def _ensure_owner_exists(self, owner_id: UUID) -> None:
        try:
            await self.users.get_by_id(owner_id)
        except UserNotFoundError as e:
            raise AppError.not_found("Owner not found", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to fetch owner", e) from e
