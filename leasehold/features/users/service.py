"""Service for user lifecycle operations."""

import dataclasses
import logging
import uuid
from dataclasses import dataclass
from uuid import UUID

from leasehold.core.errors import AppError
from leasehold.core.types import UNSET, Clock, Unset, supplied_fields, utc_now
from leasehold.db.errors import StorageError
from leasehold.features.users.entities import User, UserRole
from leasehold.features.users.errors import (
    UserAlreadyExistsError,
    UserInUseError,
    UserNotFoundError,
)
from leasehold.features.users.repository import UserFilter, UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CreateUserInput:
    name: str
    email: str
    role: UserRole


@dataclass(frozen=True, slots=True)
class UpdateUserInput:
    """Partial update. ``UNSET`` fields are left untouched."""

    name: str | None | Unset = UNSET
    role: UserRole | None | Unset = UNSET


class UserService:
    """Owns user identity, timestamps and the user-facing error classification."""

    def __init__(self, users: UserRepository, clock: Clock = utc_now):
        """Initialize the service with dependencies.

        Args:
            users: Repository for user persistence
            clock: Source of timezone-aware timestamps
        """
        self.users = users
        self.clock = clock

    async def list_by_filter(
        self, filters: UserFilter, limit: int, offset: int
    ) -> tuple[list[User], int]:
        try:
            return await self.users.list_by_filter(filters, limit, offset)
        except StorageError as e:
            raise AppError.internal("Failed to fetch users", e) from e

    async def get(self, user_id: UUID) -> User:
        try:
            return await self.users.get_by_id(user_id)
        except UserNotFoundError as e:
            raise AppError.not_found("User not found", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to fetch user", e) from e

    async def create(self, data: CreateUserInput) -> User:
        """Create a user with a fresh id and matching creation/update timestamps.

        Raises:
            AppError: ``conflict`` if the email is taken, ``internal`` on
                storage failure
        """
        now = self.clock()
        user = User(
            id=uuid.uuid4(),
            name=data.name,
            email=data.email.lower(),
            role=data.role,
            created_at=now,
            updated_at=now,
        )

        try:
            await self.users.create(user)
        except UserAlreadyExistsError as e:
            raise AppError.conflict("User with this email already exists", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to create user", e) from e

        logger.info("Created user %s", user.id)
        return user

    async def update(self, user_id: UUID, data: UpdateUserInput) -> User:
        """Apply the supplied fields to the current user and persist it."""
        changes = supplied_fields(data)
        for field_name in ("name", "role"):
            if field_name in changes and changes[field_name] is None:
                raise AppError.invalid(f"{field_name} cannot be empty")

        current = await self.get(user_id)
        updated = dataclasses.replace(
            current, **changes, updated_at=max(self.clock(), current.updated_at)
        )

        try:
            await self.users.update(updated)
        except UserNotFoundError as e:
            raise AppError.not_found("User not found", e) from e
        except UserAlreadyExistsError as e:
            raise AppError.conflict("User with this email already exists", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to update user", e) from e

        return updated

    async def delete(self, user_id: UUID) -> None:
        try:
            await self.users.delete(user_id)
        except UserNotFoundError as e:
            raise AppError.not_found("User not found", e) from e
        except UserInUseError as e:
            raise AppError.conflict(
                "User still owns properties or holds leases", e
            ) from e
        except StorageError as e:
            raise AppError.internal("Failed to delete user", e) from e

        logger.info("Deleted user %s", user_id)
