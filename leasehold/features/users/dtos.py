"""Users data transfer objects."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from leasehold.features.users.entities import User, UserRole
from leasehold.features.users.service import CreateUserInput, UpdateUserInput

RoleName = Literal["admin", "user", "guest"]


class CreateUserRequest(BaseModel):
    """Request model for creating a new user."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    role: RoleName = "user"

    def to_input(self) -> CreateUserInput:
        return CreateUserInput(name=self.name, email=self.email, role=UserRole(self.role))


class ReplaceUserRequest(BaseModel):
    """Request model for a full update (PUT): every mutable field is required."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=2, max_length=100)
    role: RoleName

    def to_input(self) -> UpdateUserInput:
        return UpdateUserInput(name=self.name, role=UserRole(self.role))


class UpdateUserRequest(BaseModel):
    """Request model for a partial update (PATCH).

    Omitted fields are left untouched; ``null`` is rejected by the service.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=2, max_length=100)
    role: RoleName | None = None

    def to_input(self) -> UpdateUserInput:
        fields = self.model_dump(include=self.model_fields_set)
        if fields.get("role") is not None:
            fields["role"] = UserRole(fields["role"])
        return UpdateUserInput(**fields)


class UserResponse(BaseModel):
    """A user as returned by the API."""

    id: UUID
    name: str
    email: str
    role: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role.value,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
