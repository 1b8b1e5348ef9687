"""Properties data transfer objects."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from leasehold.features.properties.entities import Property, PropertyKind
from leasehold.features.properties.service import (
    CreatePropertyInput,
    UpdatePropertyInput,
)

KindName = Literal["apartment", "house", "commercial", "land"]


class CreatePropertyRequest(BaseModel):
    """Request model for registering a property."""

    model_config = ConfigDict(extra="forbid")

    owner_id: UUID
    name: str = Field(min_length=2, max_length=200)
    address: str = Field(min_length=1, max_length=255)
    city: str = Field(min_length=1, max_length=100)
    kind: KindName
    bedrooms: int | None = Field(default=None, ge=0)
    description: str | None = Field(default=None, max_length=2000)

    def to_input(self) -> CreatePropertyInput:
        return CreatePropertyInput(
            owner_id=self.owner_id,
            name=self.name,
            address=self.address,
            city=self.city,
            kind=PropertyKind(self.kind),
            bedrooms=self.bedrooms,
            description=self.description,
        )


class UpdatePropertyRequest(BaseModel):
    """Request model for a partial update. The owner cannot be changed."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=2, max_length=200)
    address: str | None = Field(default=None, min_length=1, max_length=255)
    city: str | None = Field(default=None, min_length=1, max_length=100)
    kind: KindName | None = None
    bedrooms: int | None = Field(default=None, ge=0)
    description: str | None = Field(default=None, max_length=2000)

    def to_input(self) -> UpdatePropertyInput:
        fields = self.model_dump(include=self.model_fields_set)
        if fields.get("kind") is not None:
            fields["kind"] = PropertyKind(fields["kind"])
        return UpdatePropertyInput(**fields)


class PropertyResponse(BaseModel):
    """A property as returned by the API."""

    id: UUID
    owner_id: UUID
    name: str
    address: str
    city: str
    kind: str
    bedrooms: int | None
    description: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, prop: Property) -> "PropertyResponse":
        return cls(
            id=prop.id,
            owner_id=prop.owner_id,
            name=prop.name,
            address=prop.address,
            city=prop.city,
            kind=prop.kind.value,
            bedrooms=prop.bedrooms,
            description=prop.description,
            created_at=prop.created_at,
            updated_at=prop.updated_at,
        )
