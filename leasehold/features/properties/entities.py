"""Property entity."""

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime


class PropertyKind(str, enum.Enum):
    APARTMENT = "apartment"
    HOUSE = "house"
    COMMERCIAL = "commercial"
    LAND = "land"


@dataclass(frozen=True, slots=True)
class Property:
    """A rentable property. ``owner_id`` references a user (not owned by it)."""

    id: uuid.UUID
    owner_id: uuid.UUID
    name: str
    address: str
    city: str
    kind: PropertyKind
    bedrooms: int | None
    description: str | None
    created_at: datetime
    updated_at: datetime
