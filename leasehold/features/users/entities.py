"""User entity."""

import enum
import uuid
from dataclasses import dataclass
from datetime import datetime


class UserRole(str, enum.Enum):
    """Defines the roles a user can have."""

    ADMIN = "admin"
    USER = "user"
    GUEST = "guest"


@dataclass(frozen=True, slots=True)
class User:
    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    created_at: datetime
    updated_at: datetime
