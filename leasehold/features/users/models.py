"""Database models for users."""

import uuid
from datetime import datetime

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from leasehold.db.postgres.session import Base
from leasehold.db.types import GUID, UTCDateTime


class UserModel(Base):
    """User row. ``email`` carries the unique index that arbitrates duplicates."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(GUID, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    __table_args__ = (
        Index("uq_users_email", "email", unique=True),
        Index("ix_users_role", "role"),
        Index("ix_users_created_at", "created_at"),
    )
