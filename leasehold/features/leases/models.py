"""Database models for leases."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column

from leasehold.db.postgres.session import Base
from leasehold.db.types import GUID, UTCDateTime

ACTIVE_LEASE_INDEX = "uq_leases_one_active_per_property"


class LeaseModel(Base):
    """Lease row.

    The partial unique index allows any number of pending/ended/cancelled
    leases per property but at most one ``active`` lease.
    """

    __tablename__ = "leases"

    id: Mapped[uuid.UUID] = mapped_column(GUID, primary_key=True)
    property_id: Mapped[uuid.UUID] = mapped_column(
        GUID, ForeignKey("properties.id", ondelete="RESTRICT"), nullable=False
    )
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        GUID, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    monthly_rent: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    deposit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    __table_args__ = (
        Index(
            ACTIVE_LEASE_INDEX,
            "property_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("ix_leases_property_id_created_at", "property_id", "created_at"),
        Index("ix_leases_tenant_id_created_at", "tenant_id", "created_at"),
    )
