"""Database models for payments."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from leasehold.db.postgres.session import Base
from leasehold.db.types import GUID, UTCDateTime


class PaymentModel(Base):
    """One scheduled rent payment. Removed together with its lease."""

    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(GUID, primary_key=True)
    lease_id: Mapped[uuid.UUID] = mapped_column(
        GUID, ForeignKey("leases.id", ondelete="CASCADE"), nullable=False
    )
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    __table_args__ = (
        UniqueConstraint("lease_id", "due_date", name="uq_payments_lease_id_due_date"),
        Index("ix_payments_lease_id_created_at", "lease_id", "created_at"),
    )
