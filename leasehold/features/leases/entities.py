"""Lease entity and its status transitions."""

import enum
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal


class LeaseStatus(str, enum.Enum):
    PENDING = "pending"
    ACTIVE = "active"
    ENDED = "ended"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: dict[LeaseStatus, frozenset[LeaseStatus]] = {
    LeaseStatus.PENDING: frozenset({LeaseStatus.ACTIVE, LeaseStatus.CANCELLED}),
    LeaseStatus.ACTIVE: frozenset({LeaseStatus.ENDED}),
    LeaseStatus.ENDED: frozenset(),
    LeaseStatus.CANCELLED: frozenset(),
}


@dataclass(frozen=True, slots=True)
class Lease:
    id: uuid.UUID
    property_id: uuid.UUID
    tenant_id: uuid.UUID
    start_date: date
    end_date: date
    monthly_rent: Decimal
    deposit: Decimal
    status: LeaseStatus
    created_at: datetime
    updated_at: datetime
