"""Payment entity."""

import enum
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal


class PaymentStatus(str, enum.Enum):
    DUE = "due"
    PAID = "paid"


@dataclass(frozen=True, slots=True)
class Payment:
    id: uuid.UUID
    lease_id: uuid.UUID
    due_date: date
    amount: Decimal
    status: PaymentStatus
    paid_at: datetime | None
    created_at: datetime
    updated_at: datetime
