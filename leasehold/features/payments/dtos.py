"""Payments data transfer objects."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel

from leasehold.features.payments.entities import Payment

PaymentStatusName = Literal["due", "paid"]


class PaymentResponse(BaseModel):
    """A scheduled payment as returned by the API. Amounts are decimal strings."""

    id: UUID
    lease_id: UUID
    due_date: date
    amount: Decimal
    status: str
    paid_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, payment: Payment) -> "PaymentResponse":
        return cls(
            id=payment.id,
            lease_id=payment.lease_id,
            due_date=payment.due_date,
            amount=payment.amount,
            status=payment.status.value,
            paid_at=payment.paid_at,
            created_at=payment.created_at,
            updated_at=payment.updated_at,
        )
