"""Leases data transfer objects."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from leasehold.features.leases.entities import Lease, LeaseStatus
from leasehold.features.leases.service import (
    CreateLeaseInput,
    SignedLease,
    UpdateLeaseInput,
)
from leasehold.features.payments.dtos import PaymentResponse

LeaseStatusName = Literal["pending", "active", "ended", "cancelled"]


class SignLeaseRequest(BaseModel):
    """Request model for signing a lease.

    A new lease starts ``pending`` unless it is signed directly as ``active``.
    """

    model_config = ConfigDict(extra="forbid")

    property_id: UUID
    tenant_id: UUID
    start_date: date
    end_date: date
    monthly_rent: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    deposit: Decimal = Field(
        default=Decimal("0"), ge=0, max_digits=12, decimal_places=2
    )
    status: Literal["pending", "active"] = "pending"

    def to_input(self) -> CreateLeaseInput:
        return CreateLeaseInput(
            property_id=self.property_id,
            tenant_id=self.tenant_id,
            start_date=self.start_date,
            end_date=self.end_date,
            monthly_rent=self.monthly_rent,
            deposit=self.deposit,
            status=LeaseStatus(self.status),
        )


class UpdateLeaseRequest(BaseModel):
    """Request model for a partial update, including status transitions."""

    model_config = ConfigDict(extra="forbid")

    end_date: date | None = None
    monthly_rent: Decimal | None = Field(
        default=None, gt=0, max_digits=12, decimal_places=2
    )
    deposit: Decimal | None = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    status: LeaseStatusName | None = None

    def to_input(self) -> UpdateLeaseInput:
        fields = self.model_dump(include=self.model_fields_set)
        if fields.get("status") is not None:
            fields["status"] = LeaseStatus(fields["status"])
        return UpdateLeaseInput(**fields)


class LeaseResponse(BaseModel):
    """A lease as returned by the API. Amounts are decimal strings."""

    id: UUID
    property_id: UUID
    tenant_id: UUID
    start_date: date
    end_date: date
    monthly_rent: Decimal
    deposit: Decimal
    status: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, lease: Lease) -> "LeaseResponse":
        return cls(
            id=lease.id,
            property_id=lease.property_id,
            tenant_id=lease.tenant_id,
            start_date=lease.start_date,
            end_date=lease.end_date,
            monthly_rent=lease.monthly_rent,
            deposit=lease.deposit,
            status=lease.status.value,
            created_at=lease.created_at,
            updated_at=lease.updated_at,
        )


class SignedLeaseResponse(BaseModel):
    """A freshly signed lease with its payment schedule."""

    lease: LeaseResponse
    payments: list[PaymentResponse]

    @classmethod
    def from_signed(cls, signed: SignedLease) -> "SignedLeaseResponse":
        return cls(
            lease=LeaseResponse.from_entity(signed.lease),
            payments=[PaymentResponse.from_entity(p) for p in signed.payments],
        )
