"""Service for lease lifecycle operations, including signing."""

from __future__ import annotations

import dataclasses
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from leasehold.core.errors import AppError
from leasehold.core.types import UNSET, Clock, Unset, supplied_fields, utc_now
from leasehold.db.errors import StorageError
from leasehold.features.leases.entities import ALLOWED_TRANSITIONS, Lease, LeaseStatus
from leasehold.features.leases.errors import (
    ActiveLeaseExistsError,
    LeaseNotFoundError,
    LeaseReferenceMissingError,
)
from leasehold.features.leases.repository import LeaseFilter, LeaseRepository
from leasehold.features.properties.errors import PropertyNotFoundError
from leasehold.features.properties.repository import PropertyRepository
from leasehold.features.users.errors import UserNotFoundError
from leasehold.features.users.repository import UserRepository

if TYPE_CHECKING:
    from leasehold.features.payments.entities import Payment
    from leasehold.features.registry import Services

logger = logging.getLogger(__name__)

TransactionRunner = Callable[[Callable[["Services"], Awaitable[Any]]], Awaitable[Any]]

_INITIAL_STATUSES = frozenset({LeaseStatus.PENDING, LeaseStatus.ACTIVE})


@dataclass(frozen=True, slots=True)
class CreateLeaseInput:
    property_id: UUID
    tenant_id: UUID
    start_date: date
    end_date: date
    monthly_rent: Decimal
    deposit: Decimal = Decimal("0")
    status: LeaseStatus = LeaseStatus.PENDING


@dataclass(frozen=True, slots=True)
class UpdateLeaseInput:
    """Partial update. No lease field can be cleared."""

    end_date: date | None | Unset = UNSET
    monthly_rent: Decimal | None | Unset = UNSET
    deposit: Decimal | None | Unset = UNSET
    status: LeaseStatus | None | Unset = UNSET


@dataclass(frozen=True, slots=True)
class SignedLease:
    lease: Lease
    payments: list[Payment]


def _check_terms(start_date: date, end_date: date, rent: Decimal, deposit: Decimal) -> None:
    if end_date <= start_date:
        raise AppError.invalid("end_date must be after start_date")
    if rent <= 0:
        raise AppError.invalid("monthly_rent must be greater than 0")
    if deposit < 0:
        raise AppError.invalid("deposit cannot be negative")


def _changes_schedule(current: Lease, updated: Lease) -> bool:
    """Whether the unpaid payments must be rebuilt after this update."""
    cancelled = (
        updated.status is LeaseStatus.CANCELLED
        and current.status is not LeaseStatus.CANCELLED
    )
    return (
        cancelled
        or updated.end_date != current.end_date
        or updated.monthly_rent != current.monthly_rent
    )


class LeaseService:
    """Implementation of lease operations.

    Cross-entity checks (property and tenant existence, owner is not the
    tenant, one active lease per property) run here before anything is
    written; the partial unique index on ``leases`` backs up the last one.
    """

    def __init__(
        self,
        leases: LeaseRepository,
        properties: PropertyRepository,
        users: UserRepository,
        clock: Clock = utc_now,
        transaction: TransactionRunner | None = None,
    ):
        """Initialize the service with dependencies.

        Args:
            leases: Repository for lease persistence
            properties: Repository used to resolve the leased property
            users: Repository used to resolve the tenant
            clock: Source of timezone-aware timestamps
            transaction: Runs a callback against services bound to one
                transaction; required by ``sign``
        """
        self.leases = leases
        self.properties = properties
        self.users = users
        self.clock = clock
        self.transaction = transaction

    async def list_by_filter(
        self, filters: LeaseFilter, limit: int, offset: int
    ) -> tuple[list[Lease], int]:
        try:
            return await self.leases.list_by_filter(filters, limit, offset)
        except StorageError as e:
            raise AppError.internal("Failed to fetch leases", e) from e

    async def get(self, lease_id: UUID) -> Lease:
        try:
            return await self.leases.get_by_id(lease_id)
        except LeaseNotFoundError as e:
            raise AppError.not_found("Lease not found", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to fetch lease", e) from e

    async def create(self, data: CreateLeaseInput) -> Lease:
        """Create a lease after checking its terms and parties.

        Raises:
            AppError: ``invalid`` for bad terms or when the tenant owns the
                property, ``not_found`` for a missing property or tenant,
                ``conflict`` if an active lease already exists
        """
        _check_terms(data.start_date, data.end_date, data.monthly_rent, data.deposit)
        if data.status not in _INITIAL_STATUSES:
            raise AppError.invalid("A new lease must be pending or active")

        await self._ensure_parties(data.property_id, data.tenant_id)
        if data.status is LeaseStatus.ACTIVE:
            await self._ensure_no_active_lease(data.property_id, exclude_id=None)

        now = self.clock()
        lease = Lease(
            id=uuid.uuid4(),
            property_id=data.property_id,
            tenant_id=data.tenant_id,
            start_date=data.start_date,
            end_date=data.end_date,
            monthly_rent=data.monthly_rent,
            deposit=data.deposit,
            status=data.status,
            created_at=now,
            updated_at=now,
        )

        try:
            await self.leases.create(lease)
        except ActiveLeaseExistsError as e:
            raise AppError.conflict("Property already has an active lease", e) from e
        except LeaseReferenceMissingError as e:
            raise AppError.not_found("Property or tenant not found", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to create lease", e) from e

        logger.info("Created lease %s on property %s", lease.id, lease.property_id)
        return lease

    async def update(self, lease_id: UUID, data: UpdateLeaseInput) -> Lease:
        changes = supplied_fields(data)
        for field_name, value in changes.items():
            if value is None:
                raise AppError.invalid(f"{field_name} cannot be empty")

        current = await self.get(lease_id)
        updated = dataclasses.replace(
            current, **changes, updated_at=max(self.clock(), current.updated_at)
        )

        if updated.status is not current.status:
            if updated.status not in ALLOWED_TRANSITIONS[current.status]:
                raise AppError.invalid(
                    f"Cannot change lease status from {current.status.value} "
                    f"to {updated.status.value}"
                )
        _check_terms(
            updated.start_date, updated.end_date, updated.monthly_rent, updated.deposit
        )
        if updated.status is LeaseStatus.ACTIVE and current.status is not LeaseStatus.ACTIVE:
            await self._ensure_no_active_lease(updated.property_id, exclude_id=updated.id)

        if _changes_schedule(current, updated):
            if self.transaction is None:
                raise RuntimeError("LeaseService.update needs a transaction runner")

            async def update_in(bound: Services) -> None:
                await bound.leases._save(updated)
                await bound.payments.reschedule(updated)

            await self.transaction(update_in)
        else:
            await self._save(updated)

        if updated.status is not current.status:
            logger.info(
                "Lease %s moved from %s to %s",
                updated.id,
                current.status.value,
                updated.status.value,
            )
        return updated

    async def delete(self, lease_id: UUID) -> None:
        """Delete a lease and its payment schedule. Active leases are kept."""
        current = await self.get(lease_id)
        if current.status is LeaseStatus.ACTIVE:
            raise AppError.conflict("Active leases must be ended before deletion")

        try:
            await self.leases.delete(lease_id)
        except LeaseNotFoundError as e:
            raise AppError.not_found("Lease not found", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to delete lease", e) from e

        logger.info("Deleted lease %s", lease_id)

    async def sign(self, data: CreateLeaseInput) -> SignedLease:
        """Create a lease together with its monthly payment schedule.

        Both writes share one transaction: if the schedule cannot be
        created the lease is rolled back as well.
        """
        if self.transaction is None:
            raise RuntimeError("LeaseService.sign needs a transaction runner")

        async def sign_in(bound: Services) -> SignedLease:
            lease = await bound.leases.create(data)
            payments = await bound.payments.create_schedule(lease)
            return SignedLease(lease=lease, payments=payments)

        signed: SignedLease = await self.transaction(sign_in)
        logger.info(
            "Signed lease %s with %d scheduled payments",
            signed.lease.id,
            len(signed.payments),
        )
        return signed

    async def _save(self, lease: Lease) -> None:
        try:
            await self.leases.update(lease)
        except LeaseNotFoundError as e:
            raise AppError.not_found("Lease not found", e) from e
        except ActiveLeaseExistsError as e:
            raise AppError.conflict("Property already has an active lease", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to update lease", e) from e

    async def _ensure_parties(self, property_id: UUID, tenant_id: UUID) -> None:
        try:
            prop = await self.properties.get_by_id(property_id)
        except PropertyNotFoundError as e:
            raise AppError.not_found("Property not found", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to fetch property", e) from e

        try:
            await self.users.get_by_id(tenant_id)
        except UserNotFoundError as e:
            raise AppError.not_found("Tenant not found", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to fetch tenant", e) from e

        if prop.owner_id == tenant_id:
            raise AppError.invalid("Tenant cannot be the owner of the property")

    async def _ensure_no_active_lease(
        self, property_id: UUID, exclude_id: UUID | None
    ) -> None:
        try:
            active = await self.leases.get_active_for_property(property_id)
        except LeaseNotFoundError:
            return
        except StorageError as e:
            raise AppError.internal("Failed to fetch active lease", e) from e
        if active.id != exclude_id:
            raise AppError.conflict("Property already has an active lease")
