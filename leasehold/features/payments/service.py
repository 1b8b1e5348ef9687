"""Service for lease payment schedules."""

import calendar
import dataclasses
import logging
import uuid
from datetime import date
from uuid import UUID

from leasehold.core.errors import AppError
from leasehold.core.types import Clock, utc_now
from leasehold.db.errors import StorageError
from leasehold.features.leases.entities import Lease, LeaseStatus
from leasehold.features.leases.errors import LeaseNotFoundError
from leasehold.features.leases.repository import LeaseRepository
from leasehold.features.payments.entities import Payment, PaymentStatus
from leasehold.features.payments.errors import (
    PaymentAlreadyExistsError,
    PaymentLeaseMissingError,
    PaymentNotFoundError,
)
from leasehold.features.payments.repository import PaymentFilter, PaymentRepository

logger = logging.getLogger(__name__)

DEFAULT_MAX_SCHEDULE_MONTHS = 120

_CLOSED_STATUSES = frozenset({LeaseStatus.CANCELLED, LeaseStatus.ENDED})


def add_months(start: date, months: int) -> date:
    """Shift ``start`` by whole months, clamping the day to the month's end."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def schedule_due_dates(start: date, end: date) -> list[date]:
    """One due date per started month in ``[start, end)``."""
    dates = []
    months = 0
    due = start
    while due < end:
        dates.append(due)
        months += 1
        due = add_months(start, months)
    return dates


class PaymentService:
    """Implementation of payment operations."""

    def __init__(
        self,
        payments: PaymentRepository,
        leases: LeaseRepository,
        clock: Clock = utc_now,
        max_schedule_months: int = DEFAULT_MAX_SCHEDULE_MONTHS,
    ):
        """Initialize the service with dependencies.

        Args:
            payments: Repository for payment persistence
            leases: Repository used to check that leases exist
            clock: Source of timezone-aware timestamps
            max_schedule_months: Longest schedule a lease may generate
        """
        self.payments = payments
        self.leases = leases
        self.clock = clock
        self.max_schedule_months = max_schedule_months

    async def list_by_filter(
        self, filters: PaymentFilter, limit: int, offset: int
    ) -> tuple[list[Payment], int]:
        try:
            return await self.payments.list_by_filter(filters, limit, offset)
        except StorageError as e:
            raise AppError.internal("Failed to fetch payments", e) from e

    async def list_for_lease(self, lease_id: UUID) -> list[Payment]:
        try:
            await self.leases.get_by_id(lease_id)
            return await self.payments.list_for_lease(lease_id)
        except LeaseNotFoundError as e:
            raise AppError.not_found("Lease not found", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to fetch payments", e) from e

    async def get(self, payment_id: UUID) -> Payment:
        try:
            return await self.payments.get_by_id(payment_id)
        except PaymentNotFoundError as e:
            raise AppError.not_found("Payment not found", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to fetch payment", e) from e

    async def mark_paid(self, payment_id: UUID) -> Payment:
        """Record a payment as paid now.

        Raises:
            AppError: ``not_found`` for an unknown payment, ``conflict`` if
                it was already paid or its lease is cancelled or ended
        """
        current = await self.get(payment_id)
        if current.status is PaymentStatus.PAID:
            raise AppError.conflict("Payment is already paid")

        lease = await self._get_lease(current.lease_id)
        if lease.status in _CLOSED_STATUSES:
            raise AppError.conflict(
                f"Payments cannot be recorded on a lease that is {lease.status.value}"
            )

        now = self.clock()
        paid = dataclasses.replace(
            current,
            status=PaymentStatus.PAID,
            paid_at=now,
            updated_at=max(now, current.updated_at),
        )

        try:
            await self.payments.update(paid)
        except PaymentNotFoundError as e:
            raise AppError.not_found("Payment not found", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to update payment", e) from e

        logger.info("Marked payment %s of lease %s as paid", paid.id, paid.lease_id)
        return paid

    async def create_schedule(self, lease: Lease) -> list[Payment]:
        """Create the monthly payment schedule of ``lease``."""
        schedule = await self._store_schedule(lease, self._due_dates(lease))
        logger.info("Scheduled %d payments for lease %s", len(schedule), lease.id)
        return schedule

    async def reschedule(self, lease: Lease) -> list[Payment]:
        """Bring the unpaid part of the schedule in line with the lease terms.

        Paid payments are kept as they are. A cancelled lease keeps no unpaid
        payments and a lease without a schedule is left alone. Run it in the
        same transaction as the lease update.

        Raises:
            AppError: ``conflict`` if the lease would end before a payment
                that was already paid, ``invalid`` if the term is too long
        """
        current = await self.list_for_lease(lease.id)
        if not current:
            return []
        paid = [p for p in current if p.status is PaymentStatus.PAID]

        due_dates: list[date] = []
        if lease.status is not LeaseStatus.CANCELLED:
            if any(p.due_date >= lease.end_date for p in paid):
                raise AppError.conflict(
                    "Lease cannot end before a payment that is already paid"
                )
            paid_dates = {p.due_date for p in paid}
            due_dates = [d for d in self._due_dates(lease) if d not in paid_dates]

        try:
            await self.payments.delete_due_for_lease(lease.id)
        except StorageError as e:
            raise AppError.internal("Failed to update payment schedule", e) from e
        schedule = await self._store_schedule(lease, due_dates)

        logger.info(
            "Rescheduled lease %s: %d paid kept, %d due",
            lease.id,
            len(paid),
            len(schedule),
        )
        return sorted(paid + schedule, key=lambda p: p.due_date)

    def _due_dates(self, lease: Lease) -> list[date]:
        due_dates = schedule_due_dates(lease.start_date, lease.end_date)
        if len(due_dates) > self.max_schedule_months:
            raise AppError.invalid(
                f"Lease term exceeds the maximum of {self.max_schedule_months} months"
            )
        return due_dates

    async def _store_schedule(
        self, lease: Lease, due_dates: list[date]
    ) -> list[Payment]:
        now = self.clock()
        schedule = [
            Payment(
                id=uuid.uuid4(),
                lease_id=lease.id,
                due_date=due_date,
                amount=lease.monthly_rent,
                status=PaymentStatus.DUE,
                paid_at=None,
                created_at=now,
                updated_at=now,
            )
            for due_date in due_dates
        ]

        try:
            await self.payments.create_many(schedule)
        except PaymentLeaseMissingError as e:
            raise AppError.not_found("Lease not found", e) from e
        except PaymentAlreadyExistsError as e:
            raise AppError.conflict("Lease already has a payment schedule", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to create payment schedule", e) from e
        return schedule

    async def _get_lease(self, lease_id: UUID) -> Lease:
        try:
            return await self.leases.get_by_id(lease_id)
        except LeaseNotFoundError as e:
            raise AppError.not_found("Lease not found", e) from e
        except StorageError as e:
            raise AppError.internal("Failed to fetch lease", e) from e
