"""Integration tests for LeaseService."""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from leasehold.core.errors import AppError, ErrorCode
from leasehold.features.leases.entities import LeaseStatus
from leasehold.features.leases.repository import LeaseFilter
from leasehold.features.leases.service import UpdateLeaseInput
from leasehold.features.payments.entities import PaymentStatus
from leasehold.features.registry import Services
from tests.utils.clock import FixedClock
from tests.utils.factories import (
    create_lease,
    create_owner_property_and_tenant,
    lease_input,
)

pytestmark = pytest.mark.integration


class TestCreateLease:
    """Test suite for LeaseService.create."""

    async def test_create_pending_lease(self, services: Services, clock: FixedClock):
        _, prop, tenant = await create_owner_property_and_tenant(services)

        lease = await services.leases.create(lease_input(prop.id, tenant.id))

        assert lease.status is LeaseStatus.PENDING
        assert lease.created_at == lease.updated_at == clock.now
        assert await services.leases.get(lease.id) == lease

    async def test_end_must_follow_start(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)

        with pytest.raises(AppError) as exc_info:
            await services.leases.create(
                lease_input(
                    prop.id, tenant.id, start=date(2026, 5, 1), end=date(2026, 5, 1)
                )
            )

        assert exc_info.value.code is ErrorCode.INVALID

    async def test_rent_must_be_positive(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)

        with pytest.raises(AppError) as exc_info:
            await services.leases.create(lease_input(prop.id, tenant.id, rent="0"))

        assert exc_info.value.code is ErrorCode.INVALID

    async def test_owner_cannot_rent_own_property(self, services: Services):
        owner, prop, _ = await create_owner_property_and_tenant(services)

        with pytest.raises(AppError) as exc_info:
            await services.leases.create(lease_input(prop.id, owner.id))

        assert exc_info.value.code is ErrorCode.INVALID

    async def test_missing_property_and_tenant(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)

        with pytest.raises(AppError) as no_property:
            await services.leases.create(lease_input(uuid4(), tenant.id))
        with pytest.raises(AppError) as no_tenant:
            await services.leases.create(lease_input(prop.id, uuid4()))

        assert no_property.value.code is ErrorCode.NOT_FOUND
        assert no_property.value.message == "Property not found"
        assert no_tenant.value.code is ErrorCode.NOT_FOUND
        assert no_tenant.value.message == "Tenant not found"

    async def test_new_lease_cannot_start_ended(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)

        with pytest.raises(AppError) as exc_info:
            await services.leases.create(
                lease_input(prop.id, tenant.id, status=LeaseStatus.ENDED)
            )

        assert exc_info.value.code is ErrorCode.INVALID

    async def test_one_active_lease_per_property(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        await create_lease(services, prop.id, tenant.id, status=LeaseStatus.ACTIVE)

        with pytest.raises(AppError) as exc_info:
            await create_lease(services, prop.id, tenant.id, status=LeaseStatus.ACTIVE)

        assert exc_info.value.code is ErrorCode.CONFLICT
        _, total = await services.leases.list_by_filter(
            LeaseFilter(property_id=prop.id), 10, 0
        )
        assert total == 1


class TestLeaseTransitions:
    """Test suite for status changes through LeaseService.update."""

    @pytest.mark.parametrize(
        ("start", "target"),
        [
            (LeaseStatus.PENDING, LeaseStatus.ACTIVE),
            (LeaseStatus.PENDING, LeaseStatus.CANCELLED),
            (LeaseStatus.ACTIVE, LeaseStatus.ENDED),
        ],
    )
    async def test_allowed_transitions(
        self, services: Services, start: LeaseStatus, target: LeaseStatus
    ):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        lease = await create_lease(services, prop.id, tenant.id, status=start)

        updated = await services.leases.update(
            lease.id, UpdateLeaseInput(status=target)
        )

        assert updated.status is target
        assert (await services.leases.get(lease.id)).status is target

    @pytest.mark.parametrize(
        ("path", "target"),
        [
            ([LeaseStatus.ACTIVE], LeaseStatus.PENDING),
            ([LeaseStatus.ACTIVE], LeaseStatus.CANCELLED),
            ([LeaseStatus.CANCELLED], LeaseStatus.ACTIVE),
            ([LeaseStatus.ACTIVE, LeaseStatus.ENDED], LeaseStatus.ACTIVE),
        ],
    )
    async def test_forbidden_transitions(
        self, services: Services, path: list[LeaseStatus], target: LeaseStatus
    ):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        lease = await create_lease(services, prop.id, tenant.id)
        for status in path:
            lease = await services.leases.update(
                lease.id, UpdateLeaseInput(status=status)
            )

        with pytest.raises(AppError) as exc_info:
            await services.leases.update(lease.id, UpdateLeaseInput(status=target))

        assert exc_info.value.code is ErrorCode.INVALID

    async def test_activating_a_second_lease_is_conflict(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        await create_lease(services, prop.id, tenant.id, status=LeaseStatus.ACTIVE)
        pending = await create_lease(services, prop.id, tenant.id)

        with pytest.raises(AppError) as exc_info:
            await services.leases.update(
                pending.id, UpdateLeaseInput(status=LeaseStatus.ACTIVE)
            )

        assert exc_info.value.code is ErrorCode.CONFLICT

    async def test_terms_update(self, services: Services, clock: FixedClock):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        lease = await create_lease(services, prop.id, tenant.id)
        clock.advance(days=1)

        updated = await services.leases.update(
            lease.id,
            UpdateLeaseInput(
                end_date=date(2026, 12, 1), monthly_rent=Decimal("1300.00")
            ),
        )

        assert updated.end_date == date(2026, 12, 1)
        assert updated.monthly_rent == Decimal("1300.00")
        assert updated.updated_at == clock.now

    async def test_end_date_before_start_is_invalid(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        lease = await create_lease(services, prop.id, tenant.id)

        with pytest.raises(AppError) as exc_info:
            await services.leases.update(
                lease.id, UpdateLeaseInput(end_date=date(2025, 1, 1))
            )

        assert exc_info.value.code is ErrorCode.INVALID

    async def test_null_is_invalid(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        lease = await create_lease(services, prop.id, tenant.id)

        with pytest.raises(AppError) as exc_info:
            await services.leases.update(lease.id, UpdateLeaseInput(deposit=None))

        assert exc_info.value.code is ErrorCode.INVALID


class TestDeleteLease:
    async def test_active_lease_cannot_be_deleted(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        lease = await create_lease(
            services, prop.id, tenant.id, status=LeaseStatus.ACTIVE
        )

        with pytest.raises(AppError) as exc_info:
            await services.leases.delete(lease.id)

        assert exc_info.value.code is ErrorCode.CONFLICT

    async def test_delete_removes_the_schedule(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        signed = await services.leases.sign(lease_input(prop.id, tenant.id))

        await services.leases.delete(signed.lease.id)

        with pytest.raises(AppError) as lease_error:
            await services.leases.get(signed.lease.id)
        with pytest.raises(AppError) as payment_error:
            await services.payments.get(signed.payments[0].id)
        assert lease_error.value.code is ErrorCode.NOT_FOUND
        assert payment_error.value.code is ErrorCode.NOT_FOUND


class TestScheduleFollowsLease:
    """Test suite for keeping a signed lease and its payments in line."""

    async def test_new_terms_rebuild_the_due_payments(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        signed = await services.leases.sign(
            lease_input(prop.id, tenant.id, end=date(2026, 8, 1))
        )

        await services.leases.update(
            signed.lease.id,
            UpdateLeaseInput(end_date=date(2026, 3, 1), monthly_rent=Decimal("900")),
        )

        schedule = await services.payments.list_for_lease(signed.lease.id)
        assert [(p.due_date, p.amount) for p in schedule] == [
            (date(2026, 2, 1), Decimal("900"))
        ]

    async def test_paid_payments_are_kept(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        signed = await services.leases.sign(lease_input(prop.id, tenant.id))
        first = await services.payments.mark_paid(signed.payments[0].id)

        await services.leases.update(
            signed.lease.id, UpdateLeaseInput(monthly_rent=Decimal("1000"))
        )

        schedule = await services.payments.list_for_lease(signed.lease.id)
        assert schedule[0] == first
        assert [(p.due_date, p.amount, p.status) for p in schedule[1:]] == [
            (date(2026, 3, 1), Decimal("1000"), PaymentStatus.DUE),
            (date(2026, 4, 1), Decimal("1000"), PaymentStatus.DUE),
        ]

    async def test_cannot_end_before_a_paid_payment(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        signed = await services.leases.sign(lease_input(prop.id, tenant.id))
        await services.payments.mark_paid(signed.payments[2].id)

        with pytest.raises(AppError) as exc_info:
            await services.leases.update(
                signed.lease.id, UpdateLeaseInput(end_date=date(2026, 3, 15))
            )

        assert exc_info.value.code is ErrorCode.CONFLICT
        lease = await services.leases.get(signed.lease.id)
        assert lease.end_date == signed.lease.end_date
        schedule = await services.payments.list_for_lease(signed.lease.id)
        assert [p.id for p in schedule] == [p.id for p in signed.payments]

    async def test_too_long_extension_changes_nothing(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        signed = await services.leases.sign(lease_input(prop.id, tenant.id))

        with pytest.raises(AppError) as exc_info:
            await services.leases.update(
                signed.lease.id, UpdateLeaseInput(end_date=date(2036, 1, 1))
            )

        assert exc_info.value.code is ErrorCode.INVALID
        lease = await services.leases.get(signed.lease.id)
        assert lease.end_date == signed.lease.end_date
        assert len(await services.payments.list_for_lease(lease.id)) == 3

    async def test_cancelling_drops_the_due_payments(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        signed = await services.leases.sign(lease_input(prop.id, tenant.id))
        paid = await services.payments.mark_paid(signed.payments[0].id)

        await services.leases.update(
            signed.lease.id, UpdateLeaseInput(status=LeaseStatus.CANCELLED)
        )

        assert await services.payments.list_for_lease(signed.lease.id) == [paid]

    async def test_lease_without_schedule_stays_without(self, services: Services):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        lease = await create_lease(services, prop.id, tenant.id)

        await services.leases.update(
            lease.id, UpdateLeaseInput(monthly_rent=Decimal("1500"))
        )

        assert await services.payments.list_for_lease(lease.id) == []
