"""Integration tests for SqlAlchemyLeaseRepository."""

import dataclasses
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from leasehold.features.leases.entities import Lease, LeaseStatus
from leasehold.features.leases.errors import (
    ActiveLeaseExistsError,
    LeaseNotFoundError,
    LeaseReferenceMissingError,
)
from leasehold.features.leases.repository import LeaseFilter
from leasehold.features.registry import Repositories, Services
from tests.utils.clock import TEST_NOW
from tests.utils.factories import create_owner_property_and_tenant

pytestmark = pytest.mark.integration

ACTIVE = LeaseStatus.ACTIVE
ENDED = LeaseStatus.ENDED


def make_lease(
    property_id, tenant_id, status=LeaseStatus.PENDING, **overrides
) -> Lease:
    values = {
        "id": uuid4(),
        "property_id": property_id,
        "tenant_id": tenant_id,
        "start_date": date(2026, 2, 1),
        "end_date": date(2027, 2, 1),
        "monthly_rent": Decimal("950.00"),
        "deposit": Decimal("0.00"),
        "status": status,
        "created_at": TEST_NOW,
        "updated_at": TEST_NOW,
    }
    values.update(overrides)
    return Lease(**values)


class TestLeaseRepository:
    """Test suite for the lease repository."""

    async def test_create_and_get(self, services: Services, repositories: Repositories):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        lease = make_lease(prop.id, tenant.id)

        await repositories.leases.create(lease)

        stored = await repositories.leases.get_by_id(lease.id)
        assert stored == lease
        assert stored.monthly_rent == Decimal("950.00")

    async def test_second_active_lease_violates_the_index(
        self, services: Services, repositories: Repositories
    ):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        await repositories.leases.create(make_lease(prop.id, tenant.id, ACTIVE))

        with pytest.raises(ActiveLeaseExistsError):
            await repositories.leases.create(
                make_lease(prop.id, tenant.id, LeaseStatus.ACTIVE)
            )

    async def test_inactive_leases_do_not_collide(
        self, services: Services, repositories: Repositories
    ):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        await repositories.leases.create(make_lease(prop.id, tenant.id, ACTIVE))
        await repositories.leases.create(make_lease(prop.id, tenant.id, ENDED))
        await repositories.leases.create(make_lease(prop.id, tenant.id))

        _, total = await repositories.leases.list_by_filter(
            LeaseFilter(property_id=prop.id), 10, 0
        )
        assert total == 3

    async def test_activating_through_update_violates_the_index(
        self, services: Services, repositories: Repositories
    ):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        await repositories.leases.create(make_lease(prop.id, tenant.id, ACTIVE))
        pending = make_lease(prop.id, tenant.id)
        await repositories.leases.create(pending)

        with pytest.raises(ActiveLeaseExistsError):
            await repositories.leases.update(
                dataclasses.replace(pending, status=LeaseStatus.ACTIVE)
            )

    async def test_missing_property_is_reference_error(
        self, services: Services, repositories: Repositories
    ):
        _, _, tenant = await create_owner_property_and_tenant(services)

        with pytest.raises(LeaseReferenceMissingError):
            await repositories.leases.create(make_lease(uuid4(), tenant.id))

    async def test_get_active_for_property(
        self, services: Services, repositories: Repositories
    ):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        with pytest.raises(LeaseNotFoundError):
            await repositories.leases.get_active_for_property(prop.id)

        active = make_lease(prop.id, tenant.id, LeaseStatus.ACTIVE)
        await repositories.leases.create(active)

        assert await repositories.leases.get_active_for_property(prop.id) == active

    async def test_list_filters_by_tenant_and_status(
        self, services: Services, repositories: Repositories
    ):
        _, prop, tenant = await create_owner_property_and_tenant(services)
        await repositories.leases.create(make_lease(prop.id, tenant.id, ACTIVE))
        await repositories.leases.create(make_lease(prop.id, tenant.id))

        actives, total = await repositories.leases.list_by_filter(
            LeaseFilter(tenant_id=tenant.id, status=LeaseStatus.ACTIVE), 10, 0
        )

        assert total == 1
        assert actives[0].status is LeaseStatus.ACTIVE

    async def test_update_and_delete_missing_lease(self, repositories: Repositories):
        ghost = make_lease(uuid4(), uuid4())

        with pytest.raises(LeaseNotFoundError):
            await repositories.leases.update(ghost)
        with pytest.raises(LeaseNotFoundError):
            await repositories.leases.delete(ghost.id)
