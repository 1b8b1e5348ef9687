"""Integration tests for PropertyService and its repository."""

from uuid import uuid4

import pytest

from leasehold.core.errors import AppError, ErrorCode
from leasehold.features.properties.entities import PropertyKind
from leasehold.features.properties.repository import PropertyFilter
from leasehold.features.properties.service import (
    CreatePropertyInput,
    UpdatePropertyInput,
)
from leasehold.features.registry import Services
from tests.utils.clock import FixedClock
from tests.utils.factories import create_lease, create_property, create_user

pytestmark = pytest.mark.integration


class TestCreateProperty:
    """Test suite for PropertyService.create."""

    async def test_create_for_existing_owner(self, services: Services, clock: FixedClock):
        owner = await create_user(services)

        prop = await services.properties.create(
            CreatePropertyInput(
                owner_id=owner.id,
                name="Harbour View",
                address="Rua Augusta 1",
                city="Lisbon",
                kind=PropertyKind.APARTMENT,
                description="Sunny two-bedroom flat",
            )
        )

        assert prop.owner_id == owner.id
        assert prop.bedrooms is None
        assert prop.created_at == prop.updated_at == clock.now
        assert await services.properties.get(prop.id) == prop

    async def test_unknown_owner_is_not_found(self, services: Services):
        with pytest.raises(AppError) as exc_info:
            await create_property(services, uuid4())

        assert exc_info.value.code is ErrorCode.NOT_FOUND
        assert exc_info.value.message == "Owner not found"
        _, total = await services.properties.list_by_filter(PropertyFilter(), 10, 0)
        assert total == 0


class TestListProperties:
    async def test_filters(self, services: Services, clock: FixedClock):
        ann = await create_user(services, name="Ann")
        bob = await create_user(services, name="Bob")
        await create_property(services, ann.id, city="Lisbon")
        clock.advance(seconds=1)
        await create_property(services, ann.id, city="Porto", kind=PropertyKind.HOUSE)
        clock.advance(seconds=1)
        await create_property(services, bob.id, city="lisbon")

        _, by_owner = await services.properties.list_by_filter(
            PropertyFilter(owner_id=ann.id), 10, 0
        )
        in_lisbon, by_city = await services.properties.list_by_filter(
            PropertyFilter(city="LISBON"), 10, 0
        )
        _, houses = await services.properties.list_by_filter(
            PropertyFilter(kind=PropertyKind.HOUSE), 10, 0
        )

        assert by_owner == 2
        assert by_city == 2
        assert [p.owner_id for p in in_lisbon] == [bob.id, ann.id]
        assert houses == 1


class TestUpdateProperty:
    """Test suite for PropertyService.update."""

    async def test_null_clears_nullable_fields(self, services: Services, clock: FixedClock):
        owner = await create_user(services)
        prop = await create_property(services, owner.id)
        assert prop.bedrooms == 2
        clock.advance(minutes=1)

        updated = await services.properties.update(
            prop.id, UpdatePropertyInput(bedrooms=None, city="Faro")
        )

        assert updated.bedrooms is None
        assert updated.city == "Faro"
        assert updated.name == prop.name
        assert updated.updated_at == clock.now
        assert await services.properties.get(prop.id) == updated

    @pytest.mark.parametrize("field_name", ["name", "address", "city", "kind"])
    async def test_null_for_required_field_is_invalid(
        self, services: Services, field_name: str
    ):
        owner = await create_user(services)
        prop = await create_property(services, owner.id)

        with pytest.raises(AppError) as exc_info:
            await services.properties.update(
                prop.id, UpdatePropertyInput(**{field_name: None})
            )

        assert exc_info.value.code is ErrorCode.INVALID

    async def test_unknown_property_is_not_found(self, services: Services):
        with pytest.raises(AppError) as exc_info:
            await services.properties.update(uuid4(), UpdatePropertyInput(name="X"))

        assert exc_info.value.code is ErrorCode.NOT_FOUND


class TestDeleteProperty:
    async def test_delete_then_get_is_not_found(self, services: Services):
        owner = await create_user(services)
        prop = await create_property(services, owner.id)

        await services.properties.delete(prop.id)

        with pytest.raises(AppError) as exc_info:
            await services.properties.get(prop.id)
        assert exc_info.value.code is ErrorCode.NOT_FOUND

    async def test_property_with_leases_is_conflict(self, services: Services):
        owner = await create_user(services)
        prop = await create_property(services, owner.id)
        tenant = await create_user(services)
        await create_lease(services, prop.id, tenant.id)

        with pytest.raises(AppError) as exc_info:
            await services.properties.delete(prop.id)

        assert exc_info.value.code is ErrorCode.CONFLICT
