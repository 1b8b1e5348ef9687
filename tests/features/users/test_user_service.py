"""Tests for UserService."""

import asyncio
from uuid import uuid4

import pytest

from leasehold.core.errors import AppError, ErrorCode
from leasehold.db.errors import StorageError
from leasehold.features.registry import Services
from leasehold.features.users.entities import UserRole
from leasehold.features.users.repository import UserFilter
from leasehold.features.users.service import (
    CreateUserInput,
    UpdateUserInput,
    UserService,
)
from tests.fakes.memory_user_repository import InMemoryUserRepository
from tests.utils.clock import FixedClock
from tests.utils.factories import create_property, create_user


@pytest.fixture
def memory_service(clock: FixedClock) -> UserService:
    return UserService(InMemoryUserRepository(), clock)


class TestCreateUser:
    """Test suite for UserService.create."""

    async def test_create_assigns_id_and_timestamps(
        self, services: Services, clock: FixedClock
    ):
        # Act
        user = await services.users.create(
            CreateUserInput(name="Ann", email="Ann@X.com", role=UserRole.USER)
        )

        # Assert
        assert user.id is not None
        assert user.email == "ann@x.com"
        assert user.created_at == user.updated_at == clock.now
        assert await services.users.get(user.id) == user

    async def test_duplicate_email_is_conflict(self, services: Services):
        data = CreateUserInput(name="Ann", email="ann@x.com", role=UserRole.USER)
        await services.users.create(data)

        with pytest.raises(AppError) as exc_info:
            await services.users.create(data)

        assert exc_info.value.code is ErrorCode.CONFLICT
        _, total = await services.users.list_by_filter(UserFilter(), 10, 0)
        assert total == 1

    async def test_concurrent_duplicates_create_exactly_one(
        self, memory_service: UserService
    ):
        data = CreateUserInput(name="Ann", email="ann@x.com", role=UserRole.USER)

        results = await asyncio.gather(
            *(memory_service.create(data) for _ in range(5)), return_exceptions=True
        )

        created = [r for r in results if not isinstance(r, BaseException)]
        conflicts = [r for r in results if isinstance(r, AppError)]
        assert len(created) == 1
        assert len(conflicts) == 4
        assert all(e.code is ErrorCode.CONFLICT for e in conflicts)


class TestGetUser:
    async def test_unknown_id_is_not_found(self, services: Services):
        with pytest.raises(AppError) as exc_info:
            await services.users.get(uuid4())

        assert exc_info.value.code is ErrorCode.NOT_FOUND
        assert exc_info.value.message == "User not found"


class TestUpdateUser:
    """Test suite for UserService.update."""

    async def test_partial_update_keeps_unset_fields(
        self, services: Services, clock: FixedClock
    ):
        user = await create_user(services, name="Ann", role=UserRole.GUEST)
        clock.advance(minutes=5)

        updated = await services.users.update(user.id, UpdateUserInput(name="Annie"))

        assert updated.name == "Annie"
        assert updated.role is UserRole.GUEST
        assert updated.created_at == user.created_at
        assert updated.updated_at == clock.now
        assert await services.users.get(user.id) == updated

    async def test_updated_at_never_moves_backwards(
        self, memory_service: UserService, clock: FixedClock
    ):
        user = await memory_service.create(
            CreateUserInput(name="Ann", email="ann@x.com", role=UserRole.USER)
        )
        clock.advance(hours=-1)

        updated = await memory_service.update(user.id, UpdateUserInput(role=UserRole.ADMIN))

        assert updated.updated_at == user.updated_at

    async def test_null_for_required_field_is_invalid(self, services: Services):
        user = await create_user(services)

        with pytest.raises(AppError) as exc_info:
            await services.users.update(user.id, UpdateUserInput(name=None))

        assert exc_info.value.code is ErrorCode.INVALID

    async def test_update_unknown_user_is_not_found(self, services: Services):
        with pytest.raises(AppError) as exc_info:
            await services.users.update(uuid4(), UpdateUserInput(name="Ghost"))

        assert exc_info.value.code is ErrorCode.NOT_FOUND

    async def test_delete_between_read_and_write_is_not_found(
        self, memory_service: UserService
    ):
        user = await memory_service.create(
            CreateUserInput(name="Ann", email="ann@x.com", role=UserRole.USER)
        )
        original_update = memory_service.users.update

        async def delete_then_update(changed):
            await memory_service.users.delete(user.id)
            await original_update(changed)

        memory_service.users.update = delete_then_update

        with pytest.raises(AppError) as exc_info:
            await memory_service.update(user.id, UpdateUserInput(name="Late"))

        assert exc_info.value.code is ErrorCode.NOT_FOUND


class TestDeleteUser:
    async def test_delete_twice_is_not_found(self, services: Services):
        user = await create_user(services)

        await services.users.delete(user.id)

        with pytest.raises(AppError) as exc_info:
            await services.users.delete(user.id)
        assert exc_info.value.code is ErrorCode.NOT_FOUND

    async def test_owner_of_a_property_is_conflict(self, services: Services):
        owner = await create_user(services)
        await create_property(services, owner.id)

        with pytest.raises(AppError) as exc_info:
            await services.users.delete(owner.id)

        assert exc_info.value.code is ErrorCode.CONFLICT


class TestStorageFailures:
    async def test_storage_error_becomes_internal_with_cause(
        self, memory_service: UserService
    ):
        cause = StorageError("list users", RuntimeError("connection reset"))

        async def failing_list(*args):
            raise cause

        memory_service.users.list_by_filter = failing_list

        with pytest.raises(AppError) as exc_info:
            await memory_service.list_by_filter(UserFilter(), 10, 0)

        assert exc_info.value.code is ErrorCode.INTERNAL
        assert exc_info.value.cause is cause


class TestListUsers:
    async def test_newest_first(self, services: Services, clock: FixedClock):
        first = await create_user(services, name="First")
        clock.advance(seconds=1)
        second = await create_user(services, name="Second")

        users, total = await services.users.list_by_filter(UserFilter(), 10, 0)

        assert total == 2
        assert [u.id for u in users] == [second.id, first.id]

    async def test_memory_double_orders_like_the_database(
        self, memory_service: UserService, clock: FixedClock
    ):
        for i in range(3):
            await memory_service.create(
                CreateUserInput(name=f"U{i}", email=f"u{i}@x.com", role=UserRole.USER)
            )
            clock.advance(seconds=1)

        users, total = await memory_service.list_by_filter(UserFilter(), 2, 0)

        assert total == 3
        assert [u.name for u in users] == ["U2", "U1"]
