"""Repository for users."""

from dataclasses import dataclass
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import delete, func, insert, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leasehold.db.errors import storage_errors
from leasehold.db.postgres.session import SessionScope
from leasehold.features.users.entities import User, UserRole
from leasehold.features.users.errors import (
    UserAlreadyExistsError,
    UserInUseError,
    UserNotFoundError,
)
from leasehold.features.users.models import UserModel


@dataclass(frozen=True, slots=True)
class UserFilter:
    role: UserRole | None = None
    search: str | None = None


class UserRepository(Protocol):
    """Protocol for user persistence."""

    async def create(self, user: User) -> None:
        """Persist a new user; raises UserAlreadyExistsError on duplicate email."""
        ...

    async def get_by_id(self, user_id: UUID) -> User:
        """Return the user or raise UserNotFoundError."""
        ...

    async def get_by_email(self, email: str) -> User:
        """Return the user or raise UserNotFoundError."""
        ...

    async def list_by_filter(
        self, filters: UserFilter, limit: int, offset: int
    ) -> tuple[list[User], int]:
        """Return one page of users, newest first, and the total match count."""
        ...

    async def update(self, user: User) -> None:
        """Replace the stored user; raises UserNotFoundError if it is gone."""
        ...

    async def delete(self, user_id: UUID) -> None:
        """Remove the user; raises UserNotFoundError or UserInUseError."""
        ...


def _to_entity(row: UserModel) -> User:
    return User(
        id=row.id,
        name=row.name,
        email=row.email,
        role=UserRole(row.role),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _to_values(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def _escape_like(term: str) -> str:
    """Make LIKE wildcards in user input match literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlAlchemyUserRepository:
    """SQLAlchemy implementation of UserRepository."""

    def __init__(self, get_db_session: SessionScope):
        """Initialize the repository.

        Args:
            get_db_session: Scope yielding the session to run statements on
        """
        self.get_db_session = get_db_session

    async def create(self, user: User) -> None:
        async with storage_errors("create user"), self.get_db_session() as session:
            # Fast path only: under concurrent inserts the unique index decides.
            if await self._find_by_email(session, user.email) is not None:
                raise UserAlreadyExistsError(user.email)
            try:
                async with session.begin_nested():
                    await session.execute(insert(UserModel).values(**_to_values(user)))
            except IntegrityError as e:
                raise UserAlreadyExistsError(user.email) from e

    async def get_by_id(self, user_id: UUID) -> User:
        async with storage_errors("get user"), self.get_db_session() as session:
            result = await session.execute(
                select(UserModel).where(UserModel.id == user_id)
            )
            row = result.scalar_one_or_none()
            if row is None:
                raise UserNotFoundError(user_id)
            return _to_entity(row)

    async def get_by_email(self, email: str) -> User:
        async with storage_errors("get user by email"), self.get_db_session() as session:
            # Emails are stored lowercased by the service
            row = await self._find_by_email(session, email.lower())
            if row is None:
                raise UserNotFoundError(email)
            return _to_entity(row)

    async def list_by_filter(
        self, filters: UserFilter, limit: int, offset: int
    ) -> tuple[list[User], int]:
        conditions = []
        if filters.role is not None:
            conditions.append(UserModel.role == filters.role.value)
        if filters.search:
            pattern = f"%{_escape_like(filters.search)}%"
            conditions.append(
                or_(
                    UserModel.name.ilike(pattern, escape="\\"),
                    UserModel.email.ilike(pattern, escape="\\"),
                )
            )

        async with storage_errors("list users"), self.get_db_session() as session:
            # Page and total come from one statement so they share a snapshot
            page_stmt = (
                select(UserModel, func.count().over().label("total"))
                .where(*conditions)
                .order_by(UserModel.created_at.desc(), UserModel.id.desc())
                .limit(limit)
                .offset(offset)
            )
            rows = (await session.execute(page_stmt)).all()
            if rows:
                total = rows[0].total
            elif offset > 0:
                count_stmt = select(func.count()).select_from(UserModel).where(*conditions)
                total = (await session.execute(count_stmt)).scalar_one()
            else:
                total = 0
            return [_to_entity(row[0]) for row in rows], total

    async def update(self, user: User) -> None:
        values = _to_values(user)
        del values["id"]
        async with storage_errors("update user"), self.get_db_session() as session:
            try:
                async with session.begin_nested():
                    result = await session.execute(
                        update(UserModel).where(UserModel.id == user.id).values(**values)
                    )
            except IntegrityError as e:
                raise UserAlreadyExistsError(user.email) from e
            if result.rowcount == 0:
                raise UserNotFoundError(user.id)

    async def delete(self, user_id: UUID) -> None:
        async with storage_errors("delete user"), self.get_db_session() as session:
            try:
                async with session.begin_nested():
                    result = await session.execute(
                        delete(UserModel).where(UserModel.id == user_id)
                    )
            except IntegrityError as e:
                raise UserInUseError(user_id) from e
            if result.rowcount == 0:
                raise UserNotFoundError(user_id)

    async def _find_by_email(self, session: AsyncSession, email: str) -> UserModel | None:
        result = await session.execute(select(UserModel).where(UserModel.email == email))
        return result.scalar_one_or_none()
