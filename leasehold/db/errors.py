"""Storage-level failure signal.

Repositories translate expected storage outcomes (no rows, duplicate key,
still referenced) into per-entity errors. Anything else raised by the
driver or SQLAlchemy is wrapped in ``StorageError`` so that no
library-specific exception escapes the repository layer.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError


class StorageError(Exception):
    """Raised when the backing store fails for an unexpected reason."""

    def __init__(self, operation: str, cause: BaseException):
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause


@asynccontextmanager
async def storage_errors(operation: str) -> AsyncIterator[None]:
    """Wrap unexpected SQLAlchemy errors raised inside the block."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageError(operation, exc) from exc


class RecordNotFoundError(Exception):
    """Base for the per-entity "no such row" signals."""

    entity = "record"

    def __init__(self, key: object):
        super().__init__(f"{self.entity} not found: {key}")
        self.key = key


class RecordExistsError(Exception):
    """Base for the per-entity "uniqueness violated" signals."""

    entity = "record"

    def __init__(self, key: object):
        super().__init__(f"{self.entity} already exists: {key}")
        self.key = key


class RecordInUseError(Exception):
    """Base for the per-entity "still referenced" signals raised on delete."""

    entity = "record"

    def __init__(self, key: object):
        super().__init__(f"{self.entity} is still referenced: {key}")
        self.key = key
