"""Small shared types used by the service layer."""

import dataclasses
import enum
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Final, Literal, TypeAlias


class _Unset(enum.Enum):
    """Marker for a field that was not supplied at all.

    Distinct from ``None``, which means "supplied and empty".
    """

    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> Literal[False]:
        return False


UNSET: Final = _Unset.UNSET
Unset: TypeAlias = Literal[_Unset.UNSET]

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: current time, timezone-aware UTC."""
    return datetime.now(UTC)


def is_set(value: Any) -> bool:
    return value is not UNSET


def supplied_fields(data: Any) -> dict[str, Any]:
    """Fields of a dataclass input that were supplied (value or ``None``)."""
    return {
        field.name: getattr(data, field.name)
        for field in dataclasses.fields(data)
        if is_set(getattr(data, field.name))
    }
