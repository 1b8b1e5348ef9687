"""Classified application errors.

Every failure that crosses the service -> route boundary is an ``AppError``
carrying one of a small, closed set of codes. The route layer maps each code
to a fixed HTTP status; the optional cause is kept for logs only.
"""

import enum
from typing import Any

from fastapi import status

GENERIC_INTERNAL_MESSAGE = "Internal server error"


class ErrorCode(str, enum.Enum):
    """Defines the error classes a service may report."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID = "invalid"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    INTERNAL = "internal"


_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.INVALID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorCode.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class AppError(Exception):
    """A classified error with a human-readable message and optional cause."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        cause: BaseException | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.cause = cause
        self.details = details
        self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message

    def __repr__(self) -> str:
        return f"AppError(code={self.code.value!r}, message={self.message!r})"

    @property
    def status_code(self) -> int:
        return status_for(self.code)

    @classmethod
    def not_found(cls, message: str, cause: BaseException | None = None) -> "AppError":
        return cls(ErrorCode.NOT_FOUND, message, cause)

    @classmethod
    def conflict(cls, message: str, cause: BaseException | None = None) -> "AppError":
        return cls(ErrorCode.CONFLICT, message, cause)

    @classmethod
    def invalid(
        cls,
        message: str,
        cause: BaseException | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> "AppError":
        return cls(ErrorCode.INVALID, message, cause, details)

    @classmethod
    def unauthorized(
        cls, message: str, cause: BaseException | None = None
    ) -> "AppError":
        return cls(ErrorCode.UNAUTHORIZED, message, cause)

    @classmethod
    def forbidden(cls, message: str, cause: BaseException | None = None) -> "AppError":
        return cls(ErrorCode.FORBIDDEN, message, cause)

    @classmethod
    def internal(cls, message: str, cause: BaseException | None = None) -> "AppError":
        return cls(ErrorCode.INTERNAL, message, cause)


def status_for(code: ErrorCode | str) -> int:
    """Return the HTTP status for an error code; unknown codes map to 500."""
    try:
        return _STATUS_BY_CODE[ErrorCode(code)]
    except ValueError:
        return status.HTTP_500_INTERNAL_SERVER_ERROR


def public_message(error: AppError) -> str:
    """Message safe to send to clients. Internal errors never leak details."""
    if error.code is ErrorCode.INTERNAL:
        return GENERIC_INTERNAL_MESSAGE
    return error.message
