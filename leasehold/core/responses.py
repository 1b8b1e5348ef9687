"""
Response envelopes and centralized error handlers.

Successful responses are wrapped as ``{"success": true, "data": ...}``.
Errors use ``{"success": false, "error": ..., "code": ..., "details": ...}``.
Internal failures never expose the underlying cause; it is logged instead.
"""

import logging
from typing import Any, Generic, TypeVar

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from leasehold.core.errors import (
    GENERIC_INTERNAL_MESSAGE,
    AppError,
    ErrorCode,
    public_message,
)
from leasehold.core.validation import format_validation_errors

logger = logging.getLogger(__name__)

DataT = TypeVar("DataT")

_CODE_BY_HTTP_STATUS: dict[int, ErrorCode] = {
    status.HTTP_400_BAD_REQUEST: ErrorCode.INVALID,
    status.HTTP_401_UNAUTHORIZED: ErrorCode.UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN: ErrorCode.FORBIDDEN,
    status.HTTP_404_NOT_FOUND: ErrorCode.NOT_FOUND,
    status.HTTP_405_METHOD_NOT_ALLOWED: ErrorCode.INVALID,
    status.HTTP_409_CONFLICT: ErrorCode.CONFLICT,
}


class SuccessResponse(BaseModel, Generic[DataT]):
    """Envelope for successful responses."""

    success: bool = True
    message: str | None = None
    data: DataT


class ErrorResponse(BaseModel):
    """Envelope for failed responses."""

    success: bool = False
    error: str
    code: str | None = None
    details: list[dict[str, Any]] | None = None


class PageData(BaseModel, Generic[DataT]):
    """A page of items plus the total number of matches."""

    items: list[DataT]
    total: int
    limit: int
    offset: int


def ok(data: DataT, message: str | None = None) -> SuccessResponse[DataT]:
    return SuccessResponse[DataT](data=data, message=message)


def error_response(
    status_code: int,
    code: ErrorCode | str,
    message: str,
    details: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    """Build a consistent JSON error response."""
    body = ErrorResponse(
        error=message,
        code=code.value if isinstance(code, ErrorCode) else code,
        details=details,
    )
    return JSONResponse(
        status_code=status_code, content=body.model_dump(exclude_none=True)
    )


def app_error_response(exc: AppError) -> JSONResponse:
    details = None if exc.code is ErrorCode.INTERNAL else exc.details
    return error_response(exc.status_code, exc.code, public_message(exc), details)


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers on the FastAPI application.

    Args:
        app: The FastAPI application instance.
    """

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
        """Map classified errors to their fixed status codes."""
        if exc.code is ErrorCode.INTERNAL:
            logger.error(
                "%s %s failed: %s",
                request.method,
                request.url.path,
                exc,
                exc_info=exc.cause or exc,
            )
        else:
            logger.info(
                "%s %s -> %s: %s",
                request.method,
                request.url.path,
                exc.code.value,
                exc,
            )
        return app_error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Path and query parameter failures use the same shape as body failures."""
        details = [error.model_dump() for error in format_validation_errors(exc.errors())]
        return error_response(
            status.HTTP_400_BAD_REQUEST, ErrorCode.INVALID, "Validation failed", details
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(
        _request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Routing-level errors (unknown path, wrong method)."""
        code = _CODE_BY_HTTP_STATUS.get(exc.status_code, ErrorCode.INTERNAL)
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if code is ErrorCode.INTERNAL:
            message = GENERIC_INTERNAL_MESSAGE
        return error_response(exc.status_code, code, message)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception(
            "Unexpected error on %s %s: %s",
            request.method,
            request.url.path,
            type(exc).__name__,
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorCode.INTERNAL,
            GENERIC_INTERNAL_MESSAGE,
        )
