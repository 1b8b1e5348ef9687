"""Application middleware."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from fastapi import Request, Response, status
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from leasehold.core.context import (
    clear_request_context,
    elapsed_ms,
    mark_request_start,
    new_request_id,
    set_request_id,
)
from leasehold.core.errors import ErrorCode
from leasehold.core.responses import error_response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-Id"

SECURE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": "default-src 'self'",
}

_DOCS_PREFIXES = ("/docs", "/redoc", "/openapi.json")


async def request_context_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Attach a request id to contextvars and write one access log line
    per request.
    """
    clear_request_context()

    request_id = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
    set_request_id(request_id)
    started_at = mark_request_start()

    try:
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        logger.info(
            "%s %s %d %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms(started_at),
        )
        return response
    finally:
        # Always clean up to avoid context leaking across requests.
        clear_request_context()


class RequestDeadlineMiddleware:
    """Cancel a request that outlives its deadline.

    Plain ASGI middleware: it runs in the same task as the route handler, so
    the cancellation reaches whatever the handler is awaiting and an open
    transaction is rolled back. The timeout envelope is sent only when the
    response has not started yet.
    """

    def __init__(self, app: ASGIApp, timeout_seconds: float):
        self.app = app
        self.timeout_seconds = timeout_seconds

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_tracking_start(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            async with asyncio.timeout(self.timeout_seconds) as deadline:
                await self.app(scope, receive, send_tracking_start)
        except TimeoutError:
            if not deadline.expired() or response_started:
                raise
            logger.error(
                "%s %s timed out after %.2fs",
                scope["method"],
                scope["path"],
                self.timeout_seconds,
            )
            response = error_response(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                ErrorCode.INTERNAL,
                "Request timed out",
            )
            await response(scope, receive, send)


async def security_headers_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Add secure HTTP headers to every response except the API docs."""
    response = await call_next(request)
    if request.url.path.startswith(_DOCS_PREFIXES):
        return response
    for header_name, header_value in SECURE_HEADERS.items():
        response.headers[header_name] = header_value
    return response
