"""Request-scoped context.

We use `contextvars` so log records can be attributed to the current request
without passing the request id through every service and repository call.
"""

from __future__ import annotations

import contextvars
import uuid
from time import perf_counter

request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
request_started_at_var: contextvars.ContextVar[float | None] = contextvars.ContextVar(
    "request_started_at", default=None
)


def new_request_id() -> str:
    return uuid.uuid4().hex


def set_request_id(request_id: str) -> contextvars.Token[str | None]:
    return request_id_var.set(request_id)


def get_request_id() -> str | None:
    return request_id_var.get()


def mark_request_start() -> float:
    started_at = perf_counter()
    request_started_at_var.set(started_at)
    return started_at


def elapsed_ms(started_at: float) -> float:
    return (perf_counter() - started_at) * 1000.0


def clear_request_context() -> None:
    request_id_var.set(None)
    request_started_at_var.set(None)
