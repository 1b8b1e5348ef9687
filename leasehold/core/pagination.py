"""Pagination query parameters shared by list endpoints."""

from dataclasses import dataclass

from fastapi import Query

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@dataclass(frozen=True, slots=True)
class PageParams:
    limit: int
    offset: int


def page_params(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description="Items per page"),
    offset: int = Query(0, ge=0, description="Number of items to skip"),
) -> PageParams:
    """Dependency returning bounded ``limit``/``offset`` values."""
    return PageParams(limit=limit, offset=offset)
