"""
Health check router.

Liveness/readiness probe: reports the application version and whether the
database answers a round-trip.
"""

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    database: str


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    responses={503: {"model": HealthResponse}},
)
async def health_check(request: Request) -> JSONResponse:
    """Return 200 while the database is reachable, 503 otherwise."""
    state = request.app.state
    try:
        await state.database.ping()
    except Exception as e:
        logger.warning("Health check: database unreachable: %s", e)
        body = HealthResponse(
            status="unhealthy", version=state.settings.app_version, database="unavailable"
        )
        return JSONResponse(status_code=503, content=body.model_dump())

    body = HealthResponse(
        status="healthy", version=state.settings.app_version, database="ok"
    )
    return JSONResponse(status_code=200, content=body.model_dump())
