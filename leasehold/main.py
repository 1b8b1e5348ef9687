"""Main FastAPI application entry point."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from leasehold.core.logging import configure_logging
from leasehold.core.middleware import (
    RequestDeadlineMiddleware,
    request_context_middleware,
    security_headers_middleware,
)
from leasehold.core.responses import register_error_handlers
from leasehold.core.settings import Settings, get_settings
from leasehold.core.types import Clock, utc_now
from leasehold.core.validation import PydanticValidator, Validator
from leasehold.db.migrate import run_migrations
from leasehold.db.postgres.session import Database
from leasehold.features.health import router as health_router
from leasehold.features.leases.router import router as leases_router
from leasehold.features.payments.router import router as payments_router
from leasehold.features.properties.router import router as properties_router
from leasehold.features.users.router import router as users_router

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan context manager.
    Handles startup and shutdown events.
    """
    settings: Settings = app.state.settings
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)

    if settings.run_migrations_on_startup:
        # Alembic runs its own event loop
        await asyncio.to_thread(run_migrations, settings.database_url)

    yield

    logger.info("Shutting down application")
    if app.state.owns_database:
        await app.state.database.dispose()
        logger.info("Database connection pool closed.")


def create_app(
    settings: Settings | None = None,
    database: Database | None = None,
    clock: Clock = utc_now,
    validator: Validator | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings; defaults to the cached environment settings
        database: Database handle; created from ``settings`` when omitted and
            then disposed on shutdown
        clock: Source of timestamps for every service
        validator: Request body validator; pydantic by default
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Users, properties, leases and their payment schedules",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.owns_database = database is None
    app.state.database = database or Database.from_settings(settings)
    app.state.clock = clock
    app.state.validator = validator or PydanticValidator()

    register_error_handlers(app)

    # Last added runs first: request context wraps everything else and the
    # deadline runs innermost, in the route handler's task
    app.add_middleware(
        RequestDeadlineMiddleware, timeout_seconds=settings.request_timeout_seconds
    )
    app.middleware("http")(security_headers_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_context_middleware)

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(users_router, prefix=API_PREFIX)
    app.include_router(properties_router, prefix=API_PREFIX)
    app.include_router(leases_router, prefix=API_PREFIX)
    app.include_router(payments_router, prefix=API_PREFIX)

    return app


# Create the app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "leasehold.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level="info" if not settings.debug else "debug",
    )
