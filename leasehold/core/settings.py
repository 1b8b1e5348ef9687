"""Application settings and configuration."""

from functools import lru_cache
from typing import ClassVar

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="Leasehold API", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: str = Field(default="development", description="Deployment environment")
    debug: bool = Field(default=False, description="Debug mode")
    host: str = Field(default="0.0.0.0", description="Host to bind to")
    port: int = Field(default=8080, description="Port to bind to")
    log_level: str = Field(default="INFO", description="Root log level")

    # CORS
    allowed_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://localhost:5173",
            "http://localhost:8080",
        ],
        description="Allowed CORS origins",
    )

    # PostgreSQL Database
    postgres_user: str = Field(default="postgres", description="PostgreSQL user")
    postgres_password: str = Field(
        default="postgres", description="PostgreSQL password"
    )
    postgres_host: str = Field(default="localhost", description="PostgreSQL host")
    postgres_port: int = Field(default=5432, description="PostgreSQL port")
    postgres_db: str = Field(default="leasehold", description="PostgreSQL database name")
    database_url_override: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description="Full SQLAlchemy URL; takes precedence over postgres_* values",
    )
    db_pool_size: int = Field(default=10, description="Connection pool size")
    db_echo: bool = Field(default=False, description="Echo SQL statements")

    # Request pipeline
    request_timeout_seconds: float = Field(
        default=30.0, description="Per-request deadline; the request is cancelled after it"
    )
    run_migrations_on_startup: bool = Field(
        default=False, description="Run `alembic upgrade head` during startup"
    )

    # Business rules
    max_schedule_months: int = Field(
        default=120, description="Longest payment schedule a lease may generate"
    )

    @property
    def database_url(self) -> str:
        """Construct database URL from individual components."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
