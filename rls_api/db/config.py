from __future__ import annotations

import re
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Database settings for the todo service.

    Reads from environment variables (or .env via pydantic-settings):
      - POSTGRES_URL (takes precedence when set)
      - POSTGRES_USER
      - POSTGRES_PASSWORD
      - POSTGRES_DB
      - POSTGRES_HOST
      - POSTGRES_PORT

    The configured role must not be a superuser or carry BYPASSRLS, otherwise
    PostgreSQL skips the todos policies entirely.
    """

    POSTGRES_URL: Optional[str] = Field(
        default=None, description="If provided, full PostgreSQL connection URL."
    )
    POSTGRES_USER: Optional[str] = Field(default=None, description="DB username")
    POSTGRES_PASSWORD: Optional[str] = Field(default=None, description="DB password")
    POSTGRES_DB: Optional[str] = Field(default=None, description="Database name")
    POSTGRES_PORT: Optional[int] = Field(
        default=5432, description="Database port (default 5432)"
    )
    POSTGRES_HOST: Optional[str] = Field(
        default="localhost", description="Database host (default localhost)"
    )

    # SQLAlchemy engine options
    SQL_ECHO: bool = Field(
        default=False, description="Echo SQL statements for debugging (default False)"
    )
    DB_POOL_SIZE: int = Field(default=5, ge=1, description="Pooled connections kept open")
    DB_MAX_OVERFLOW: int = Field(
        default=10, ge=0, description="Extra connections allowed above the pool size"
    )

    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (dev/test/prod)"
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @property
    def database_url(self) -> str:
        """
        Compute the base (sync-neutral) database URL. Will prefer POSTGRES_URL
        if present, otherwise construct from individual POSTGRES_* variables.
        """
        if self.POSTGRES_URL:
            return self.POSTGRES_URL

        if not all([self.POSTGRES_USER, self.POSTGRES_PASSWORD, self.POSTGRES_DB]):
            raise ValueError(
                "Database configuration missing. Ensure POSTGRES_URL or "
                "POSTGRES_USER, POSTGRES_PASSWORD, and POSTGRES_DB are set in the environment."
            )
        host = self.POSTGRES_HOST or "localhost"
        port = self.POSTGRES_PORT or 5432
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{host}:{port}/{self.POSTGRES_DB}"

    @property
    def async_database_url(self) -> str:
        """Convert the base URL to the asyncpg SQLAlchemy dialect."""
        url = self.database_url
        if url.startswith("postgresql+asyncpg://"):
            return url
        return re.sub(r"^(postgresql|postgres)(\+\w+)?://", "postgresql+asyncpg://", url)

    @property
    def sync_database_url(self) -> str:
        """
        Provide a sync URL variant for Alembic offline mode. Online migrations
        use the async URL, so no sync driver is required.
        """
        url = self.database_url
        return re.sub(r"^(postgresql|postgres)\+\w+://", "postgresql://", url)


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return a settings object populated from the environment."""
    return Settings()
