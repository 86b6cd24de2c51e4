"""Application configuration and settings management.

This module defines the application settings loaded from environment
variables and provides a helper for accessing cached settings and the
resolved MongoDB connection string.
"""

from functools import lru_cache
from typing import List
from urllib.parse import quote_plus

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables.

    Attributes:
        MONGODB_URL: Full MongoDB connection string. Takes precedence over
            the individual credential fields.
        DB_USER: MongoDB Atlas user name.
        DB_PASS: MongoDB Atlas password.
        DB_HOST: MongoDB Atlas cluster host.
        DATABASE_NAME: Name of the database holding the collections.
        MONGODB_TIMEOUT_MS: Server selection timeout in milliseconds.
        ALLOWED_ORIGINS: Allowed origins for CORS.
        TOP_RATED_LIMIT: Default number of games on the highest-rated list.
        MIGRATE_LEGACY_REVIEWS: Rewrite legacy review fields on startup.
        LOG_LEVEL: Minimum level of emitted log events.
        LOG_JSON: Render log events as JSON instead of console output.
        LOG_REDACT_EMAILS: Replace e-mail addresses in log events.
        HOST: Interface the development server binds to.
        PORT: Port the development server listens on.
    """

    MONGODB_URL: str | None = None
    DB_USER: str | None = None
    DB_PASS: str | None = None
    DB_HOST: str | None = None
    DATABASE_NAME: str = "chillGamerDB"
    MONGODB_TIMEOUT_MS: int = 5000
    ALLOWED_ORIGINS: List[str] = ["*"]
    TOP_RATED_LIMIT: int = 6
    MIGRATE_LEGACY_REVIEWS: bool = True
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True
    LOG_REDACT_EMAILS: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 5000

    class Config:
        """Pydantic configuration for loading environment variables."""

        env_file = ".env"
        extra = "allow"

    def mongodb_uri(self) -> str:
        """Return the connection string for the document store.

        ``MONGODB_URL`` wins when set. Otherwise an Atlas SRV URI is built
        from ``DB_USER``, ``DB_PASS`` and ``DB_HOST``; without them the
        local default server is used.
        """

        if self.MONGODB_URL:
            return self.MONGODB_URL
        if self.DB_USER and self.DB_PASS and self.DB_HOST:
            return (
                f"mongodb+srv://{quote_plus(self.DB_USER)}:{quote_plus(self.DB_PASS)}"
                f"@{self.DB_HOST}/?retryWrites=true&w=majority"
            )
        return "mongodb://localhost:27017"


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings.

    The settings object is cached to prevent reloading environment
    variables multiple times during application lifetime.
    """

    return Settings()
