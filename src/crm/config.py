"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ALLOWED_ORIGINS: str = "*"

    # Record store
    SEED_DEMO_DATA: bool = True  # Load the demo leads/accounts/contacts/deals on startup

    # Recommendation and search limits
    RECOMMENDATION_LIMIT: int = 10
    SEARCH_RESULT_LIMIT: int = 10
    NOTIFICATION_AI_LIMIT: int = 5  # Engine recommendations surfaced in the notification feed

    # Assistant sessions
    ASSISTANT_MAX_SESSIONS: int = 1000
    ASSISTANT_SESSION_TTL_SECONDS: int = 1800  # Idle sessions expire after this many seconds

    # Admin console
    SYSTEM_ADMIN_EMAIL: str = "admin@yitro.com"
    SYSTEM_ADMIN_NAME: str = "System Administrator"

    def get_cors_origins(self) -> list[str]:
        """Return CORS origins as a list.

        Accepts a comma-separated string; "*" allows every origin.
        """
        return [
            origin.strip()
            for origin in self.CORS_ALLOWED_ORIGINS.split(",")
            if origin.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
