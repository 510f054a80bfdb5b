"""Application configuration settings."""
from __future__ import annotations

import logging
import os
from functools import lru_cache

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Runtime toggles -----------------------------------------------------
# Execution environment: "dev" | "local" | "test" | "staging" | "prod"
ENV = os.getenv("FINTRACK_ENV", "dev").lower()

# Used only when JWT_SECRET is unset. Tokens signed with it are forgeable by
# anyone who has read this file.
INSECURE_JWT_SECRET_FALLBACK = "insecure-fintrack-dev-secret-change-me-now"

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Environment configuration for the fintrack backend."""

    app_env: str = ENV
    database_url: str = "sqlite:///fintrack.db"
    API_PREFIX: str = ""

    JWT_SECRET: str | None = None
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60, ge=1)
    REFRESH_TOKEN_EXPIRE_MINUTES: int = Field(default=24 * 60, ge=1)
    PASSWORD_HASH_ROUNDS: int = Field(default=12, ge=4, le=31)

    PAGINATION_DEFAULT_LIMIT: int = Field(default=10, ge=1)
    PAGINATION_MAX_LIMIT: int = Field(default=100, ge=1)

    CORS_ALLOW_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]
    SENTRY_DSN: str | None = None
    PROMETHEUS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"

    ALLOW_DB_CREATE_ALL: bool = False
    SCHEDULER_ENABLED: bool = False

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("JWT_SECRET")
    @classmethod
    def _strip_empty_secret(cls, value: str | None) -> str | None:
        """Normalise empty secrets to ``None`` so the fallback check sees them."""

        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() in {"prod", "production"}


class AppInfo(BaseModel):
    name: str = "fintrack-api"
    version: str = "0.1.0"


settings = Settings()


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings."""

    return settings


def resolve_jwt_secret(current: Settings | None = None) -> str:
    """Return the signing secret, falling back to the insecure constant."""

    current = current or get_settings()
    return current.JWT_SECRET or INSECURE_JWT_SECRET_FALLBACK


def check_jwt_secret(current: Settings | None = None) -> bool:
    """Validate the signing secret once at startup.

    Returns ``True`` when a real secret is configured. A missing secret never
    stops the process; it is reported so nobody trusts the fallback silently.
    """

    current = current or get_settings()
    if current.JWT_SECRET:
        return True
    log = logger.error if current.is_production else logger.warning
    log(
        "JWT_SECRET is not configured; signing tokens with the insecure built-in fallback.",
        extra={"env": current.app_env},
    )
    return False


__all__ = [
    "ENV",
    "INSECURE_JWT_SECRET_FALLBACK",
    "Settings",
    "AppInfo",
    "settings",
    "get_settings",
    "resolve_jwt_secret",
    "check_jwt_secret",
]
