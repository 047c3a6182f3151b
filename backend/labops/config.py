"""Application settings.

Values come from ``LABOPS_``-prefixed environment variables or a ``.env``
file. The settings object is built once and handed to ``create_app``.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Request
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LABOPS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # database
    database_url: str = "sqlite:///./labops.db"

    # auth
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    token_expire_days: int = 7
    password_reset_minutes: int = 60

    # transport
    cors_origins: list[str] = Field(default=["http://localhost:3000", "http://127.0.0.1:3000"])
    rate_limit_enabled: bool = True

    # mail
    smtp_server: str | None = None
    email_from: str = "noreply@example.com"

    # observability
    sentry_dsn: str | None = None
    log_level: str = "INFO"

    testing: bool = False


@lru_cache
def load_settings() -> Settings:
    return Settings()


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
