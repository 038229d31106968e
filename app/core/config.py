"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the provider client and
the maintenance scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import AnyHttpUrl, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class ProviderSettings(BaseSettings):
    """Credentials and endpoints for the OAuth 1.0a identity provider."""

    consumer_key: str = Field(..., validation_alias="OAUTH_CONSUMER_KEY")
    consumer_secret: str = Field(..., validation_alias="OAUTH_CONSUMER_SECRET")
    callback_url: AnyHttpUrl = Field(..., validation_alias="OAUTH_CALLBACK_URL")
    request_token_url: AnyHttpUrl = Field(
        "https://api.twitter.com/oauth/request_token",
        validation_alias="OAUTH_REQUEST_TOKEN_URL",
    )
    authorize_url: AnyHttpUrl = Field(
        "https://api.twitter.com/oauth/authorize",
        validation_alias="OAUTH_AUTHORIZE_URL",
    )
    access_token_url: AnyHttpUrl = Field(
        "https://api.twitter.com/oauth/access_token",
        validation_alias="OAUTH_ACCESS_TOKEN_URL",
    )
    profile_url: AnyHttpUrl = Field(
        "https://api.twitter.com/1.1/account/verify_credentials.json",
        validation_alias="OAUTH_PROFILE_URL",
        description="Endpoint returning the authenticated user's profile as JSON.",
    )
    http_timeout: float = Field(10.0, validation_alias="OAUTH_HTTP_TIMEOUT")


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    request_token_ttl_seconds: int = Field(
        900,
        validation_alias="OAUTH_REQUEST_TOKEN_TTL",
        description="Lifetime of an unexchanged request token.",
    )
    profile_retry_backoff_seconds: float = Field(
        0.5, validation_alias="OAUTH_PROFILE_RETRY_BACKOFF"
    )

    @field_validator("request_token_ttl_seconds")
    @classmethod
    def _bounded_ttl(cls, value: int) -> int:
        """Request tokens live for minutes, never hours."""
        if value <= 0 or value > 3600:
            raise ValueError("OAUTH_REQUEST_TOKEN_TTL must be between 1 and 3600 seconds")
        return value


class SessionSettings(BaseSettings):
    """Local session issuance settings."""

    ttl_seconds: int = Field(14 * 24 * 3600, validation_alias="SESSION_TTL")
    cookie_name: str = Field("session_id", validation_alias="SESSION_COOKIE_NAME")
    cookie_secure: bool = Field(True, validation_alias="SESSION_COOKIE_SECURE")


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    frontend_base_url: Optional[HttpUrl] = Field(
        None,
        validation_alias="FRONTEND_BASE_URL",
        description="Optional URL for redirecting users back to the front-end.",
    )
    database_path: str = Field("data/auth.sqlite3", validation_alias="AUTH_DB_PATH")
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    provider: ProviderSettings = Field(default_factory=ProviderSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "OAuthSettings",
    "ProviderSettings",
    "SecuritySettings",
    "SessionSettings",
    "get_settings",
]
