"""
FastAPI dependency utilities for injecting configuration values.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request

from app.core.config import AppSettings, get_settings


@lru_cache()
def _settings_singleton() -> AppSettings:
    """Ensure configuration is created once per process."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings_singleton()


def get_callback_url(settings: AppSettings = Depends(get_app_settings)) -> str:
    """Callback URL registered with the provider for this application."""
    return str(settings.provider.callback_url)


def get_presented_session_id(
    request: Request, settings: AppSettings = Depends(get_app_settings)
) -> Optional[str]:
    """Session id from a bearer token, falling back to the session cookie."""
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(settings.session.cookie_name) or None


SettingsDependency = Depends(get_app_settings)

__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_callback_url",
    "get_presented_session_id",
]
