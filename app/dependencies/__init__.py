"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_account_store,
    get_callback_handler,
    get_oauth_signer,
    get_provider_client,
    get_request_token_service,
    get_request_token_store,
    get_session_establisher,
    get_session_service,
    get_token_cipher_service,
)
from .config import (
    SettingsDependency,
    get_app_settings,
    get_callback_url,
    get_presented_session_id,
)

__all__ = [
    "SettingsDependency",
    "get_account_store",
    "get_app_settings",
    "get_callback_handler",
    "get_callback_url",
    "get_oauth_signer",
    "get_presented_session_id",
    "get_provider_client",
    "get_request_token_service",
    "get_request_token_store",
    "get_session_establisher",
    "get_session_service",
    "get_token_cipher_service",
]
