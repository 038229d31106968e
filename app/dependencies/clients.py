"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from app.clients import AccountStore, OAuth1ProviderClient, OAuth1Signer, RequestTokenStore
from app.core.config import get_settings
from app.services import (
    CallbackHandler,
    ProfileFetcher,
    RequestTokenService,
    SessionEstablisher,
    SessionService,
    TokenCipherService,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_oauth_signer() -> OAuth1Signer:
    """Provide a signer bound to the configured consumer credentials."""
    provider = _settings().provider
    return OAuth1Signer(provider.consumer_key, provider.consumer_secret)


@lru_cache()
def get_provider_client() -> OAuth1ProviderClient:
    """Create a singleton identity-provider client."""
    return OAuth1ProviderClient(_settings().provider, get_oauth_signer())


@lru_cache()
def get_request_token_store() -> RequestTokenStore:
    """Provide the shared request-token store."""
    return RequestTokenStore(_settings().database_path)


@lru_cache()
def get_account_store() -> AccountStore:
    """Provide the durable user/session store."""
    return AccountStore(_settings().database_path)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or settings.provider.consumer_secret
    return TokenCipherService(secret=secret)


def get_request_token_service() -> RequestTokenService:
    return RequestTokenService(
        provider=get_provider_client(),
        store=get_request_token_store(),
        ttl_seconds=_settings().oauth.request_token_ttl_seconds,
    )


def get_session_establisher() -> SessionEstablisher:
    return SessionEstablisher(
        store=get_account_store(),
        token_cipher=get_token_cipher_service(),
        session_ttl_seconds=_settings().session.ttl_seconds,
    )


def get_session_service() -> SessionService:
    return SessionService(get_account_store())


def get_callback_handler() -> CallbackHandler:
    """Build the callback state machine from the shared collaborators."""
    provider = get_provider_client()
    return CallbackHandler(
        provider=provider,
        token_store=get_request_token_store(),
        profile_fetcher=ProfileFetcher(
            provider,
            retry_backoff_seconds=_settings().oauth.profile_retry_backoff_seconds,
        ),
        session_establisher=get_session_establisher(),
    )


__all__ = [
    "get_account_store",
    "get_callback_handler",
    "get_oauth_signer",
    "get_provider_client",
    "get_request_token_service",
    "get_request_token_store",
    "get_session_establisher",
    "get_session_service",
    "get_token_cipher_service",
]
