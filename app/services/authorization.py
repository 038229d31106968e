"""
Start of the login flow: request-token acquisition and the authorize hand-off.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from app.clients.oauth1_provider import OAuth1ProviderClient
from app.clients.request_token_store import DuplicateRequestTokenError, RequestTokenStore
from app.core.errors import InvalidOrExpiredToken, ProviderUnavailable
from app.models.oauth import RequestToken, utcnow

logger = logging.getLogger(__name__)


class RequestTokenService:
    """Obtain request tokens from the provider and record them for the callback."""

    def __init__(
        self,
        *,
        provider: OAuth1ProviderClient,
        store: RequestTokenStore,
        ttl_seconds: int,
    ) -> None:
        self._provider = provider
        self._store = store
        self._ttl = timedelta(seconds=ttl_seconds)

    async def acquire_request_token(self, callback_url: str) -> RequestToken:
        """
        Fetch a request token bound to ``callback_url`` and persist it.

        Raises ``ProviderUnavailable`` or ``CallbackNotConfirmed``; nothing new
        is stored when either is raised. A token id the provider has already
        issued is treated as a provider fault.
        """
        response = await self._provider.fetch_request_token(callback_url)
        now = utcnow()
        request_token = RequestToken(
            token=response.oauth_token,
            token_secret=response.oauth_token_secret,
            created_at=now,
            expires_at=now + self._ttl,
        )
        try:
            self._store.save(request_token)
        except DuplicateRequestTokenError as exc:
            logger.warning("Provider reissued an existing request token: %s", exc)
            raise ProviderUnavailable(
                "Provider returned a request token that is already in use."
            ) from exc
        logger.info("Issued request token expiring at %s", request_token.expires_at.isoformat())
        return request_token

    def authorization_url(
        self, request_token: RequestToken, *, now: Optional[datetime] = None
    ) -> str:
        return build_authorization_url(self._provider, request_token, now=now)


def build_authorization_url(
    provider: OAuth1ProviderClient,
    request_token: RequestToken,
    *,
    now: Optional[datetime] = None,
) -> str:
    """Return the provider consent URL for a usable request token."""
    if not request_token.is_usable(now):
        raise InvalidOrExpiredToken("Request token is consumed or expired.")
    return provider.build_authorization_url(request_token.token)


__all__ = ["RequestTokenService", "build_authorization_url"]
