"""
OAuth 1.0a identity-provider client.

Wraps the three signed calls the login flow makes (request token, access
token, profile) and translates transport and protocol failures into the
flow's error taxonomy.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit

import httpx
from fastapi import status
from pydantic import ValidationError

from app.clients.oauth1_signer import OAuth1Signer
from app.core.config import ProviderSettings
from app.core.errors import (
    CallbackNotConfirmed,
    ExchangeRejected,
    IncompleteProfile,
    ProviderUnavailable,
)
from app.models.oauth import AccessToken, RequestToken
from app.schemas.provider import (
    AccessTokenResponse,
    FormBodyError,
    RequestTokenResponse,
    parse_form_body,
)
from app.utils.http import RetryConfig, is_transient_status, request_with_retry

logger = logging.getLogger(__name__)


class OAuth1ProviderClient:
    """Talk to the provider's request-token, access-token and profile endpoints."""

    PROFILE_QUERY = {"include_email": "true", "skip_status": "true"}

    def __init__(
        self,
        provider_settings: ProviderSettings,
        signer: OAuth1Signer,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._provider = provider_settings
        self._signer = signer
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._provider.http_timeout, transport=self._transport
        )

    def build_authorization_url(self, oauth_token: str) -> str:
        """Append ``oauth_token`` to the provider's authorize URL."""
        parts = urlsplit(str(self._provider.authorize_url))
        query = urlencode({"oauth_token": oauth_token})
        if parts.query:
            query = f"{parts.query}&{query}"
        return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))

    async def fetch_request_token(self, callback_url: str) -> RequestTokenResponse:
        """Obtain a temporary credential pair for ``callback_url``."""
        url = str(self._provider.request_token_url)
        signed = self._signer.sign(
            "POST", url, extra_oauth_params={"oauth_callback": callback_url}
        )
        try:
            async with self._client() as client:
                response = await client.post(
                    url, headers={"Authorization": signed.authorization_header}
                )
        except httpx.TransportError as exc:
            raise ProviderUnavailable(f"Request-token call failed: {exc}") from exc

        if is_transient_status(response.status_code):
            raise ProviderUnavailable(
                f"Request-token endpoint returned {response.status_code}"
            )
        if response.status_code != status.HTTP_200_OK:
            raise CallbackNotConfirmed(
                f"Request-token endpoint returned {response.status_code}"
            )

        try:
            return RequestTokenResponse.model_validate(parse_form_body(response.text))
        except (FormBodyError, ValidationError) as exc:
            raise CallbackNotConfirmed(
                "Provider did not confirm the callback for the request token."
            ) from exc

    async def exchange_access_token(
        self, request_token: RequestToken, verifier: str
    ) -> AccessToken:
        """
        Trade an authorized request token and verifier for an access token.

        Never retried: a verifier is single use on the provider side.
        """
        url = str(self._provider.access_token_url)
        signed = self._signer.sign(
            "POST",
            url,
            token=request_token.token,
            token_secret=request_token.token_secret,
            extra_oauth_params={"oauth_verifier": verifier},
        )
        try:
            async with self._client() as client:
                response = await client.post(
                    url, headers={"Authorization": signed.authorization_header}
                )
        except httpx.TransportError as exc:
            raise ProviderUnavailable(f"Access-token call failed: {exc}") from exc

        if is_transient_status(response.status_code):
            raise ProviderUnavailable(
                f"Access-token endpoint returned {response.status_code}"
            )
        if response.status_code != status.HTTP_200_OK:
            raise ExchangeRejected(
                f"Access-token endpoint returned {response.status_code}"
            )

        try:
            payload = AccessTokenResponse.model_validate(parse_form_body(response.text))
        except (FormBodyError, ValidationError) as exc:
            raise ExchangeRejected("Malformed access-token response.") from exc

        return AccessToken(
            token=payload.oauth_token,
            token_secret=payload.oauth_token_secret,
            user_profile_id=payload.user_id or "",
        )

    async def fetch_profile_payload(
        self, access_token: AccessToken, *, retry_config: Optional[RetryConfig] = None
    ) -> Dict[str, Any]:
        """GET the profile endpoint, retrying once on transient failure."""
        url = str(self._provider.profile_url)
        params = dict(self.PROFILE_QUERY)

        async with self._client() as client:

            async def _send() -> httpx.Response:
                # Each attempt carries a fresh nonce and timestamp.
                signed = self._signer.sign(
                    "GET",
                    url,
                    params=params,
                    token=access_token.token,
                    token_secret=access_token.token_secret,
                )
                return await client.get(
                    url,
                    params=params,
                    headers={"Authorization": signed.authorization_header},
                )

            try:
                response = await request_with_retry(
                    _send, retry_config=retry_config or RetryConfig(attempts=2)
                )
            except httpx.TransportError as exc:
                raise ProviderUnavailable(f"Profile call failed: {exc}") from exc

        if response.status_code != status.HTTP_200_OK:
            raise ProviderUnavailable(
                f"Profile endpoint returned {response.status_code}"
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise IncompleteProfile("Profile response was not JSON.") from exc
        if not isinstance(payload, dict):
            raise IncompleteProfile("Profile response was not a JSON object.")
        return payload


__all__ = ["OAuth1ProviderClient"]
