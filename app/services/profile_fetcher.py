"""Retrieve and normalize the authenticated user's provider profile."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import ValidationError

from app.clients.oauth1_provider import OAuth1ProviderClient
from app.core.errors import IncompleteProfile
from app.models.oauth import AccessToken, Profile
from app.schemas.provider import ProviderProfilePayload
from app.utils.http import RetryConfig


def normalize_profile(payload: Dict[str, Any]) -> Profile:
    """Map the provider's user object onto ``Profile``."""
    try:
        parsed = ProviderProfilePayload.model_validate(payload)
    except ValidationError as exc:
        missing = sorted(
            ".".join(str(part) for part in error["loc"]) for error in exc.errors()
        )
        raise IncompleteProfile(
            f"Profile response missing or invalid fields: {', '.join(missing)}"
        ) from exc

    return Profile(
        provider_user_id=parsed.id_str,
        display_name=parsed.name,
        handle=parsed.screen_name,
        email=parsed.email or None,
        follower_count=parsed.followers_count,
        following_count=parsed.friends_count,
    )


class ProfileFetcher:
    def __init__(self, provider: OAuth1ProviderClient, *, retry_backoff_seconds: float = 0.5) -> None:
        self._provider = provider
        self._retry = RetryConfig(attempts=2, backoff_seconds=retry_backoff_seconds)

    async def fetch_profile(self, access_token: AccessToken) -> Profile:
        payload = await self._provider.fetch_profile_payload(
            access_token, retry_config=self._retry
        )
        return normalize_profile(payload)


__all__ = ["ProfileFetcher", "normalize_profile"]
