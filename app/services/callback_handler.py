"""
Provider callback handling for the OAuth 1.0a login flow.

A callback moves through ``AWAITING_CALLBACK -> VALIDATING -> EXCHANGING ->
PROFILE_FETCHING -> ESTABLISHED``, or ends in ``FAILED`` with a reason from
any state. The request token is consumed before the exchange request is sent,
so a token is exchanged at most once even under duplicate callbacks, and it
stays consumed whatever happens afterwards.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from app.clients.oauth1_provider import OAuth1ProviderClient
from app.clients.request_token_store import RequestTokenStore
from app.core.errors import (
    InvalidOrExpiredToken,
    MalformedCallback,
    OAuthFlowError,
    SignatureError,
    UserDenied,
)
from app.services.profile_fetcher import ProfileFetcher
from app.services.sessions import EstablishedSession, SessionEstablisher

logger = logging.getLogger(__name__)


class CallbackState(str, enum.Enum):
    AWAITING_CALLBACK = "AwaitingCallback"
    VALIDATING = "Validating"
    EXCHANGING = "Exchanging"
    PROFILE_FETCHING = "ProfileFetching"
    ESTABLISHED = "Established"
    FAILED = "Failed"


_TERMINAL = {CallbackState.ESTABLISHED, CallbackState.FAILED}

_TRANSITIONS = {
    CallbackState.AWAITING_CALLBACK: {CallbackState.VALIDATING},
    CallbackState.VALIDATING: {CallbackState.EXCHANGING},
    CallbackState.EXCHANGING: {CallbackState.PROFILE_FETCHING},
    CallbackState.PROFILE_FETCHING: {CallbackState.ESTABLISHED},
}


@dataclass
class CallbackOutcome:
    """Record of one callback's path through the state machine."""

    state: CallbackState = CallbackState.AWAITING_CALLBACK
    history: List[CallbackState] = field(
        default_factory=lambda: [CallbackState.AWAITING_CALLBACK]
    )
    error: Optional[OAuthFlowError] = None
    result: Optional[EstablishedSession] = None

    @property
    def reason(self) -> Optional[str]:
        return self.error.reason if self.error else None

    @property
    def succeeded(self) -> bool:
        return self.state is CallbackState.ESTABLISHED

    def advance(self, new_state: CallbackState) -> None:
        if new_state is CallbackState.FAILED:
            allowed = self.state not in _TERMINAL
        else:
            allowed = new_state in _TRANSITIONS.get(self.state, set())
        if not allowed:
            raise RuntimeError(f"Illegal callback transition {self.state} -> {new_state}")
        self.state = new_state
        self.history.append(new_state)

    def fail(self, error: OAuthFlowError) -> "CallbackOutcome":
        self.error = error
        self.advance(CallbackState.FAILED)
        return self


class CallbackHandler:
    """Drive one provider callback to an established session or a failure."""

    def __init__(
        self,
        *,
        provider: OAuth1ProviderClient,
        token_store: RequestTokenStore,
        profile_fetcher: ProfileFetcher,
        session_establisher: SessionEstablisher,
    ) -> None:
        self._provider = provider
        self._tokens = token_store
        self._profiles = profile_fetcher
        self._sessions = session_establisher

    async def handle(self, params: Mapping[str, str]) -> CallbackOutcome:
        """
        Process the callback query parameters.

        Flow errors are captured on the returned outcome; anything else
        (storage faults, programming errors) propagates.
        """
        outcome = CallbackOutcome()
        try:
            return await self._run(params, outcome)
        except SignatureError as exc:
            logger.error("Failed to sign provider request: %s", exc.message)
            return outcome.fail(exc)
        except OAuthFlowError as exc:
            logger.warning(
                "OAuth callback failed in state %s: %s (%s) retryable=%s",
                outcome.state.value,
                exc.reason,
                exc.message,
                exc.retryable,
            )
            return outcome.fail(exc)

    async def _run(
        self, params: Mapping[str, str], outcome: CallbackOutcome
    ) -> CallbackOutcome:
        outcome.advance(CallbackState.VALIDATING)

        denied = params.get("denied")
        if denied:
            self._reject_denial(denied)

        oauth_token = params.get("oauth_token")
        verifier = params.get("oauth_verifier")
        if not oauth_token or not verifier:
            raise MalformedCallback("Callback requires oauth_token and oauth_verifier.")

        request_token = self._tokens.consume(oauth_token)
        if request_token is None:
            raise InvalidOrExpiredToken("Request token is unknown, consumed or expired.")

        outcome.advance(CallbackState.EXCHANGING)
        access_token = await self._provider.exchange_access_token(request_token, verifier)
        self._tokens.delete(request_token.token)

        outcome.advance(CallbackState.PROFILE_FETCHING)
        profile = await self._profiles.fetch_profile(access_token)
        if access_token.user_profile_id and access_token.user_profile_id != profile.provider_user_id:
            logger.warning(
                "Access token issued for provider user %s but profile reports %s",
                access_token.user_profile_id,
                profile.provider_user_id,
            )
        access_token = access_token.model_copy(
            update={"user_profile_id": profile.provider_user_id}
        )

        outcome.result = self._sessions.establish(profile, access_token)
        outcome.advance(CallbackState.ESTABLISHED)
        return outcome

    def _reject_denial(self, denied_token: str) -> None:
        """Burn the denied request token so the callback cannot be replayed."""
        if self._tokens.consume(denied_token) is None:
            raise InvalidOrExpiredToken("Denied request token is unknown, consumed or expired.")
        raise UserDenied("User declined to authorize the application.")


__all__ = ["CallbackHandler", "CallbackOutcome", "CallbackState"]
