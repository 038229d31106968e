"""
Error taxonomy for the OAuth 1.0a login flow.

Every failure the flow can surface is an ``OAuthFlowError`` carrying a stable
``reason`` code (returned to API clients verbatim) and the HTTP status the API
layer responds with.
"""

from __future__ import annotations

from http import HTTPStatus


class OAuthFlowError(Exception):
    """Base exception for login-flow failures."""

    reason = "OAuthFlowError"
    status_code = HTTPStatus.BAD_REQUEST
    retryable = False

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.reason)
        self.message = message or self.reason


class ProviderUnavailable(OAuthFlowError):
    """Network failure, timeout or 5xx from the identity provider."""

    reason = "ProviderUnavailable"
    status_code = HTTPStatus.BAD_GATEWAY
    retryable = True


class CallbackNotConfirmed(OAuthFlowError):
    """The provider did not confirm the callback URL for a request token."""

    reason = "CallbackNotConfirmed"
    status_code = HTTPStatus.BAD_GATEWAY


class MalformedCallback(OAuthFlowError):
    reason = "MalformedCallback"


class InvalidOrExpiredToken(OAuthFlowError):
    """Unknown, already consumed or expired request token."""

    reason = "InvalidOrExpiredToken"


class ExchangeRejected(OAuthFlowError):
    """The provider refused to exchange the verifier for an access token."""

    reason = "ExchangeRejected"
    status_code = HTTPStatus.UNAUTHORIZED


class UserDenied(OAuthFlowError):
    reason = "UserDenied"
    status_code = HTTPStatus.FORBIDDEN


class IncompleteProfile(OAuthFlowError):
    """The profile response lacked required identity fields."""

    reason = "IncompleteProfile"
    status_code = HTTPStatus.BAD_GATEWAY


class SignatureError(OAuthFlowError):
    """A request could not be signed; indicates a configuration bug."""

    reason = "SignatureError"
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR


__all__ = [
    "CallbackNotConfirmed",
    "ExchangeRejected",
    "IncompleteProfile",
    "InvalidOrExpiredToken",
    "MalformedCallback",
    "OAuthFlowError",
    "ProviderUnavailable",
    "SignatureError",
    "UserDenied",
]
