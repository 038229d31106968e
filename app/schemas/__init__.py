"""Public schema exports."""

from .auth import (
    AuthorizationStartResponse,
    CallbackSuccessPayload,
    ErrorPayload,
    SessionPayload,
    UserPayload,
)
from .provider import (
    AccessTokenResponse,
    FormBodyError,
    ProviderProfilePayload,
    RequestTokenResponse,
    parse_form_body,
)

__all__ = [
    "AccessTokenResponse",
    "AuthorizationStartResponse",
    "CallbackSuccessPayload",
    "ErrorPayload",
    "FormBodyError",
    "ProviderProfilePayload",
    "RequestTokenResponse",
    "SessionPayload",
    "UserPayload",
    "parse_form_body",
]
