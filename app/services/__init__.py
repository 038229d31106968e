"""Service layer exports."""

from .authorization import RequestTokenService, build_authorization_url
from .callback_handler import CallbackHandler, CallbackOutcome, CallbackState
from .profile_fetcher import ProfileFetcher, normalize_profile
from .sessions import EstablishedSession, SessionEstablisher, SessionService
from .token_cipher import TokenCipherService, TokenDecryptionError

__all__ = [
    "CallbackHandler",
    "CallbackOutcome",
    "CallbackState",
    "EstablishedSession",
    "ProfileFetcher",
    "RequestTokenService",
    "SessionEstablisher",
    "SessionService",
    "TokenCipherService",
    "TokenDecryptionError",
    "build_authorization_url",
    "normalize_profile",
]
