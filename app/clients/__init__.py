"""Expose constructed client wrappers."""

from .account_store import AccountStore
from .oauth1_provider import OAuth1ProviderClient
from .oauth1_signer import OAuth1Signer, SignedRequest
from .request_token_store import RequestTokenStore

__all__ = [
    "AccountStore",
    "OAuth1ProviderClient",
    "OAuth1Signer",
    "RequestTokenStore",
    "SignedRequest",
]
