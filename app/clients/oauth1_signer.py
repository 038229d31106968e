"""
OAuth 1.0a request signing (RFC 5849, HMAC-SHA1).

The signer is pure given its inputs: it never touches the network, and the
nonce and timestamp sources are injectable so signatures can be reproduced.
"""

from __future__ import annotations

import base64
import hmac
import secrets
import time
from dataclasses import dataclass
from hashlib import sha1
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

from app.core.errors import SignatureError

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"

_DEFAULT_PORTS = {"http": 80, "https": 443}


def percent_encode(value: object) -> str:
    """Encode everything except the RFC 3986 unreserved set ``A-Za-z0-9-._~``."""
    if isinstance(value, bytes):
        text = value
    else:
        text = str(value).encode("utf-8")
    return quote(text, safe="~")


def default_nonce() -> str:
    """128 random bits, hex encoded."""
    return secrets.token_hex(16)


def default_timestamp() -> str:
    return str(int(time.time()))


def normalize_base_url(url: str) -> Tuple[str, List[Tuple[str, str]]]:
    """
    Split ``url`` into its signature base URL and any embedded query pairs.

    Scheme and host are lower-cased, default ports dropped, and the query and
    fragment removed as required for the base string.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as exc:
        raise SignatureError(f"Malformed base URL: {exc}") from exc

    scheme = parts.scheme.lower()
    if scheme not in _DEFAULT_PORTS or not parts.hostname:
        raise SignatureError("Base URL must be an absolute http(s) URL")

    netloc = parts.hostname.lower()
    if ":" in netloc:
        netloc = f"[{netloc}]"
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        netloc = f"{netloc}:{port}"
    path = parts.path or "/"
    base_url = urlunsplit((scheme, netloc, path, "", ""))
    query_pairs = parse_qsl(parts.query, keep_blank_values=True)
    return base_url, query_pairs


def normalize_parameters(params: Iterable[Tuple[str, str]]) -> str:
    """Encode, sort by key then value, and join as ``k=v&k=v``."""
    encoded = sorted(
        (percent_encode(key), percent_encode(value)) for key, value in params
    )
    return "&".join(f"{key}={value}" for key, value in encoded)


def build_base_string(
    method: str, base_url: str, params: Iterable[Tuple[str, str]]
) -> str:
    return "&".join(
        (
            method.upper(),
            percent_encode(base_url),
            percent_encode(normalize_parameters(params)),
        )
    )


def build_signing_key(consumer_secret: str, token_secret: str = "") -> str:
    return f"{percent_encode(consumer_secret)}&{percent_encode(token_secret or '')}"


def sign_base_string(base_string: str, signing_key: str) -> str:
    digest = hmac.new(
        signing_key.encode("utf-8"), base_string.encode("utf-8"), sha1
    ).digest()
    return base64.b64encode(digest).decode("ascii")


@dataclass(frozen=True)
class SignedRequest:
    """Result of signing: the signature plus everything needed to send it."""

    method: str
    url: str
    base_string: str
    signature: str
    oauth_params: Dict[str, str]
    authorization_header: str


class OAuth1Signer:
    """Sign outgoing requests on behalf of one consumer."""

    def __init__(
        self,
        consumer_key: str,
        consumer_secret: str,
        *,
        nonce_factory: Callable[[], str] = default_nonce,
        timestamp_factory: Callable[[], str] = default_timestamp,
    ) -> None:
        if not consumer_key or not consumer_secret:
            raise SignatureError("Consumer key and secret must be configured")
        self._consumer_key = consumer_key
        self._consumer_secret = consumer_secret
        self._nonce_factory = nonce_factory
        self._timestamp_factory = timestamp_factory

    def sign(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        token: Optional[str] = None,
        token_secret: str = "",
        extra_oauth_params: Optional[Mapping[str, str]] = None,
        nonce: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> SignedRequest:
        """
        Sign a request.

        ``params`` are the query-string or form-body parameters that travel
        with the request; ``extra_oauth_params`` are protocol parameters such
        as ``oauth_callback`` or ``oauth_verifier`` that go in the header.
        """
        base_url, url_params = normalize_base_url(url)

        oauth_params: Dict[str, str] = {
            "oauth_consumer_key": self._consumer_key,
            "oauth_nonce": nonce or self._nonce_factory(),
            "oauth_signature_method": SIGNATURE_METHOD,
            "oauth_timestamp": timestamp or self._timestamp_factory(),
            "oauth_version": OAUTH_VERSION,
        }
        if token:
            oauth_params["oauth_token"] = token
        for key, value in (extra_oauth_params or {}).items():
            if not key.startswith("oauth_"):
                raise SignatureError(f"Protocol parameter {key!r} must use the oauth_ prefix")
            oauth_params[key] = value

        all_params: List[Tuple[str, str]] = list(url_params)
        all_params.extend((params or {}).items())
        all_params.extend(oauth_params.items())

        try:
            base_string = build_base_string(method, base_url, all_params)
            signature = sign_base_string(
                base_string, build_signing_key(self._consumer_secret, token_secret)
            )
        except (TypeError, UnicodeError) as exc:
            raise SignatureError(f"Failed to encode request parameters: {exc}") from exc

        header_params = dict(oauth_params, oauth_signature=signature)
        return SignedRequest(
            method=method.upper(),
            url=url,
            base_string=base_string,
            signature=signature,
            oauth_params=header_params,
            authorization_header=build_authorization_header(header_params),
        )


def build_authorization_header(oauth_params: Mapping[str, str]) -> str:
    pairs = ", ".join(
        f'{percent_encode(key)}="{percent_encode(value)}"'
        for key, value in sorted(oauth_params.items())
    )
    return f"OAuth {pairs}"


__all__ = [
    "OAuth1Signer",
    "SignedRequest",
    "build_authorization_header",
    "build_base_string",
    "build_signing_key",
    "normalize_base_url",
    "normalize_parameters",
    "percent_encode",
    "sign_base_string",
]
