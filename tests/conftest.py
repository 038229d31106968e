"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback when tests is not a package
    import _bootstrap  # type: ignore # noqa: F401

from dataclasses import dataclass
from urllib.parse import unquote

import httpx
import pytest

from app.clients import AccountStore, OAuth1ProviderClient, OAuth1Signer, RequestTokenStore
from app.core.config import ProviderSettings
from app.services import (
    CallbackHandler,
    ProfileFetcher,
    RequestTokenService,
    SessionEstablisher,
    SessionService,
    TokenCipherService,
)

REQUEST_TOKEN_PATH = "/oauth/request_token"
ACCESS_TOKEN_PATH = "/oauth/access_token"
PROFILE_PATH = "/1.1/account/verify_credentials.json"


def parse_authorization_header(value: str) -> dict[str, str]:
    """Split an ``OAuth k="v", ...`` header into decoded parameters."""
    assert value.startswith("OAuth ")
    params = {}
    for item in value[len("OAuth "):].split(", "):
        key, _, quoted = item.partition("=")
        params[key] = unquote(quoted.strip('"'))
    return params


class StubProvider:
    """In-memory identity provider served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.request_token_responses: list = [
            httpx.Response(
                200,
                text="oauth_token=T1&oauth_token_secret=S1&oauth_callback_confirmed=true",
            )
        ]
        self.access_token_responses: list = [
            httpx.Response(
                200,
                text="oauth_token=A1&oauth_token_secret=AS1&user_id=42&screen_name=jane",
            )
        ]
        self.profile_responses: list = [
            httpx.Response(
                200,
                json={
                    "id": 42,
                    "id_str": "42",
                    "name": "Jane",
                    "screen_name": "jane",
                    "followers_count": 10,
                    "friends_count": 3,
                    "verified": False,
                },
            )
        ]
        self.requests: list[httpx.Request] = []

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.path == path]

    def _next(self, queue: list, request: httpx.Request) -> httpx.Response:
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        routes = {
            REQUEST_TOKEN_PATH: self.request_token_responses,
            ACCESS_TOKEN_PATH: self.access_token_responses,
            PROFILE_PATH: self.profile_responses,
        }
        queue = routes.get(request.url.path)
        if queue is None:
            return httpx.Response(404)
        return self._next(queue, request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@dataclass
class LoginStack:
    provider_stub: StubProvider
    signer: OAuth1Signer
    provider: OAuth1ProviderClient
    token_store: RequestTokenStore
    account_store: AccountStore
    cipher: TokenCipherService
    request_tokens: RequestTokenService
    establisher: SessionEstablisher
    sessions: SessionService
    callback_handler: CallbackHandler


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def provider_settings() -> ProviderSettings:
    return ProviderSettings(
        OAUTH_CONSUMER_KEY="consumer-key",
        OAUTH_CONSUMER_SECRET="consumer-secret",
        OAUTH_CALLBACK_URL="https://app.example/cb",
    )


@pytest.fixture
def provider_stub() -> StubProvider:
    return StubProvider()


@pytest.fixture
def login_stack(tmp_path, provider_settings, provider_stub) -> LoginStack:
    db_path = str(tmp_path / "auth.sqlite3")
    signer = OAuth1Signer(provider_settings.consumer_key, provider_settings.consumer_secret)
    provider = OAuth1ProviderClient(
        provider_settings, signer, transport=provider_stub.transport
    )
    token_store = RequestTokenStore(db_path)
    account_store = AccountStore(db_path)
    cipher = TokenCipherService(secret="stack-secret")
    establisher = SessionEstablisher(
        store=account_store, token_cipher=cipher, session_ttl_seconds=3600
    )
    return LoginStack(
        provider_stub=provider_stub,
        signer=signer,
        provider=provider,
        token_store=token_store,
        account_store=account_store,
        cipher=cipher,
        request_tokens=RequestTokenService(
            provider=provider, store=token_store, ttl_seconds=300
        ),
        establisher=establisher,
        sessions=SessionService(account_store),
        callback_handler=CallbackHandler(
            provider=provider,
            token_store=token_store,
            profile_fetcher=ProfileFetcher(provider, retry_backoff_seconds=0),
            session_establisher=establisher,
        ),
    )
