from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

from app.models.oauth import AccessToken, Profile


def _profile(**overrides) -> Profile:
    fields = dict(
        provider_user_id="42",
        display_name="Jane",
        handle="jane",
        email=None,
        follower_count=10,
        following_count=3,
    )
    fields.update(overrides)
    return Profile(**fields)


def test_first_login_creates_user_and_session(login_stack) -> None:
    established = login_stack.establisher.establish(
        _profile(), AccessToken(token="A1", token_secret="AS1")
    )

    user = login_stack.account_store.get_user_by_provider_id("42")
    assert user is not None
    assert established.user.id == user.id
    assert established.session.local_user_id == user.id
    assert established.session.expires_at - established.session.issued_at == timedelta(hours=1)


def test_reauth_updates_same_user_and_keeps_prior_sessions(login_stack) -> None:
    first = login_stack.establisher.establish(
        _profile(), AccessToken(token="A1", token_secret="AS1")
    )
    second = login_stack.establisher.establish(
        _profile(handle="jane_doe", email="jane@example.com", follower_count=11),
        AccessToken(token="A2", token_secret="AS2"),
    )

    assert second.user.id == first.user.id
    assert second.user.handle == "jane_doe"
    assert second.user.email == "jane@example.com"
    assert second.user.follower_count == 11
    assert second.user.created_at == first.user.created_at
    assert second.user.updated_at >= first.user.updated_at

    assert first.session.session_id != second.session.session_id
    assert login_stack.sessions.resolve(first.session.session_id) is not None
    assert login_stack.sessions.resolve(second.session.session_id) is not None
    assert len(login_stack.account_store.list_sessions(first.user.id)) == 2

    token = login_stack.establisher.load_access_token(first.user.id)
    assert (token.token, token.token_secret) == ("A2", "AS2")


def test_access_token_is_encrypted_at_rest(login_stack) -> None:
    established = login_stack.establisher.establish(
        _profile(), AccessToken(token="A1", token_secret="AS1")
    )

    record = login_stack.account_store.get_access_token_record(established.user.id)
    assert record["token_encrypted"] != "A1"
    assert record["token_secret_encrypted"] != "AS1"
    assert login_stack.cipher.decrypt(record["token_secret_encrypted"]) == "AS1"


def test_concurrent_first_logins_share_one_user(login_stack) -> None:
    def _login(index: int):
        return login_stack.establisher.establish(
            _profile(display_name=f"Jane {index}"),
            AccessToken(token=f"A{index}", token_secret="secret"),
        )

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(_login, range(8)))

    assert len({result.user.id for result in results}) == 1
    assert len({result.session.session_id for result in results}) == 8


def test_expired_session_does_not_resolve(login_stack) -> None:
    established = login_stack.establisher.establish(
        _profile(), AccessToken(token="A1", token_secret="AS1")
    )
    later = datetime.now(timezone.utc) + timedelta(hours=2)

    assert login_stack.sessions.resolve(established.session.session_id, now=later) is None
    assert login_stack.account_store.purge_expired_sessions(now=later) == 1


def test_revoke_only_affects_one_session(login_stack) -> None:
    first = login_stack.establisher.establish(_profile(), AccessToken(token="A1", token_secret="S"))
    second = login_stack.establisher.establish(_profile(), AccessToken(token="A2", token_secret="S"))

    assert login_stack.sessions.revoke(first.session.session_id) is True
    assert login_stack.sessions.revoke(first.session.session_id) is False
    assert login_stack.sessions.resolve(first.session.session_id) is None
    assert login_stack.sessions.resolve(second.session.session_id) is not None


def test_unknown_user_has_no_access_token(login_stack) -> None:
    assert login_stack.establisher.load_access_token("missing") is None
