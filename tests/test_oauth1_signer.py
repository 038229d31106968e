try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import itertools
import random

import pytest

from app.clients.oauth1_signer import (
    OAuth1Signer,
    build_signing_key,
    normalize_base_url,
    percent_encode,
)
from app.core.errors import SignatureError

TWITTER_CONSUMER_KEY = "xvz1evFS4wEEPTGEFPHBog"
TWITTER_CONSUMER_SECRET = "kAcSOqF21Fu85e7zjz7ZN2U4ZRhfV3WpwPAoE3Z7kBw"
TWITTER_TOKEN = "370773112-GmHxMAgYyLbNEtIKZeRNFsMKPR9EyMZeS9weJAEb"
TWITTER_TOKEN_SECRET = "LswwdoUaIvS8ltyTt5jkRh4J50vUPVVHtR2YPi5kE"
TWITTER_NONCE = "kYjzVBB8Y0ZFabxSWbWovY3uYSQ2pTgmZeNu2VS4cg"
TWITTER_TIMESTAMP = "1318622958"
TWITTER_PARAMS = {
    "include_entities": "true",
    "status": "Hello Ladies + Gentlemen, a signed OAuth request!",
}


def _sign_twitter_example(params=TWITTER_PARAMS):
    signer = OAuth1Signer(TWITTER_CONSUMER_KEY, TWITTER_CONSUMER_SECRET)
    return signer.sign(
        "POST",
        "https://api.twitter.com/1.1/statuses/update.json",
        params=params,
        token=TWITTER_TOKEN,
        token_secret=TWITTER_TOKEN_SECRET,
        nonce=TWITTER_NONCE,
        timestamp=TWITTER_TIMESTAMP,
    )


def test_twitter_documented_base_string_and_signature() -> None:
    signed = _sign_twitter_example()

    assert signed.base_string == (
        "POST&https%3A%2F%2Fapi.twitter.com%2F1.1%2Fstatuses%2Fupdate.json&"
        "include_entities%3Dtrue%26oauth_consumer_key%3Dxvz1evFS4wEEPTGEFPHBog%26"
        "oauth_nonce%3DkYjzVBB8Y0ZFabxSWbWovY3uYSQ2pTgmZeNu2VS4cg%26"
        "oauth_signature_method%3DHMAC-SHA1%26oauth_timestamp%3D1318622958%26"
        "oauth_token%3D370773112-GmHxMAgYyLbNEtIKZeRNFsMKPR9EyMZeS9weJAEb%26"
        "oauth_version%3D1.0%26status%3DHello%2520Ladies%2520%252B%2520Gentlemen"
        "%252C%2520a%2520signed%2520OAuth%2520request%2521"
    )
    assert signed.signature == "hCtSmYh+iHYCEqBWrE7C7hYmtUk="


def test_oauth_core_photos_example_signature() -> None:
    signer = OAuth1Signer("dpf43f3p2l4k3l03", "kd94hf93k423kf44")
    signed = signer.sign(
        "GET",
        "http://photos.example.net/photos",
        params={"file": "vacation.jpg", "size": "original"},
        token="nnch734d00sl2jdk",
        token_secret="pfkkdhi9sl3r4s00",
        nonce="kllo9940pd9333jh",
        timestamp="1191242096",
    )

    assert signed.signature == "tR3+Ty81lMeYAr/Fid0kMTYa/WM="


def test_signature_is_deterministic_for_fixed_inputs() -> None:
    signatures = {_sign_twitter_example().signature for _ in range(5)}
    assert len(signatures) == 1


def test_parameter_order_does_not_change_signature() -> None:
    params = dict(TWITTER_PARAMS, count="5", a="z", b="", zeta="1")
    expected = _sign_twitter_example(params).signature

    rng = random.Random(1234)
    for _ in range(10):
        items = list(params.items())
        rng.shuffle(items)
        assert _sign_twitter_example(dict(items)).signature == expected


def test_authorization_header_carries_encoded_signature() -> None:
    signed = _sign_twitter_example()

    assert signed.authorization_header.startswith("OAuth ")
    assert 'oauth_signature="hCtSmYh%2BiHYCEqBWrE7C7hYmtUk%3D"' in signed.authorization_header
    assert 'oauth_signature_method="HMAC-SHA1"' in signed.authorization_header
    assert 'oauth_version="1.0"' in signed.authorization_header
    # Request parameters travel in the query/body, not the header.
    assert "status" not in signed.authorization_header


def test_extra_protocol_params_are_signed_and_sent_in_header() -> None:
    signer = OAuth1Signer("key", "secret")
    signed = signer.sign(
        "POST",
        "https://provider.example/oauth/request_token",
        extra_oauth_params={"oauth_callback": "https://app.example/cb"},
        nonce="n",
        timestamp="1",
    )

    assert "oauth_callback%3Dhttps%253A%252F%252Fapp.example%252Fcb" in signed.base_string
    assert 'oauth_callback="https%3A%2F%2Fapp.example%2Fcb"' in signed.authorization_header
    assert "oauth_token" not in signed.oauth_params


def test_non_oauth_extra_param_is_rejected() -> None:
    signer = OAuth1Signer("key", "secret")
    with pytest.raises(SignatureError):
        signer.sign("GET", "https://provider.example/x", extra_oauth_params={"callback": "x"})


def test_fresh_nonce_and_timestamp_per_request() -> None:
    ticks = itertools.count(1000)
    signer = OAuth1Signer("key", "secret", timestamp_factory=lambda: str(next(ticks)))

    first = signer.sign("GET", "https://provider.example/x")
    second = signer.sign("GET", "https://provider.example/x")

    assert first.oauth_params["oauth_nonce"] != second.oauth_params["oauth_nonce"]
    assert len(first.oauth_params["oauth_nonce"]) >= 8
    assert first.oauth_params["oauth_timestamp"] == "1000"
    assert second.oauth_params["oauth_timestamp"] == "1001"


@pytest.mark.parametrize(
    ("raw", "encoded"),
    [
        ("abcXYZ019-._~", "abcXYZ019-._~"),
        ("a b", "a%20b"),
        ("+", "%2B"),
        ("*", "%2A"),
        ("/?&=", "%2F%3F%26%3D"),
        ("☃", "%E2%98%83"),
    ],
)
def test_percent_encode_uses_rfc3986_unreserved_set(raw: str, encoded: str) -> None:
    assert percent_encode(raw) == encoded


def test_signing_key_with_and_without_token_secret() -> None:
    assert build_signing_key("c&s", "") == "c%26s&"
    assert build_signing_key("cs", "t s") == "cs&t%20s"


def test_normalize_base_url_strips_default_port_query_and_case() -> None:
    base_url, query = normalize_base_url("HTTP://Example.COM:80/r%20v/X?id=123#frag")

    assert base_url == "http://example.com/r%20v/X"
    assert query == [("id", "123")]


def test_normalize_base_url_keeps_non_default_port() -> None:
    base_url, _ = normalize_base_url("https://example.com:8443/path")
    assert base_url == "https://example.com:8443/path"


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("http://[::1]:8080/x", "http://[::1]:8080/x"),
        ("https://[2001:DB8::1]:443/x", "https://[2001:db8::1]/x"),
    ],
)
def test_normalize_base_url_keeps_ipv6_brackets(url: str, expected: str) -> None:
    base_url, _ = normalize_base_url(url)
    assert base_url == expected


def test_query_embedded_in_url_is_signed_like_params() -> None:
    signer = OAuth1Signer("key", "secret")
    embedded = signer.sign("GET", "https://example.com/p?a=1", nonce="n", timestamp="1")
    explicit = signer.sign(
        "GET", "https://example.com/p", params={"a": "1"}, nonce="n", timestamp="1"
    )
    assert embedded.signature == explicit.signature


@pytest.mark.parametrize(
    "url",
    ["ftp://example.com/file", "not a url", "https://example.com:notaport/", "/relative"],
)
def test_malformed_base_url_raises_signature_error(url: str) -> None:
    signer = OAuth1Signer("key", "secret")
    with pytest.raises(SignatureError):
        signer.sign("GET", url)


def test_signer_requires_consumer_credentials() -> None:
    with pytest.raises(SignatureError):
        OAuth1Signer("", "secret")
