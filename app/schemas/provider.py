"""
Strict schemas for identity-provider responses.

Token endpoints answer with form-encoded bodies. They are parsed into a flat
mapping and validated against a closed schema so that a missing or unexpected
field surfaces as a validation error rather than a silent default.
"""

from __future__ import annotations

from typing import Dict, Literal, Optional
from urllib.parse import parse_qsl

from pydantic import BaseModel, ConfigDict, Field


class FormBodyError(ValueError):
    """Raised when a form-encoded body cannot be parsed unambiguously."""


def parse_form_body(body: str) -> Dict[str, str]:
    """Parse ``application/x-www-form-urlencoded`` text, rejecting duplicates."""
    try:
        pairs = parse_qsl(body.strip(), keep_blank_values=True, strict_parsing=True)
    except ValueError as exc:
        raise FormBodyError(f"Malformed form body: {exc}") from exc
    parsed: Dict[str, str] = {}
    for key, value in pairs:
        if key in parsed:
            raise FormBodyError(f"Duplicate field {key!r} in form body")
        parsed[key] = value
    return parsed


class RequestTokenResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    oauth_token: str = Field(..., min_length=1)
    oauth_token_secret: str = Field(..., min_length=1)
    oauth_callback_confirmed: Literal["true"]


class AccessTokenResponse(BaseModel):
    """Access-token body; ``user_id``/``screen_name`` are provider extensions."""

    model_config = ConfigDict(extra="forbid")

    oauth_token: str = Field(..., min_length=1)
    oauth_token_secret: str = Field(..., min_length=1)
    user_id: Optional[str] = None
    screen_name: Optional[str] = None


class ProviderProfilePayload(BaseModel):
    """Subset of the provider's JSON user object that maps onto ``Profile``."""

    model_config = ConfigDict(extra="ignore")

    id_str: str = Field(..., min_length=1)
    name: str
    screen_name: str = Field(..., min_length=1)
    email: Optional[str] = None
    followers_count: int = 0
    friends_count: int = 0


__all__ = [
    "AccessTokenResponse",
    "FormBodyError",
    "ProviderProfilePayload",
    "RequestTokenResponse",
    "parse_form_body",
]
