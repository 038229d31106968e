"""Schemas exchanged with API clients during the login flow."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.oauth import LocalUser, Profile


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AuthorizationStartResponse(_CamelModel):
    """Returned to non-browser clients instead of a redirect."""

    authorization_url: str = Field(..., description="Provider consent URL.")
    oauth_token: str = Field(..., description="Request token embedded in the URL.")


class UserPayload(_CamelModel):
    provider_user_id: str
    display_name: str
    handle: str
    email: Optional[str] = None
    follower_count: int = 0
    following_count: int = 0

    @classmethod
    def from_profile(cls, profile: Profile) -> "UserPayload":
        return cls(**profile.model_dump())

    @classmethod
    def from_user(cls, user: LocalUser) -> "UserPayload":
        return cls(
            provider_user_id=user.provider_user_id,
            display_name=user.display_name,
            handle=user.handle,
            email=user.email,
            follower_count=user.follower_count,
            following_count=user.following_count,
        )


class CallbackSuccessPayload(_CamelModel):
    success: bool = True
    user: UserPayload
    session_token: str = Field(..., description="Bearer value for non-browser clients.")
    session_expires_at: datetime


class SessionPayload(_CamelModel):
    success: bool = True
    user: UserPayload
    expires_at: datetime


class ErrorPayload(_CamelModel):
    success: bool = False
    error: str = Field(..., description="Stable failure reason code.")


__all__ = [
    "AuthorizationStartResponse",
    "CallbackSuccessPayload",
    "ErrorPayload",
    "SessionPayload",
    "UserPayload",
]
