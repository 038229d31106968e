"""
Domain models for the OAuth 1.0a login flow and the local accounts it creates.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RequestToken(BaseModel):
    """Temporary credential pair awaiting the user's approval."""

    token: str
    token_secret: str
    created_at: datetime
    expires_at: datetime
    consumed: bool = False

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= self.expires_at

    def is_usable(self, now: Optional[datetime] = None) -> bool:
        return not self.consumed and not self.is_expired(now)


class AccessToken(BaseModel):
    """Long-lived credential pair authorizing API calls for one user."""

    token: str
    token_secret: str
    user_profile_id: str = Field(
        "", description="Provider user id the token was issued for, when known."
    )
    obtained_at: datetime = Field(default_factory=utcnow)


class Profile(BaseModel):
    """Normalized identity returned by the provider's profile endpoint."""

    provider_user_id: str
    display_name: str
    handle: str
    email: Optional[str] = None
    follower_count: int = 0
    following_count: int = 0


class LocalUser(BaseModel):
    """Local account joined to a provider identity by ``provider_user_id``."""

    id: str
    provider_user_id: str
    display_name: str
    handle: str
    email: Optional[str] = None
    follower_count: int = 0
    following_count: int = 0
    created_at: datetime
    updated_at: datetime


class Session(BaseModel):
    session_id: str
    local_user_id: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= self.expires_at


__all__ = [
    "AccessToken",
    "LocalUser",
    "Profile",
    "RequestToken",
    "Session",
    "utcnow",
]
