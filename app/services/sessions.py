"""
Local account binding and session issuance.

``SessionEstablisher`` is the only component that creates local users from
the login flow; it never deletes them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.clients.account_store import AccountStore
from app.models.oauth import AccessToken, LocalUser, Profile, Session, utcnow
from app.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EstablishedSession:
    session: Session
    user: LocalUser
    profile: Profile


class SessionEstablisher:
    """Upsert the local user, store its access token and start a session."""

    def __init__(
        self,
        *,
        store: AccountStore,
        token_cipher: TokenCipherService,
        session_ttl_seconds: int,
    ) -> None:
        self._store = store
        self._cipher = token_cipher
        self._ttl = session_ttl_seconds

    def establish(self, profile: Profile, access_token: AccessToken) -> EstablishedSession:
        now = utcnow()
        user = self._store.upsert_user(profile, now=now)

        token_encrypted, secret_encrypted = self._cipher.encrypt_pair(
            access_token.token, access_token.token_secret
        )
        self._store.save_access_token(
            user_id=user.id,
            provider_user_id=profile.provider_user_id,
            token_encrypted=token_encrypted,
            token_secret_encrypted=secret_encrypted,
            obtained_at=access_token.obtained_at,
        )

        session = self._store.create_session(user_id=user.id, ttl_seconds=self._ttl, now=now)
        logger.info(
            "Established session for local user %s (provider id %s)",
            user.id,
            profile.provider_user_id,
        )
        return EstablishedSession(session=session, user=user, profile=profile)

    def load_access_token(self, user_id: str) -> Optional[AccessToken]:
        """Return the decrypted access token stored for ``user_id``."""
        record = self._store.get_access_token_record(user_id)
        if not record:
            return None
        token, token_secret = self._cipher.decrypt_pair(
            record["token_encrypted"], record["token_secret_encrypted"]
        )
        return AccessToken(
            token=token,
            token_secret=token_secret,
            user_profile_id=record["provider_user_id"],
            obtained_at=record["obtained_at"],
        )


class SessionService:
    """Resolve and revoke sessions presented by API callers."""

    def __init__(self, store: AccountStore) -> None:
        self._store = store

    def resolve(
        self, session_id: str, *, now: Optional[datetime] = None
    ) -> Optional[tuple[Session, LocalUser]]:
        session = self._store.get_session(session_id, now=now)
        if session is None:
            return None
        user = self._store.get_user(session.local_user_id)
        if user is None:
            return None
        return session, user

    def revoke(self, session_id: str) -> bool:
        """Invalidate one session; other sessions of the same user survive."""
        return self._store.delete_session(session_id)


__all__ = ["EstablishedSession", "SessionEstablisher", "SessionService"]
