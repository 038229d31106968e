"""SQLite-backed durable storage for local users, access tokens and sessions."""

from __future__ import annotations

import secrets
import sqlite3
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional
from uuid import uuid4

from app.models.oauth import LocalUser, Profile, Session, utcnow
from app.utils.timestamps import from_db, to_db


class AccountStore:
    """Users keyed by provider identity, their access tokens, and sessions."""

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False, timeout=10.0)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    provider_user_id TEXT NOT NULL UNIQUE,
                    display_name TEXT NOT NULL,
                    handle TEXT NOT NULL,
                    email TEXT,
                    follower_count INTEGER NOT NULL DEFAULT 0,
                    following_count INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS access_tokens (
                    user_id TEXT PRIMARY KEY REFERENCES users (id),
                    provider_user_id TEXT NOT NULL,
                    token_encrypted TEXT NOT NULL,
                    token_secret_encrypted TEXT NOT NULL,
                    obtained_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    session_id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL REFERENCES users (id),
                    issued_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS ix_sessions_user_id ON sessions (user_id)"
            )

    def upsert_user(self, profile: Profile, *, now: Optional[datetime] = None) -> LocalUser:
        """
        Create the user on first sight of ``provider_user_id``, else refresh
        its mutable fields. The local id and ``created_at`` never change.
        """
        now_db = to_db(now or utcnow())
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO users (
                    id,
                    provider_user_id,
                    display_name,
                    handle,
                    email,
                    follower_count,
                    following_count,
                    created_at,
                    updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(provider_user_id) DO UPDATE SET
                    display_name = excluded.display_name,
                    handle = excluded.handle,
                    email = excluded.email,
                    follower_count = excluded.follower_count,
                    following_count = excluded.following_count,
                    updated_at = excluded.updated_at
                """,
                (
                    uuid4().hex,
                    profile.provider_user_id,
                    profile.display_name,
                    profile.handle,
                    profile.email,
                    profile.follower_count,
                    profile.following_count,
                    now_db,
                    now_db,
                ),
            )
            row = conn.execute(
                "SELECT * FROM users WHERE provider_user_id = ?",
                (profile.provider_user_id,),
            ).fetchone()
        return self._row_to_user(row)

    def get_user(self, user_id: str) -> Optional[LocalUser]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
        return self._row_to_user(row) if row else None

    def get_user_by_provider_id(self, provider_user_id: str) -> Optional[LocalUser]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM users WHERE provider_user_id = ?", (provider_user_id,)
            ).fetchone()
        return self._row_to_user(row) if row else None

    def save_access_token(
        self,
        *,
        user_id: str,
        provider_user_id: str,
        token_encrypted: str,
        token_secret_encrypted: str,
        obtained_at: datetime,
    ) -> None:
        """Store the user's access-token pair, replacing any previous one."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO access_tokens (
                    user_id, provider_user_id, token_encrypted, token_secret_encrypted, obtained_at
                )
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    provider_user_id = excluded.provider_user_id,
                    token_encrypted = excluded.token_encrypted,
                    token_secret_encrypted = excluded.token_secret_encrypted,
                    obtained_at = excluded.obtained_at
                """,
                (
                    user_id,
                    provider_user_id,
                    token_encrypted,
                    token_secret_encrypted,
                    to_db(obtained_at),
                ),
            )

    def get_access_token_record(self, user_id: str) -> Optional[dict]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM access_tokens WHERE user_id = ?", (user_id,)
            ).fetchone()
        if not row:
            return None
        record = dict(row)
        record["obtained_at"] = from_db(record["obtained_at"])
        return record

    def create_session(
        self, *, user_id: str, ttl_seconds: int, now: Optional[datetime] = None
    ) -> Session:
        issued_at = now or utcnow()
        session = Session(
            session_id=secrets.token_urlsafe(32),
            local_user_id=user_id,
            issued_at=issued_at,
            expires_at=issued_at + timedelta(seconds=ttl_seconds),
        )
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO sessions (session_id, user_id, issued_at, expires_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    session.session_id,
                    session.local_user_id,
                    to_db(session.issued_at),
                    to_db(session.expires_at),
                ),
            )
        return session

    def get_session(
        self, session_id: str, *, now: Optional[datetime] = None
    ) -> Optional[Session]:
        """Return the session if it exists and has not expired."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM sessions WHERE session_id = ?", (session_id,)
            ).fetchone()
        if not row:
            return None
        session = Session(
            session_id=row["session_id"],
            local_user_id=row["user_id"],
            issued_at=from_db(row["issued_at"]),
            expires_at=from_db(row["expires_at"]),
        )
        if session.is_expired(now):
            return None
        return session

    def list_sessions(self, user_id: str) -> list[Session]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM sessions WHERE user_id = ? ORDER BY issued_at",
                (user_id,),
            ).fetchall()
        return [
            Session(
                session_id=row["session_id"],
                local_user_id=row["user_id"],
                issued_at=from_db(row["issued_at"]),
                expires_at=from_db(row["expires_at"]),
            )
            for row in rows
        ]

    def delete_session(self, session_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM sessions WHERE session_id = ?", (session_id,)
            )
        return cursor.rowcount == 1

    def purge_expired_sessions(self, *, now: Optional[datetime] = None) -> int:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM sessions WHERE expires_at <= ?",
                (to_db(now or utcnow()),),
            )
        return cursor.rowcount

    def _row_to_user(self, row: sqlite3.Row) -> LocalUser:
        return LocalUser(
            id=row["id"],
            provider_user_id=row["provider_user_id"],
            display_name=row["display_name"],
            handle=row["handle"],
            email=row["email"],
            follower_count=row["follower_count"],
            following_count=row["following_count"],
            created_at=from_db(row["created_at"]),
            updated_at=from_db(row["updated_at"]),
        )


__all__ = ["AccountStore"]
