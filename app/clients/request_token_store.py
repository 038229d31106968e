"""SQLite-backed store for in-flight OAuth request tokens."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Optional

from app.models.oauth import RequestToken, utcnow
from app.utils.timestamps import from_db, to_db

logger = logging.getLogger(__name__)


class DuplicateRequestTokenError(ValueError):
    """Raised when a token id is already recorded."""


class RequestTokenStore:
    """
    Holds request-token state between the start of the flow and the callback.

    ``consume`` is the only way to obtain a token's secret for the exchange
    step, and it flips ``consumed`` with a conditional ``UPDATE`` inside a
    single transaction, so at most one caller can ever consume a token.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False, timeout=10.0)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS request_tokens (
                    token TEXT PRIMARY KEY,
                    token_secret TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL,
                    consumed INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS ix_request_tokens_expires_at "
                "ON request_tokens (expires_at)"
            )

    def save(self, request_token: RequestToken) -> None:
        """Persist a freshly issued token; a duplicate token id is an error."""
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO request_tokens (token, token_secret, created_at, expires_at, consumed)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        request_token.token,
                        request_token.token_secret,
                        to_db(request_token.created_at),
                        to_db(request_token.expires_at),
                        int(request_token.consumed),
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise DuplicateRequestTokenError(
                f"Request token {request_token.token!r} is already recorded."
            ) from exc

    def get(self, token: str) -> Optional[RequestToken]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM request_tokens WHERE token = ?", (token,)
            ).fetchone()
        if not row:
            return None
        return self._row_to_token(row)

    def get_usable(self, token: str, *, now: Optional[datetime] = None) -> Optional[RequestToken]:
        """Return the token only if it is unconsumed and unexpired."""
        record = self.get(token)
        if record is None or not record.is_usable(now):
            return None
        return record

    def consume(self, token: str, *, now: Optional[datetime] = None) -> Optional[RequestToken]:
        """
        Atomically validate and mark a token consumed.

        Returns the consumed token, or ``None`` when it is unknown, already
        consumed or expired.
        """
        now = now or utcnow()
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE request_tokens
                SET consumed = 1
                WHERE token = ? AND consumed = 0 AND expires_at > ?
                """,
                (token, to_db(now)),
            )
            if cursor.rowcount != 1:
                return None
            row = conn.execute(
                "SELECT * FROM request_tokens WHERE token = ?", (token,)
            ).fetchone()
        return self._row_to_token(row)

    def delete(self, token: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM request_tokens WHERE token = ?", (token,))

    def purge_expired(self, *, now: Optional[datetime] = None) -> int:
        """Delete tokens past their expiry. Returns the number removed."""
        now = now or utcnow()
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM request_tokens WHERE expires_at <= ?",
                (to_db(now),),
            )
            removed = cursor.rowcount
        if removed:
            logger.info("Purged %s expired request tokens", removed)
        return removed

    def _row_to_token(self, row: sqlite3.Row) -> RequestToken:
        return RequestToken(
            token=row["token"],
            token_secret=row["token_secret"],
            created_at=from_db(row["created_at"]),
            expires_at=from_db(row["expires_at"]),
            consumed=bool(row["consumed"]),
        )


__all__ = ["DuplicateRequestTokenError", "RequestTokenStore"]
