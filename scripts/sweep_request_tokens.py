"""Purge expired request tokens and sessions.

Intended to run periodically (cron/systemd timer). Every read path re-checks
expiry, so this only reclaims space::

    python -m scripts.sweep_request_tokens --db-path data/auth.sqlite3
"""

from __future__ import annotations

import argparse
import logging
import sys

from app.clients.account_store import AccountStore
from app.clients.request_token_store import RequestTokenStore
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)


def sweep(db_path: str, *, include_sessions: bool = True) -> tuple[int, int]:
    """Return the number of (request tokens, sessions) removed."""
    tokens_removed = RequestTokenStore(db_path).purge_expired()
    sessions_removed = 0
    if include_sessions:
        sessions_removed = AccountStore(db_path).purge_expired_sessions()
    logger.info(
        "Sweep complete: %s request tokens, %s sessions removed",
        tokens_removed,
        sessions_removed,
    )
    return tokens_removed, sessions_removed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--db-path",
        default=None,
        help="SQLite database path (default: AUTH_DB_PATH from settings).",
    )
    parser.add_argument(
        "--tokens-only",
        action="store_true",
        help="Leave expired sessions in place.",
    )
    parser.add_argument("--log-level", default="INFO")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(args.log_level)

    db_path = args.db_path
    if db_path is None:
        from app.core.config import get_settings

        db_path = get_settings().database_path

    sweep(db_path, include_sessions=not args.tokens_only)
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
