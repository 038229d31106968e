"""Timestamp encoding shared by the SQLite stores."""

from __future__ import annotations

from datetime import datetime, timezone


def to_db(value: datetime) -> str:
    # Fixed-width UTC strings so lexical comparison in SQL matches time order.
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def from_db(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


__all__ = ["from_db", "to_db"]
