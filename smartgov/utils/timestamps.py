"""Timestamp helpers shared by the repositories.

Every timestamp column is stored as ISO-8601 UTC text with microsecond
precision (``2026-10-17T09:30:00.123456Z``).  Python datetimes carry
microseconds, so a value written and read back compares equal.  SQLite's
``%f`` only yields milliseconds, so column defaults pad it with ``000`` to
keep the same width.  Fixed-width text keeps lexical order equal to
chronological order, so ``expires_at > ?`` works without date functions.
"""

from __future__ import annotations

from datetime import datetime, timezone

SQLITE_NOW = "strftime('%Y-%m-%dT%H:%M:%f', 'now') || '000Z'"


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_db_timestamp(value: datetime) -> str:
    """Format *value* in the storage format.  Naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
