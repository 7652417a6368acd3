"""
Domain time utilities.

Every timestamp that crosses a domain boundary (orders, customers, expiration
windows, delivery dates) is timezone-aware UTC. These helpers are the single
place where that rule is checked and where storage/wire strings are parsed.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforce that a timestamp is UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def parse_utc_datetime(value: Any) -> datetime:
    """
    Parse a stored or wire timestamp into an aware UTC datetime.

    Accepts datetimes and ISO-8601 strings (a trailing 'Z' is allowed).
    Naive values are interpreted as UTC; other offsets are converted.
    """

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp type: {type(value)!r}")

    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_iso_utc(dt: datetime, *, name: str) -> str:
    """Serialize a UTC datetime to ISO-8601 (offset 0)."""

    require_utc_timestamp(name, dt)
    return dt.astimezone(timezone.utc).isoformat()
