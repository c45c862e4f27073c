"""
Domain time utilities (pure).

Centralized timestamp validation and parsing helpers.

Behavior and error messages must remain consistent across the domain model.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional


def require_utc_timestamp(name: str, value: datetime) -> None:
    """
    Enforces that timestamps stored on domain entities are UTC.

    Invariants:
    - Timestamps must be timezone-aware.
    - Timestamps must have UTC offset 0.
    """

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError(f"{name} must be timezone-aware (UTC)")
    if value.utcoffset() != timedelta(0):
        raise ValueError(f"{name} must be a UTC timestamp (offset 0)")


def utc_now() -> datetime:
    """Current wall-clock time as a UTC timestamp."""

    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC. Naive values are interpreted as UTC."""

    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_utc_datetime(value: Any) -> Optional[datetime]:
    """
    Leniently parse a timestamp into a timezone-aware UTC datetime.

    Accepts datetimes, dates, and ISO-8601 strings (with or without a trailing
    'Z', or a bare YYYY-MM-DD date). Returns None for blank or unparsable input
    so callers can treat the value as "no signal" instead of failing.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    # Python's fromisoformat doesn't consistently accept 'Z' across versions.
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return to_utc(parsed)


def to_iso_utc(value: datetime) -> str:
    """Serialize a timezone-aware datetime to ISO-8601 in UTC."""

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError("timestamp must be timezone-aware (UTC)")
    return value.astimezone(timezone.utc).isoformat()


def whole_days_between(earlier: datetime, later: datetime) -> int:
    """
    Whole 24-hour days elapsed from `earlier` to `later`.

    Partial days are floored, so a negative span (earlier is in the future)
    floors toward negative infinity.
    """

    delta = to_utc(later) - to_utc(earlier)
    return int(delta // timedelta(days=1))


__all__ = [
    "require_utc_timestamp",
    "utc_now",
    "to_utc",
    "parse_utc_datetime",
    "to_iso_utc",
    "whole_days_between",
]
