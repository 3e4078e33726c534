"""Timestamp helpers.

All timestamps are handled as timezone-aware UTC datetimes in memory and
stored as ISO 8601 strings.
"""

from __future__ import annotations

from datetime import datetime, timezone

SECONDS_PER_DAY = 24 * 60 * 60


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO 8601 timestamp into an aware UTC datetime.

    Accepts the trailing "Z" form as well as SQLite's
    "YYYY-MM-DD HH:MM:SS" default output.

    Args:
        value: ISO string, datetime, or None

    Returns:
        Aware datetime, or None when value is None/empty
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_aware(datetime.fromisoformat(text))


def format_timestamp(value: datetime | None) -> str | None:
    """Serialize a datetime as ISO 8601 (UTC)."""
    if value is None:
        return None
    return ensure_aware(value).isoformat()


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end (negative if end is earlier)."""
    delta = ensure_aware(end) - ensure_aware(start)
    return delta.total_seconds() / SECONDS_PER_DAY
