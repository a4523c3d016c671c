"""Utilities for datetime handling."""

from datetime import UTC, datetime


def now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Attach UTC to naive datetimes, leave aware ones untouched."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def latest(*values: datetime | None) -> datetime | None:
    """Return the most recent of the given datetimes, ignoring None."""
    present = [v for v in values if v is not None]
    return max(present) if present else None
