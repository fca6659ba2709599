"""Time utilities for database models."""

from collections.abc import Callable
from datetime import UTC, datetime

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Return `value` as an aware UTC datetime.

    SQLite drops tzinfo on round-trip, so naive values are taken to be UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def seconds_since(value: datetime, now: datetime) -> float:
    """Return the elapsed seconds between a stored timestamp and `now`."""
    return (as_utc(now) - as_utc(value)).total_seconds()
