# src/dob_auth/db/time.py
"""Time utilities shared by models, stores and services."""

from collections.abc import Callable
from datetime import UTC, datetime

# Every expiry decision reads the time through an injectable clock.
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def to_epoch_ms(moment: datetime) -> int:
    """Return milliseconds since the Unix epoch for an aware datetime."""
    return int(moment.timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    """Return an aware UTC datetime from epoch milliseconds."""
    return datetime.fromtimestamp(value / 1000, tz=UTC)
