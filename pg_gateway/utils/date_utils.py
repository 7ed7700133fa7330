"""Date manipulation utilities.

The domain works with naive datetimes that are implicitly UTC; the database
stores absolute instants. Conversions happen only through these helpers.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

EPOCH = datetime(1970, 1, 1)


def utc_now() -> datetime:
    """Current UTC time, naive, truncated to milliseconds (cursor precision)"""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def to_epoch_millis(value: datetime) -> int:
    """Naive UTC datetime -> milliseconds since the epoch"""
    return (value - EPOCH) // timedelta(milliseconds=1)


def from_epoch_millis(millis: int) -> datetime:
    """Milliseconds since the epoch -> naive UTC datetime"""
    return EPOCH + timedelta(milliseconds=millis)


def to_instant(value: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC datetime -> timezone-aware UTC datetime for storage"""
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc)
    return value.replace(tzinfo=timezone.utc)


def from_instant(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetime (aware, or naive UTC on SQLite) -> naive UTC datetime"""
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
