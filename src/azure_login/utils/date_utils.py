"""Date and time utilities for token expiry handling."""

from datetime import datetime
from typing import Optional

import pytz


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure datetime is in UTC.

    Args:
        dt: Datetime to convert

    Returns:
        UTC datetime
    """
    if dt.tzinfo is None:
        return pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(pytz.utc)


def from_timestamp(value: Optional[float]) -> Optional[datetime]:
    """Convert a POSIX timestamp (e.g. a JWT ``exp`` claim) to a UTC datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(float(value), pytz.utc)
