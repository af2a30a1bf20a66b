"""
Datetime utilities for consistent timezone handling across the application.

All timestamps are stored and compared in UTC. Some databases (SQLite) hand
back naive datetimes for timezone-aware columns, so values read from the
database pass through ensure_utc before any comparison or serialization.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Get the current timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is timezone-aware in UTC.

    Args:
        dt: Datetime to normalize (naive values are assumed to already be UTC)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def epoch_millis(dt: Optional[datetime] = None) -> int:
    """Milliseconds since the epoch for dt (default: now)."""
    moment = ensure_utc(dt) or utc_now()
    return int(moment.timestamp() * 1000)
