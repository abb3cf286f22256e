"""
Timezone-aware time helpers.
"""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current time in UTC; the single clock the services read."""
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> datetime:
    """
    Treat a naive datetime as UTC.

    SQLite hands back naive values for timezone-aware columns.

    Raises:
        ValueError: If dt is None
    """
    if dt is None:
        raise ValueError("datetime cannot be None")
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def elapsed_seconds(start: datetime, end: datetime) -> int:
    """Whole seconds from start to end, rounded, never negative."""
    delta = ensure_timezone_aware(end) - ensure_timezone_aware(start)
    return max(0, round(delta.total_seconds()))
