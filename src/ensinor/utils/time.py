"""Time utilities for UTC timestamps.

Timestamps are stored as naive UTC datetimes (SQLite drops tzinfo), so every
"now" in the codebase comes from ``utc_now``.
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, comparable with stored columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: datetime) -> str:
    """
    Convert datetime to ISO 8601 UTC string with Z suffix.

    Naive datetimes are treated as UTC (that is how they are stored).

    Args:
        dt: Datetime object

    Returns:
        ISO 8601 UTC timestamp ending with 'Z'
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc)
    return dt_utc.isoformat().replace('+00:00', 'Z')


def days_between(later: datetime, earlier: datetime) -> int:
    """Whole days from ``earlier`` to ``later``, rounded up, never negative."""
    delta = later - earlier
    if delta <= timedelta(0):
        return 0
    days, remainder = divmod(delta, timedelta(days=1))
    return days + (1 if remainder else 0)


def to_naive_utc(dt: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive input is returned as is."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)
