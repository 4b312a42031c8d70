"""Time utilities (IST)."""

from datetime import datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from app.config import settings

IST = ZoneInfo(settings.TIMEZONE)


def now_ist() -> datetime:
    """Current time in IST, timezone-aware."""
    return datetime.now(IST)


def now_ist_iso() -> str:
    """Current time in IST as an ISO string with offset."""
    return now_ist().isoformat()


def to_ist(dt: datetime, naive_assumed_tz: tzinfo = timezone.utc) -> datetime:
    """Convert datetime to IST timezone-aware value."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=naive_assumed_tz)
    return dt.astimezone(IST)


def to_ist_iso(dt: datetime, naive_assumed_tz: tzinfo = timezone.utc) -> str:
    """Convert datetime to IST and return ISO string with offset."""
    return to_ist(dt, naive_assumed_tz=naive_assumed_tz).isoformat()


def epoch_to_ist_iso(value: object) -> Optional[str]:
    """
    Convert a unix timestamp (seconds) to an IST ISO string.

    Returns None for missing or unparseable values.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    if seconds <= 0:
        return None
    try:
        return to_ist_iso(datetime.fromtimestamp(seconds, tz=timezone.utc))
    except (OverflowError, OSError, ValueError):
        return None
