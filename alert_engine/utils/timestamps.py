"""UTC timestamp helpers shared by persistence, audit and run tracking.

Timestamps are stored as ISO 8601 strings with a 'Z' suffix so that SQLite
ordering and range queries behave lexicographically.
"""

from datetime import datetime, timezone
from typing import Optional

STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC; aware ones are converted.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def to_storage(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime for a string timestamp column."""
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return None
    return dt_utc.strftime(STORAGE_FORMAT)


def from_storage(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp string (or any ISO 8601 value) to UTC datetime.

    Returns None for empty or unparseable values.
    """
    if not value or not value.strip():
        return None

    normalized = value.strip()
    if normalized.endswith("Z"):
        normalized = normalized[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(normalized))
    except ValueError:
        return None


def start_of_day(dt: datetime) -> datetime:
    """Return midnight UTC of the given datetime's day."""
    dt_utc = ensure_utc(dt)
    return dt_utc.replace(hour=0, minute=0, second=0, microsecond=0)
