"""
UTC timestamp helpers shared by the stores, services and routes
"""
from datetime import date, datetime, timezone
from typing import Optional, Union


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalise a datetime to aware UTC

    Naive values are taken to already be UTC (SQLite hands them back
    without tzinfo).
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Union[str, datetime, date]) -> datetime:
    """
    Parse an ISO-8601 timestamp into aware UTC

    Date-only values mean midnight UTC. A trailing 'Z' is accepted.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Not a timestamp: {value!r}")

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def isoformat(value: Optional[datetime]) -> Optional[str]:
    """Format as ISO-8601 UTC with a 'Z' suffix"""
    if value is None:
        return None
    return ensure_utc(value).isoformat().replace('+00:00', 'Z')
