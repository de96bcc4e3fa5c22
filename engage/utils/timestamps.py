"""Timestamp utilities for UTC bookkeeping and schedule parsing.

This module provides utilities for working with timestamps:
- Getting current UTC time
- Converting timezone-naive values to timezone-aware UTC
- Parsing ISO 8601 strings, either coerced to UTC (store bookkeeping)
  or with their original offset preserved (schedule resolution)
- Formatting timestamps for storage and logs
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC time with timezone info

    Example:
        >>> now = utc_now()
        >>> now.tzinfo == timezone.utc
        True
    """
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


def parse_schedule_datetime(text: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 schedule string without touching its timezone.

    Naive strings stay naive (they describe wall-clock time where the need
    takes place) and offsets are preserved. Accepted shapes:
    - 2025-11-04T09:30:00Z
    - 2025-11-04T09:30:00-05:00
    - 2025-11-04T09:30
    - 2025-11-04 09:30:00

    Args:
        text: Schedule timestamp as entered in the store

    Returns:
        Parsed datetime, or None if the string is empty or malformed
    """
    if not text or not isinstance(text, str) or not text.strip():
        return None

    cleaned = text.strip()
    if cleaned.endswith(("Z", "z")):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return datetime.fromisoformat(cleaned)
    except ValueError:
        return None


def parse_iso_datetime(iso_string: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 datetime string to UTC datetime.

    Args:
        iso_string: ISO 8601 formatted datetime string

    Returns:
        Timezone-aware datetime in UTC, or None if parsing fails

    Example:
        >>> dt = parse_iso_datetime("2025-11-04T12:00:00Z")
        >>> dt.year == 2025 and dt.month == 11 and dt.day == 4
        True
    """
    return ensure_utc(parse_schedule_datetime(iso_string))


def format_timestamp(dt: Optional[datetime], include_microseconds: bool = False) -> Optional[str]:
    """Format a datetime as ISO 8601 string in UTC.

    Args:
        dt: Datetime to format (None passes through)
        include_microseconds: Whether to include microseconds in output

    Returns:
        ISO 8601 formatted string with 'Z' suffix, or None

    Example:
        >>> from datetime import datetime, timezone
        >>> format_timestamp(datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc))
        '2025-11-04T12:00:00Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return None

    if include_microseconds:
        return dt_utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%SZ")
