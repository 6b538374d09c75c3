"""
Datetime Utilities

This module provides common datetime operations used throughout the engine,
ensuring consistent timezone handling. Naive datetimes are treated as UTC.
"""

from datetime import datetime, timezone, timedelta, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Zone for hour-of-day and calendar-day boundaries. None means the host zone.
_local_timezone: Optional[tzinfo] = None


def configure_timezone(zone: Union[str, tzinfo, None]) -> None:
    """
    Select the zone that "local" time refers to.

    Args:
        zone: IANA zone name (e.g. "Europe/Berlin"), "UTC", a tzinfo, or
            None / "" for the host's zone

    Raises:
        ValueError: If the zone name is unknown
    """
    global _local_timezone
    if zone is None or zone == "":
        _local_timezone = None
    elif isinstance(zone, tzinfo):
        _local_timezone = zone
    elif zone.upper() == "UTC":
        _local_timezone = timezone.utc
    else:
        try:
            _local_timezone = ZoneInfo(zone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{zone}'") from e


def utc_now() -> datetime:
    """
    Get current time in UTC.

    Returns:
        Current datetime with UTC timezone
    """
    return datetime.now(timezone.utc)


def local_now() -> datetime:
    """Get current time as an aware datetime in the local zone"""
    return to_local(utc_now())


def to_local(dt: datetime) -> datetime:
    """
    Convert datetime to the local zone.

    Uses the configured zone, or the host zone when none is configured.
    Naive datetimes are taken as UTC.
    """
    return to_utc(dt).astimezone(_local_timezone)


def to_utc(dt: datetime) -> datetime:
    """
    Convert datetime to UTC.

    Args:
        dt: Datetime to convert (may be naive or aware)

    Returns:
        Datetime with UTC timezone
    """
    if dt.tzinfo is None:
        # Assume naive datetime is UTC
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def from_iso(iso_string: str) -> datetime:
    """
    Parse ISO format datetime string.

    Accepts a trailing "Z" for UTC.

    Args:
        iso_string: ISO format datetime string

    Returns:
        Parsed datetime (with UTC timezone if naive)

    Raises:
        ValueError: If the string is not a valid ISO datetime
    """
    if not isinstance(iso_string, str):
        raise ValueError(f"Expected ISO datetime string, got {iso_string!r}")
    value = iso_string.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def to_iso(dt: datetime) -> str:
    """
    Convert datetime to ISO format string.

    Args:
        dt: Datetime to convert

    Returns:
        ISO format string
    """
    return dt.isoformat()


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse a timestamp from a string or datetime.

    Args:
        value: ISO string, datetime or None

    Returns:
        Aware datetime, or None when value is None or empty
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    return from_iso(value)


def normalize_iso(value: Union[str, datetime]) -> str:
    """
    Normalize a timestamp to a canonical UTC ISO string.

    Two spellings of the same instant normalize to the same string, which
    makes the result usable as a cache key component.

    Args:
        value: ISO string or datetime

    Returns:
        UTC ISO string with millisecond precision
    """
    dt = to_utc(parse_timestamp(value))
    return dt.isoformat(timespec="milliseconds")


def minutes_between(start: datetime, end: datetime) -> float:
    """
    Calculate minutes elapsed between two timestamps.

    Returns:
        Minutes elapsed (negative if end is before start)
    """
    return (to_utc(end) - to_utc(start)).total_seconds() / 60


def days_ago(days: int, reference: Optional[datetime] = None) -> datetime:
    """
    Get the instant a number of days before a reference.

    Args:
        days: Days to go back
        reference: Base datetime (defaults to now)

    Returns:
        Datetime ``days`` days before reference
    """
    if reference is None:
        reference = utc_now()
    return reference - timedelta(days=days)
