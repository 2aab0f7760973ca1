"""
Time parsing and manipulation utilities for tripstats.

Provides consistent date/time handling for the analytics engine:
- Flexible parsing of ISO-ish strings (manufacture dates)
- Compact trip keys (YYYYMMDD dates, YYYYMM months)
- Charge timestamps built from separate date and time fields
- Local hour/weekday derivation for Unix timestamps
- Calendar span and age calculations
"""

import logging
import math
from datetime import date, datetime, timezone, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser

from ..config import Config

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 3600
DAYS_PER_YEAR = 365.25

CHARGE_DATETIME_FORMATS = [
    "%Y-%m-%d %H:%M",  # 2025-01-01 10:00
    "%Y-%m-%d %H:%M:%S",  # 2025-01-01 10:00:30
]


def utc_now() -> datetime:
    """
    Get current UTC time with timezone info.

    Returns:
        datetime: Current time in UTC timezone
    """
    return datetime.now(timezone.utc)


def resolve_timezone(name: Optional[str] = None) -> tzinfo:
    """
    Resolve an IANA timezone name, falling back to UTC.

    Args:
        name: Timezone name such as "Europe/Madrid" (default: Config.DEFAULT_TIMEZONE)

    Returns:
        tzinfo instance
    """
    name = name or Config.DEFAULT_TIMEZONE
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{name}', falling back to UTC")
        return timezone.utc


def parse_datetime(
    date_string: Optional[str],
    default: Optional[datetime] = None,
    assume_utc: bool = True
) -> Optional[datetime]:
    """
    Parse a date/time string into a datetime object.

    Supports ISO 8601 ("2022-03-15", "2022-03-15T10:00:00Z") and the other
    formats understood by dateutil.

    Args:
        date_string: The date/time string to parse
        default: Value to return if parsing fails (default: None)
        assume_utc: If True and no timezone in string, assume UTC (default: True)

    Returns:
        datetime object or default value if parsing fails

    Example:
        >>> parse_datetime("2022-03-15")
        datetime.datetime(2022, 3, 15, 0, 0, tzinfo=datetime.timezone.utc)
        >>> parse_datetime("not a date") is None
        True
    """
    if not date_string or not isinstance(date_string, str):
        return default

    date_string = date_string.strip()

    try:
        dt = date_parser.parse(date_string)
    except (ValueError, OverflowError, TypeError):
        logger.debug(f"Failed to parse datetime string: {date_string}")
        return default

    if assume_utc and dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_compact_date(value: Optional[str]) -> Optional[date]:
    """
    Convert a YYYYMMDD trip date key to a date.

    Examples:
        >>> parse_compact_date("20250114")
        datetime.date(2025, 1, 14)
        >>> parse_compact_date("2025") is None
        True
    """
    if not value or len(value) < 8:
        return None
    try:
        return date(int(value[0:4]), int(value[4:6]), int(value[6:8]))
    except ValueError:
        return None


def parse_compact_month(value: Optional[str]) -> Optional[date]:
    """Convert a YYYYMM month key to the first day of that month."""
    if not value or len(value) < 6:
        return None
    try:
        return date(int(value[0:4]), int(value[4:6]), 1)
    except ValueError:
        return None


def charge_timestamp(
    charge_date: Optional[str],
    charge_time: Optional[str] = None,
    tz: Optional[tzinfo] = None
) -> Optional[float]:
    """
    Build a Unix timestamp from a charge's date and time fields.

    The time defaults to midnight. Both fields are interpreted as wall-clock
    time in ``tz``.

    Args:
        charge_date: Date in YYYY-MM-DD format
        charge_time: Time in HH:MM (or HH:MM:SS) format
        tz: Timezone of the wall-clock values (default: UTC)

    Returns:
        Seconds since the epoch, or None if the fields cannot be parsed

    Examples:
        >>> charge_timestamp("2025-01-01", "10:00")
        1735725600.0
        >>> charge_timestamp("yesterday") is None
        True
    """
    if not charge_date or not isinstance(charge_date, str):
        return None

    text = f"{charge_date.strip()} {(charge_time or '00:00').strip()}"
    for fmt in CHARGE_DATETIME_FORMATS:
        try:
            dt = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return dt.replace(tzinfo=tz or timezone.utc).timestamp()

    return None


def local_hour_and_weekday(timestamp: float, tz: Optional[tzinfo] = None) -> Tuple[int, int]:
    """
    Derive the local hour of day and Monday-first weekday index.

    Args:
        timestamp: Unix timestamp in seconds
        tz: Timezone used for the local view (default: UTC)

    Returns:
        (hour 0-23, weekday 0=Monday .. 6=Sunday)

    Examples:
        >>> local_hour_and_weekday(1705237200)  # 2024-01-14 13:00 UTC, a Sunday
        (13, 6)
    """
    dt = datetime.fromtimestamp(timestamp, tz=tz or timezone.utc)
    return dt.hour, dt.weekday()


def calendar_span_days(first_timestamp: float, last_timestamp: float) -> int:
    """
    Count calendar days covered by two timestamps, inclusive, at least 1.

    Examples:
        >>> calendar_span_days(0, 0)
        1
        >>> calendar_span_days(0, 86400)
        2
        >>> calendar_span_days(0, 90000)
        3
    """
    span = math.ceil((last_timestamp - first_timestamp) / SECONDS_PER_DAY) + 1
    return max(1, span)


def years_between(start: datetime, end: datetime) -> float:
    """
    Elapsed time between two datetimes in 365.25-day years.

    Naive datetimes are treated as UTC. The result is negative when
    ``start`` lies after ``end``.
    """
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    if end.tzinfo is None:
        end = end.replace(tzinfo=timezone.utc)
    return (end - start).total_seconds() / (SECONDS_PER_DAY * DAYS_PER_YEAR)
