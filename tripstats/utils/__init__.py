"""Utility modules for tripstats."""

from .formatters import format_date, format_fixed, format_month, round_to
from .time_utils import (
    calendar_span_days,
    charge_timestamp,
    local_hour_and_weekday,
    parse_datetime,
    resolve_timezone,
    utc_now,
)

__all__ = [
    'format_date',
    'format_fixed',
    'format_month',
    'round_to',
    'calendar_span_days',
    'charge_timestamp',
    'local_hour_and_weekday',
    'parse_datetime',
    'resolve_timezone',
    'utc_now',
]
