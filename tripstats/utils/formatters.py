"""
Formatting utilities for summary values and bucket labels.

Numbers are rendered with a fixed number of decimals using half-up rounding
of the exact binary value, so "1.005" style edge cases format the same way on
every platform. Labels for months and days are localised with Babel.
"""

import logging
import math
import re
from decimal import ROUND_HALF_UP, Decimal, localcontext
from functools import lru_cache
from typing import Optional

from babel import Locale, UnknownLocaleError
from babel.dates import format_date as babel_format_date
from babel.dates import format_skeleton

from ..config import Config
from .time_utils import parse_compact_date, parse_compact_month

logger = logging.getLogger(__name__)

FALLBACK_LOCALE = "en"
FALLBACK_DATE_PATTERN = "y-MM-dd"


def format_fixed(value: Optional[float], decimals: int = 1) -> str:
    """
    Format a number with a fixed number of decimals.

    Missing and non-finite values format as zero.

    Examples:
        >>> format_fixed(30)
        '30.0'
        >>> format_fixed(10, 2)
        '10.00'
        >>> format_fixed(0.125, 2)
        '0.13'
        >>> format_fixed(None, 2)
        '0.00'
    """
    if value is None or not math.isfinite(value):
        value = 0.0

    exact = Decimal(value)
    with localcontext() as ctx:
        # Enough digits for the integer part plus the requested decimals
        ctx.prec = max(ctx.prec, exact.adjusted() + decimals + 2)
        rounded = exact.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)
        if rounded == 0:
            rounded = abs(rounded)
        return f"{rounded:.{decimals}f}"


def round_to(value: float, decimals: int = 2) -> float:
    """Round for presentation using the same rule as ``format_fixed``."""
    return float(format_fixed(value, decimals))


@lru_cache(maxsize=32)
def resolve_locale(tag: Optional[str] = None) -> Locale:
    """
    Parse a locale tag such as "es", "en-US" or "pt_BR".

    Unknown or malformed tags fall back to English.
    """
    tag = (tag or Config.DEFAULT_LOCALE).replace("-", "_")
    try:
        return Locale.parse(tag)
    except (UnknownLocaleError, ValueError, TypeError):
        logger.warning(f"Unknown locale '{tag}', falling back to {FALLBACK_LOCALE}")
        return Locale.parse(FALLBACK_LOCALE)


@lru_cache(maxsize=32)
def _numeric_date_pattern(locale_tag: str) -> str:
    """Locale's numeric date pattern widened to two-digit day and month."""
    skeleton = Locale.parse(locale_tag).datetime_skeletons.get("yMd")
    if skeleton is None:
        return FALLBACK_DATE_PATTERN
    pattern = str(skeleton)
    pattern = re.sub(r"(?<!M)M(?!M)", "MM", pattern)
    pattern = re.sub(r"(?<!d)d(?!d)", "dd", pattern)
    return pattern


def format_month(month: Optional[str], locale: Optional[str] = None) -> str:
    """
    Format a YYYYMM key as a short month label ("Jan 2025").

    The first letter is capitalised. Keys that cannot be parsed are returned
    unchanged.

    Examples:
        >>> format_month("202501", "en")
        'Jan 2025'
        >>> format_month("unknown", "en")
        'unknown'
    """
    parsed = parse_compact_month(month)
    if parsed is None:
        return month or ""

    label = format_skeleton("yMMM", parsed, locale=resolve_locale(locale))
    return label[:1].upper() + label[1:]


def format_date(value: Optional[str], locale: Optional[str] = None) -> str:
    """
    Format a YYYYMMDD key as a numeric, two-digit day/month date.

    Examples:
        >>> format_date("20250114", "es")
        '14/01/2025'
        >>> format_date("20250114", "en")
        '01/14/2025'
        >>> format_date(None, "en")
        ''
    """
    parsed = parse_compact_date(value)
    if parsed is None:
        return value or ""

    babel_locale = resolve_locale(locale)
    return babel_format_date(parsed, format=_numeric_date_pattern(str(babel_locale)), locale=babel_locale)
