"""
Efficiency Calculations

Handles consumption and range metrics (metric units):
- kWh/100km and L/100km consumption
- Zero-guarded ratios and percentages
- Scatter plausibility filter
- Range estimation from usable battery energy
"""

from .constants import (
    CITY_CONSUMPTION_FACTOR,
    HIGHWAY_CONSUMPTION_FACTOR,
    MAX_SCATTER_EFFICIENCY,
)


def safe_ratio(numerator: float, denominator: float, scale: float = 1.0) -> float:
    """
    Divide with a zero guard.

    Args:
        numerator: Dividend
        denominator: Divisor; non-positive values yield 0
        scale: Multiplier applied to the quotient (100 for percentages)

    Returns:
        numerator / denominator * scale, or 0.0

    Examples:
        >>> safe_ratio(3.0, 30.0, 100)
        10.0
        >>> safe_ratio(3.0, 0)
        0.0
    """
    if not denominator or denominator <= 0:
        return 0.0
    return numerator / denominator * scale


def calculate_consumption_per_100km(amount: float, distance_km: float) -> float:
    """
    Calculate consumption per 100 km (kWh/100km or L/100km).

    Examples:
        >>> calculate_consumption_per_100km(1.5, 10.0)
        15.0
        >>> calculate_consumption_per_100km(1.5, 0)
        0.0
    """
    return safe_ratio(amount, distance_km, 100.0)


def is_plausible_efficiency(kwh_per_100km: float) -> bool:
    """
    Check whether an efficiency value belongs in the scatter plot.

    Values outside the open interval (0, 50) kWh/100km are sensor or
    data-entry noise.

    Examples:
        >>> is_plausible_efficiency(14.2)
        True
        >>> is_plausible_efficiency(60.0)
        False
        >>> is_plausible_efficiency(0.0)
        False
    """
    return 0 < kwh_per_100km < MAX_SCATTER_EFFICIENCY


def calculate_usable_energy(battery_size_kwh: float, soh_percent: float) -> float:
    """
    Usable battery energy after degradation.

    Examples:
        >>> calculate_usable_energy(60.0, 90.0)
        54.0
    """
    return battery_size_kwh * (soh_percent / 100.0)


def calculate_range_km(
    usable_kwh: float,
    kwh_per_100km: float,
    consumption_factor: float = 1.0
) -> float:
    """
    Estimate range from usable energy and average consumption.

    Args:
        usable_kwh: Energy available in the battery
        kwh_per_100km: Average consumption
        consumption_factor: Multiplier on consumption (highway > 1, city < 1)

    Returns:
        Range in km, or 0.0 if energy or consumption is not positive

    Examples:
        >>> calculate_range_km(54.0, 15.0)
        360.0
        >>> calculate_range_km(54.0, 15.0, 1.2)
        300.0
        >>> calculate_range_km(0, 15.0)
        0.0
    """
    if usable_kwh <= 0 or kwh_per_100km <= 0:
        return 0.0
    return usable_kwh / (kwh_per_100km * consumption_factor) * 100.0


def calculate_range_estimates(usable_kwh: float, kwh_per_100km: float) -> dict:
    """
    Combined, highway and city range estimates.

    Highway driving is modelled as 20% more consumption than average and
    city driving as 20% less.

    Examples:
        >>> calculate_range_estimates(54.0, 15.0)
        {'combined': 360.0, 'highway': 300.0, 'city': 450.0}
    """
    return {
        "combined": calculate_range_km(usable_kwh, kwh_per_100km),
        "highway": calculate_range_km(usable_kwh, kwh_per_100km, HIGHWAY_CONSUMPTION_FACTOR),
        "city": calculate_range_km(usable_kwh, kwh_per_100km, CITY_CONSUMPTION_FACTOR),
    }
