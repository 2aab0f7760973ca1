"""
tripstats Calculation Module

Pricing, efficiency, battery health, ranking and statistical calculations
used by the processing service.

Usage:
    from tripstats.calculations import calculate_range_estimates, estimate_soh
    from tripstats.calculations.constants import TRIP_DISTANCE_RANGES
"""

# Battery calculations
from .battery import (
    baseline_soh,
    calculate_calendar_loss,
    calculate_cycle_loss,
    calculate_sei_loss,
    classify_charging_speed,
    estimate_initial_soc,
    estimate_soh,
    resolve_charging_efficiency,
)

# Efficiency calculations
from .efficiency import (
    calculate_consumption_per_100km,
    calculate_range_estimates,
    calculate_range_km,
    calculate_usable_energy,
    is_plausible_efficiency,
    safe_ratio,
)

# Financial calculations
from .financial import (
    EnergyKind,
    PriceResolver,
    PriceStrategy,
    TripCost,
    calculate_average_price,
    calculate_effective_price,
    calculate_trip_cost,
    price_trip,
)

# Ranking
from .ranking import descending_by, select_top

# Statistical calculations
from .statistics import calculate_efficiency_percentile, calculate_efficiency_score

# Constants (re-export for convenience)
from .constants import (
    DEFAULT_BATTERY_CAPACITY_KWH,
    MAX_SCATTER_EFFICIENCY,
    TOP_RECORDS_LIMIT,
    TRIP_DISTANCE_RANGES,
    UNKNOWN_BUCKET_KEY,
)

__all__ = [
    # Battery
    "baseline_soh",
    "calculate_calendar_loss",
    "calculate_cycle_loss",
    "calculate_sei_loss",
    "classify_charging_speed",
    "estimate_initial_soc",
    "estimate_soh",
    "resolve_charging_efficiency",
    # Efficiency
    "calculate_consumption_per_100km",
    "calculate_range_estimates",
    "calculate_range_km",
    "calculate_usable_energy",
    "is_plausible_efficiency",
    "safe_ratio",
    # Financial
    "EnergyKind",
    "PriceResolver",
    "PriceStrategy",
    "TripCost",
    "calculate_average_price",
    "calculate_effective_price",
    "calculate_trip_cost",
    "price_trip",
    # Ranking
    "descending_by",
    "select_top",
    # Statistics
    "calculate_efficiency_percentile",
    "calculate_efficiency_score",
    # Constants
    "DEFAULT_BATTERY_CAPACITY_KWH",
    "MAX_SCATTER_EFFICIENCY",
    "TOP_RECORDS_LIMIT",
    "TRIP_DISTANCE_RANGES",
    "UNKNOWN_BUCKET_KEY",
]
