"""
Statistical Calculations

Rates individual trips against the rest of the dataset:
- Efficiency score on a 0-10 scale
- Efficiency percentile
"""

from typing import Sequence

from ..models import Trip, num
from ..utils.formatters import round_to
from .efficiency import calculate_consumption_per_100km

MIN_PERCENTILE_DISTANCE_KM = 1.0  # Shorter trips have unreliable efficiency
NEUTRAL_SCORE = 5.0
NEUTRAL_PERCENTILE = 50


def calculate_efficiency_score(efficiency: float, min_efficiency: float, max_efficiency: float) -> float:
    """
    Score a consumption value from 0 (worst in dataset) to 10 (best).

    Args:
        efficiency: Trip consumption (kWh/100km)
        min_efficiency: Best (lowest) consumption in the dataset
        max_efficiency: Worst (highest) consumption in the dataset

    Returns:
        Score clamped to [0, 10]; 5.0 when the range is degenerate

    Examples:
        >>> calculate_efficiency_score(12.0, 12.0, 20.0)
        10.0
        >>> calculate_efficiency_score(16.0, 12.0, 20.0)
        5.0
        >>> calculate_efficiency_score(15.0, 15.0, 15.0)
        5.0
    """
    if not efficiency or max_efficiency == min_efficiency:
        return NEUTRAL_SCORE

    normalized = (max_efficiency - efficiency) / (max_efficiency - min_efficiency)
    return max(0.0, min(10.0, normalized * 10))


def calculate_efficiency_percentile(trip: Trip, trips: Sequence[Trip]) -> int:
    """
    Percentage of comparable trips that were strictly more efficient.

    Only trips of at least 1 km with non-zero energy are comparable. A trip
    without distance ranks behind every comparable trip.

    Examples:
        >>> trips = [Trip(distance=10, electricity=1.0), Trip(distance=10, electricity=2.0)]
        >>> calculate_efficiency_percentile(trips[1], trips)
        50
    """
    if trip is None or not trips:
        return NEUTRAL_PERCENTILE

    if num(trip.distance) > 0:
        trip_efficiency = calculate_consumption_per_100km(num(trip.electricity), num(trip.distance))
    else:
        trip_efficiency = float("inf")

    comparable = [
        calculate_consumption_per_100km(num(t.electricity), num(t.distance))
        for t in trips
        if num(t.distance) >= MIN_PERCENTILE_DISTANCE_KM and num(t.electricity) != 0
    ]
    if not comparable:
        return NEUTRAL_PERCENTILE

    better = sum(1 for value in comparable if value < trip_efficiency)
    return int(round_to(better / len(comparable) * 100, 0))
