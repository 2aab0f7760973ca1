"""
Tests for statistical calculations
"""

from tripstats.calculations.statistics import (
    calculate_efficiency_percentile,
    calculate_efficiency_score,
)
from tripstats.models import Trip


class TestEfficiencyScore:
    """Test 0-10 efficiency scores"""

    def test_best_scores_ten(self):
        assert calculate_efficiency_score(12.0, 12.0, 20.0) == 10.0

    def test_worst_scores_zero(self):
        assert calculate_efficiency_score(20.0, 12.0, 20.0) == 0.0

    def test_midpoint(self):
        assert calculate_efficiency_score(16.0, 12.0, 20.0) == 5.0

    def test_degenerate_range_is_neutral(self):
        assert calculate_efficiency_score(15.0, 15.0, 15.0) == 5.0

    def test_missing_efficiency_is_neutral(self):
        assert calculate_efficiency_score(0, 12.0, 20.0) == 5.0

    def test_clamped(self):
        assert calculate_efficiency_score(10.0, 12.0, 20.0) == 10.0
        assert calculate_efficiency_score(25.0, 12.0, 20.0) == 0.0


class TestEfficiencyPercentile:
    """Test efficiency percentile"""

    def test_half_better(self):
        trips = [Trip(distance=10, electricity=1.0), Trip(distance=10, electricity=2.0)]
        assert calculate_efficiency_percentile(trips[1], trips) == 50

    def test_best_trip(self):
        trips = [Trip(distance=10, electricity=1.0), Trip(distance=10, electricity=2.0)]
        assert calculate_efficiency_percentile(trips[0], trips) == 0

    def test_short_trips_not_comparable(self):
        trips = [Trip(distance=0.5, electricity=0.01), Trip(distance=10, electricity=2.0)]
        assert calculate_efficiency_percentile(trips[1], trips) == 0

    def test_zero_distance_trip_ranks_last(self):
        trips = [Trip(distance=10, electricity=1.0), Trip(distance=10, electricity=2.0)]
        assert calculate_efficiency_percentile(Trip(distance=0, electricity=1.0), trips) == 100

    def test_no_comparable_trips(self):
        trips = [Trip(distance=0.5, electricity=1.0)]
        assert calculate_efficiency_percentile(trips[0], trips) == 50

    def test_empty(self):
        assert calculate_efficiency_percentile(Trip(distance=10), []) == 50
        assert calculate_efficiency_percentile(None, [Trip(distance=10)]) == 50
