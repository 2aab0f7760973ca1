"""
Tests for top-N selection
"""

from functools import cmp_to_key

from hypothesis import given, strategies as st

from tripstats.calculations.ranking import descending_by, select_top
from tripstats.models import Trip


def _descending(a, b):
    return b - a


class TestSelectTop:
    """Test select_top"""

    def test_keeps_highest(self):
        assert select_top([3, 9, 1, 7, 5], _descending, 3) == [9, 7, 5]

    def test_short_input_is_fully_sorted(self):
        assert select_top([3, 1, 2], _descending, 10) == [3, 2, 1]

    def test_zero_or_negative_n(self):
        assert select_top([3, 1, 2], _descending, 0) == []
        assert select_top([3, 1, 2], _descending, -1) == []

    def test_empty_input(self):
        assert select_top([], _descending, 5) == []

    def test_does_not_modify_input(self):
        items = [3, 9, 1, 7, 5]
        select_top(items, _descending, 2)
        assert items == [3, 9, 1, 7, 5]

    def test_ties_keep_input_order(self):
        items = [(5, "a"), (7, "b"), (5, "c"), (7, "d"), (1, "e")]

        result = select_top(items, lambda a, b: b[0] - a[0], 3)

        assert result == [(7, "b"), (7, "d"), (5, "a")]

    @given(
        st.lists(st.tuples(st.integers(min_value=-20, max_value=20), st.integers()), max_size=60),
        st.integers(min_value=0, max_value=15),
    )
    def test_matches_stable_sort(self, items, n):
        """
        Property: select_top equals a stable full sort truncated to n.
        """
        compare = lambda a, b: b[0] - a[0]  # noqa: E731

        assert select_top(items, compare, n) == sorted(items, key=cmp_to_key(compare))[:n]


class TestDescendingBy:
    """Test attribute comparators"""

    def test_orders_largest_first(self):
        trips = [Trip(distance=5.0), Trip(distance=20.0), Trip(distance=10.0)]

        result = select_top(trips, descending_by("distance"), 2)

        assert [t.distance for t in result] == [20.0, 10.0]

    def test_missing_values_rank_as_zero(self):
        trips = [Trip(distance=1.0, fuel=None), Trip(distance=2.0, fuel=0.5)]

        result = select_top(trips, descending_by("fuel"), 2)

        assert [t.distance for t in result] == [2.0, 1.0]
