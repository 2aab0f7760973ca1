"""
Top-N Selection

Keeps the K highest-ranked records without sorting the whole dataset. The
result is identical to a stable full sort truncated to K.
"""

from functools import cmp_to_key
from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")

Comparator = Callable[[T, T], float]


def select_top(items: Sequence[T], compare: Comparator, n: int) -> List[T]:
    """
    Return the first ``n`` items in ``compare`` order.

    ``compare(a, b) < 0`` means ``a`` ranks ahead of ``b``. For inputs
    larger than ``n`` the first ``n`` items are sorted and every later item
    is insertion-placed only if it ranks strictly ahead of the current last
    one, which costs O(len(items) * n) instead of a full sort.

    Args:
        items: Records to rank (not modified)
        compare: Three-way comparator
        n: Number of records to keep

    Returns:
        New list with at most ``n`` items

    Examples:
        >>> select_top([3, 9, 1, 7], lambda a, b: b - a, 2)
        [9, 7]
        >>> select_top([3, 1], lambda a, b: b - a, 5)
        [3, 1]
    """
    if n <= 0:
        return []

    key = cmp_to_key(compare)
    if len(items) <= n:
        return sorted(items, key=key)

    result = sorted(items[:n], key=key)
    for item in items[n:]:
        if compare(item, result[-1]) >= 0:
            continue
        j = n - 2
        while j >= 0 and compare(item, result[j]) < 0:
            result[j + 1] = result[j]
            j -= 1
        result[j + 1] = item

    return result


def descending_by(attribute: str) -> Comparator:
    """
    Comparator ranking records by a numeric attribute, largest first.

    Missing values rank as zero.
    """

    def compare(a, b) -> float:
        return (getattr(b, attribute) or 0) - (getattr(a, attribute) or 0)

    return compare
