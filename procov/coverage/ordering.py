"""
Canonical ordering and ratio helpers for covered elements.

Records sort by definition key, then element id. A missing definition key
sorts first. Deduplication keeps the first record seen per identity.
"""

import math
from collections.abc import Iterable
from functools import cmp_to_key
from typing import TypeVar

from procov.coverage.elements import CoveredElement

E = TypeVar("E", bound=CoveredElement)


def _compare_keys(left: str | None, right: str | None) -> int:
    if left == right:
        return 0
    if left is None:
        return -1
    if right is None:
        return 1
    return -1 if left < right else 1


def compare_elements(left: CoveredElement | None, right: CoveredElement | None) -> int:
    """
    Three-way comparison of two records in canonical order.

    Returns:
        Negative, zero or positive, like a classic comparator
    """
    if left is None and right is None:
        return 0
    if left is None:
        return -1
    if right is None:
        return 1

    by_definition = _compare_keys(left.definition_key, right.definition_key)
    if by_definition != 0:
        return by_definition
    return _compare_keys(left.element_id, right.element_id)


element_sort_key = cmp_to_key(compare_elements)


def unique_sorted(elements: Iterable[E]) -> list[E]:
    """
    Deduplicate records by identity and return them in canonical order.

    Args:
        elements: Records in any order, possibly repeated

    Returns:
        New list with one record per ``(definition_key, element_id)``
    """
    seen: dict[tuple[type, str | None, str], E] = {}
    for element in elements:
        seen.setdefault((type(element), element.definition_key, element.element_id), element)
    return sorted(seen.values(), key=element_sort_key)


def coverage_ratio(covered: int, defined: int) -> float:
    """
    Covered fraction in ``[0, 1]``.

    A scope with nothing declared has no meaningful ratio and yields NaN.
    """
    if defined == 0:
        return math.nan
    return covered / defined
