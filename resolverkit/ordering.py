"""Descending-priority ordering for checks and activities."""

from __future__ import annotations

import sys
from typing import Any, Iterable, Protocol, TypeVar

HIGHEST_PRECEDENCE: int = sys.maxsize
LOWEST_PRECEDENCE: int = -sys.maxsize - 1
DEFAULT_ORDER: int = 0

T = TypeVar("T")


class Ordered(Protocol):
    order: int


def priority_of(item: Any) -> int:
    value = getattr(item, "order", DEFAULT_ORDER)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(
            f"{type(item).__name__}.order must be an int (type={type(value).__name__})"
        )
    return value


def compare_priority(left: Any, right: Any) -> int:
    """Negative when `left` runs first, positive when `right` does, 0 on a tie."""

    left_order = priority_of(left)
    right_order = priority_of(right)
    if left_order > right_order:
        return -1
    if left_order < right_order:
        return 1
    return 0


def sort_by_priority(items: Iterable[T]) -> list[T]:
    # sorted() is stable, so ties keep registration order.
    return sorted(items, key=lambda item: -priority_of(item))
