"""
Sorting utilities
=================

Group-by results and the incident table must break ties by first-encounter
order, so sorting goes through this explicit stable merge sort.
"""

from __future__ import annotations
from typing import List, Callable, Sequence, TypeVar

T = TypeVar("T")

def merge_sort(arr: Sequence[T], key: Callable[[T], object] = lambda x: x, reverse: bool = False) -> List[T]:
    """Stable merge sort (also stable when `reverse=True`)."""
    if len(arr) <= 1:
        return list(arr)
    mid = len(arr) // 2
    left = merge_sort(arr[:mid], key=key, reverse=reverse)
    right = merge_sort(arr[mid:], key=key, reverse=reverse)
    return _merge(left, right, key=key, reverse=reverse)

def _merge(left: List[T], right: List[T], key: Callable[[T], object], reverse: bool) -> List[T]:
    out: List[T] = []
    # i and j are pointers into each sorted list
    i = j = 0
    while i < len(left) and j < len(right):
        a, b = key(left[i]), key(right[j])
        # on ties the left element wins, which keeps the sort stable
        take_left = not (b > a) if reverse else not (b < a)
        if take_left:
            out.append(left[i]); i += 1
        else:
            out.append(right[j]); j += 1
    out.extend(left[i:])
    out.extend(right[j:])
    return out
