"""
Incident table (sorting + pagination)
=====================================

The incident list shows the store's filtered set one page at a time. The view
remembers its sort column/direction and page size; it never modifies the
incidents it is given.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional, Sequence
import math
from .dsa import merge_sort
from .models import Incident
from .aggregate import field_value

PAGE_SIZES = (10, 25, 50, 100)
_EPOCH = datetime(1970, 1, 1)


@dataclass
class Page:
    items: List[Incident]
    number: int
    total_pages: int
    total: int
    # 1-based positions shown as "start-end of total"
    start: int
    end: int


def _sort_key(column: str) -> Callable[[Incident], Any]:
    if column == "id":
        def _id(e: Incident) -> int:
            try:
                return int(str(e.id).strip())
            except ValueError:
                return 0
        return _id
    if column == "date":
        return lambda e: (e.date - _EPOCH).total_seconds() if e.date is not None else 0.0
    if column in ("undoc", "undocumented"):
        return lambda e: e.undocumented
    return lambda e: str(field_value(e, column) or "").lower()


@dataclass
class TableView:
    page_size: int = 25
    sort_column: str = "date"
    sort_direction: str = "desc"
    current_page: int = 1

    def toggle_sort(self, column: str) -> None:
        """Same column flips the direction; a new column starts descending."""
        if self.sort_column == column:
            self.sort_direction = "asc" if self.sort_direction == "desc" else "desc"
        else:
            self.sort_column = column
            self.sort_direction = "desc"
        self.current_page = 1

    def set_page_size(self, size: int) -> None:
        self.page_size = max(1, int(size))
        self.current_page = 1

    def rows(self, incidents: Sequence[Incident]) -> List[Incident]:
        return merge_sort(list(incidents), key=_sort_key(self.sort_column),
                          reverse=(self.sort_direction == "desc"))

    def total_pages(self, total: int) -> int:
        return math.ceil(total / self.page_size) if total else 0

    def page(self, incidents: Sequence[Incident], number: Optional[int] = None) -> Page:
        """Return one page of the sorted rows; the page number is clamped into range."""
        data = self.rows(incidents)
        total = len(data)
        pages = self.total_pages(total)
        n = self.current_page if number is None else number
        n = max(1, min(n, pages or 1))
        self.current_page = n
        start = (n - 1) * self.page_size
        items = data[start:start + self.page_size]
        return Page(items=items, number=n, total_pages=pages, total=total,
                    start=start + 1 if items else 0, end=start + len(items))
