"""
Incident store (filter engine)
==============================

This is the heart of the dashboard. The store works like a tiny in-memory
"Power BI" model:

1) Load incidents -> `raw_data` (immutable Incident records)
2) Keep two independent filter layers:
   - dropdown filters (form controls, set directly)
   - cross-filters (chart clicks, toggled: clicking the same value clears it)
3) Recompute `filtered_data` synchronously whenever a filter changes
4) Notify subscribers (charts, tables, KPIs) through the store's EventBus

Every consumer reads the same `filtered_data`, so all views honor the same
cross-filter semantics. The store is an ordinary object: the application
creates one and hands it to its consumers.

Nothing here raises for bad filter values; they just leave the filter inactive.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
import logging
from . import aggregate
from .events import EventBus, EventKind
from .models import (
    ActiveFilter, CrossFilters, DropdownFilters, Incident,
    CROSS_DIMENSIONS, DROPDOWN_DIMENSIONS,
)
from .normalize import normalize, parse_date

logger = logging.getLogger(__name__)

# cross-filter dimensions compared against a calendar component of `date`
_CALENDAR_DIMENSIONS = ("hour", "dayOfWeek", "month")
_DATE_DIMENSIONS = ("dateFrom", "dateTo")


@dataclass
class IncidentStore:
    """Owns the incident set, both filter layers and the filtered view.

    The store holds:
    - raw_data: every incident of the current load
    - filtered_data: raw_data after all active filters
    - cross_filters / dropdown_filters: the two filter layers
    - bus: notifications for consumers
    """
    raw_data: List[Incident] = field(default_factory=list)
    bus: EventBus = field(default_factory=EventBus)
    # where the current data set came from (file path or URL), for reports
    source: Optional[str] = None
    filtered_data: List[Incident] = field(init=False)
    cross_filters: CrossFilters = field(default_factory=CrossFilters, init=False)
    dropdown_filters: DropdownFilters = field(default_factory=DropdownFilters, init=False)

    def __post_init__(self) -> None:
        self.raw_data = list(self.raw_data)
        self.filtered_data = list(self.raw_data)

    # ---------------- Loading ----------------
    def load(self, incidents: Iterable[Incident], source: Optional[str] = None) -> None:
        """Replace the whole incident set and reset both filter layers."""
        self.raw_data = list(incidents)
        self.source = source
        self.cross_filters = CrossFilters()
        self.dropdown_filters = DropdownFilters()
        self.filtered_data = list(self.raw_data)
        logger.info("Loaded %d incidents%s", len(self.raw_data), f" from {source}" if source else "")
        self.bus.emit(EventKind.DATA_LOADED, self.raw_data)

    def load_rows(self, rows: Iterable[Mapping[str, Any]], source: Optional[str] = None) -> None:
        """Normalize raw spreadsheet rows and load them."""
        self.load(normalize(rows), source=source)

    def reset(self) -> None:
        """Drop all data (back to the empty dashboard)."""
        self.raw_data = []
        self.filtered_data = []
        self.source = None
        self.cross_filters = CrossFilters()
        self.dropdown_filters = DropdownFilters()
        self.bus.emit(EventKind.DATA_RESET)

    def find(self, incident_id: Any) -> Optional[Incident]:
        """Look up an incident of the current load by id (compared as text)."""
        key = str(incident_id).strip()
        for inc in self.raw_data:
            if str(inc.id) == key:
                return inc
        return None

    # ---------------- Filtering ----------------
    def apply_filters(self) -> List[Incident]:
        """Recompute `filtered_data` from `raw_data` and the active filters.

        Dropdown filters run first, then cross-filters; all are conjunctions.
        """
        result = list(self.raw_data)
        df = self.dropdown_filters

        if df.dateFrom is not None:
            date_from = df.dateFrom
            result = [r for r in result if r.date is not None and r.date >= date_from]
        if df.dateTo is not None:
            date_to = df.dateTo.replace(hour=23, minute=59, second=59, microsecond=0)
            result = [r for r in result if r.date is not None and r.date <= date_to]
        if df.type:
            result = [r for r in result if r.type == df.type]
        if df.quadrant:
            result = [r for r in result if r.quadrant == df.quadrant]
        if df.officer:
            result = [r for r in result if r.officer == df.officer]
        if df.search:
            needle = df.search.lower()
            result = [r for r in result if needle in _search_text(r)]

        cf = self.cross_filters
        if cf.type:
            result = [r for r in result if r.type == cf.type]
        if cf.quadrant:
            result = [r for r in result if r.quadrant == cf.quadrant]
        if cf.officer:
            result = [r for r in result if r.officer == cf.officer]
        if cf.hour is not None:
            result = [r for r in result if r.date is not None and r.hour() == cf.hour]
        if cf.dayOfWeek is not None:
            result = [r for r in result if r.date is not None and r.day_of_week() == cf.dayOfWeek]
        if cf.month is not None:
            result = [r for r in result if r.date is not None and r.month() == cf.month]
        if cf.action:
            action = cf.action.lower()
            result = [r for r in result if r.actions and action in r.actions.lower()]

        self.filtered_data = result
        return result

    def set_cross_filter(self, dimension: str, value: Any) -> None:
        """Toggle a cross-filter: selecting the current value clears it."""
        if dimension not in CROSS_DIMENSIONS:
            logger.debug("Ignoring unknown cross-filter dimension %r", dimension)
            return
        value = _coerce_cross_value(dimension, value)
        if getattr(self.cross_filters, dimension) == value:
            setattr(self.cross_filters, dimension, None)
        else:
            setattr(self.cross_filters, dimension, value)
        self._changed()

    def set_dropdown_filter(self, dimension: str, value: Any) -> None:
        """Set a dropdown filter directly; empty values switch it off."""
        if dimension not in DROPDOWN_DIMENSIONS:
            logger.debug("Ignoring unknown dropdown dimension %r", dimension)
            return
        setattr(self.dropdown_filters, dimension, _coerce_dropdown_value(dimension, value))
        self._changed()

    def remove_filter(self, layer: str, key: str) -> None:
        """Remove one active filter chip."""
        if layer == "cross" and key in CROSS_DIMENSIONS:
            setattr(self.cross_filters, key, None)
        elif layer == "dropdown" and key in DROPDOWN_DIMENSIONS:
            setattr(self.dropdown_filters, key, getattr(DropdownFilters(), key))
        else:
            logger.debug("Ignoring unknown filter %s/%s", layer, key)
            return
        self._changed()

    def clear_all_filters(self) -> None:
        self.cross_filters = CrossFilters()
        self.dropdown_filters = DropdownFilters()
        self.filtered_data = list(self.raw_data)
        self.bus.emit(EventKind.FILTERS_CLEARED)

    def active_filters(self) -> Tuple[int, List[ActiveFilter]]:
        """Count and itemize active filters (the search box is not a chip)."""
        active: List[ActiveFilter] = []
        for key, val in self.cross_filters.items():
            if val is not None:
                active.append(ActiveFilter(layer="cross", key=key, value=val))
        for key, val in self.dropdown_filters.items():
            if val and key != "search":
                active.append(ActiveFilter(layer="dropdown", key=key, value=val))
        return len(active), active

    def get_active_filter_count(self) -> int:
        return self.active_filters()[0]

    def _changed(self) -> None:
        self.apply_filters()
        self.bus.emit(EventKind.FILTERS_CHANGED, self.active_filters())

    # ---------------- Aggregations over the filtered view ----------------
    def group_by(self, field: str) -> List[Tuple[Any, int]]:
        return aggregate.group_by(self.filtered_data, field)

    def group_by_hour(self) -> Dict[int, int]:
        return aggregate.group_by_hour(self.filtered_data)

    def group_by_day_of_week(self) -> Dict[int, int]:
        return aggregate.group_by_day_of_week(self.filtered_data)

    def group_by_month(self) -> Dict[int, int]:
        return aggregate.group_by_month(self.filtered_data)

    def group_by_period(self, period: str = "daily") -> List[Tuple[str, int]]:
        return aggregate.group_by_period(self.filtered_data, period)

    def get_aggregations(self) -> aggregate.Aggregations:
        return aggregate.get_aggregations(self.filtered_data)

    def filter_options(self) -> Dict[str, Any]:
        """Dropdown choices come from the full data set, not the filtered view."""
        return aggregate.filter_options(self.raw_data)


# ---------------- Helpers ----------------
def _search_text(r: Incident) -> str:
    return " ".join(str(v) for v in (r.id, r.type, r.quadrant, r.officer,
                                     r.narrative, r.actions, r.person_name)).lower()

def _coerce_cross_value(dimension: str, value: Any) -> Any:
    if value is None:
        return None
    if dimension in _CALENDAR_DIMENSIONS:
        if isinstance(value, bool):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.debug("Invalid %s cross-filter value %r", dimension, value)
            return None
    return str(value)

def _coerce_dropdown_value(dimension: str, value: Any) -> Any:
    if dimension == "search":
        return str(value) if value else ""
    if not value:
        return None
    if dimension in _DATE_DIMENSIONS:
        parsed = parse_date(value)
        if parsed is None:
            logger.debug("Invalid %s value %r", dimension, value)
        return parsed
    return str(value)
