"""
Data model (Incident + filter state)
====================================

Each row of the incident spreadsheet is converted into an `Incident` object.
We keep it immutable (`frozen=True`) so that:
- incidents cannot be accidentally modified after normalization, and
- filters only ever select incidents, they never edit them.

A new upload replaces the whole set; no single record is patched in place.
"""

from __future__ import annotations
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

# Sentinel used for a missing officer (and for empty group-by keys).
NOT_SPECIFIED = "No especificado"

QUADRANTS = ("B1", "B2", "B3", "B4")

IncidentId = Union[int, str]

@dataclass(frozen=True)
class Incident:
    """One normalized incident record.

    `raw` keeps the original spreadsheet row for traceability/export.
    """
    id: IncidentId
    date: Optional[datetime]
    type: str
    quadrant: str
    officer: str
    undocumented: int
    narrative: str = ""
    actions: str = ""
    date_str: str = ""
    transit_incident: str = ""
    migration_incident: str = ""
    security_incident: str = ""
    person_role: str = ""
    person_name: str = ""
    evidence: str = ""
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, hash=False, repr=False)

    def hour(self) -> Optional[int]:
        return self.date.hour if self.date is not None else None

    def day_of_week(self) -> Optional[int]:
        """Day of week with 0=Sunday .. 6=Saturday."""
        if self.date is None:
            return None
        return (self.date.weekday() + 1) % 7

    def month(self) -> Optional[int]:
        """Zero-based month (0=January), as the month chart emits it."""
        return self.date.month - 1 if self.date is not None else None


# ---------------- Filter state ----------------

@dataclass
class CrossFilters:
    """Toggleable filters set by clicking chart elements.

    `None` means "unset"; 0 is a real value for hour/dayOfWeek/month.
    """
    type: Optional[str] = None
    quadrant: Optional[str] = None
    officer: Optional[str] = None
    hour: Optional[int] = None
    dayOfWeek: Optional[int] = None
    month: Optional[int] = None
    action: Optional[str] = None

    def items(self):
        return [(f.name, getattr(self, f.name)) for f in fields(self)]


@dataclass
class DropdownFilters:
    """Directly-set filters from the form controls (no toggling)."""
    dateFrom: Optional[datetime] = None
    dateTo: Optional[datetime] = None
    type: Optional[str] = None
    quadrant: Optional[str] = None
    officer: Optional[str] = None
    search: str = ""

    def items(self):
        return [(f.name, getattr(self, f.name)) for f in fields(self)]


CROSS_DIMENSIONS = tuple(f.name for f in fields(CrossFilters))
DROPDOWN_DIMENSIONS = tuple(f.name for f in fields(DropdownFilters))


@dataclass(frozen=True)
class ActiveFilter:
    """One active filter chip. `layer` is "cross" or "dropdown"."""
    layer: str
    key: str
    value: Any

    def as_dict(self) -> Dict[str, Any]:
        return {"type": self.layer, "key": self.key, "value": self.value}
