"""
Aggregations (filtered incidents -> chart/KPI numbers)
======================================================

Pure functions over a sequence of incidents (normally the store's current
filtered set). Nothing here mutates its input.

Date-based groupings skip incidents without a date.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple
import math
import re
from .dsa import merge_sort
from .models import Incident, NOT_SPECIFIED
from .normalize import normalize_action

# camelCase names used by the dashboard -> Incident attributes
FIELD_ALIASES = {
    "transitIncident": "transit_incident",
    "migrationIncident": "migration_incident",
    "securityIncident": "security_incident",
    "personRole": "person_role",
    "personName": "person_name",
    "dateStr": "date_str",
}

PERIODS = ("daily", "weekly", "monthly")

ACCIDENT_KEYWORD = "accidente"
ARREST_KEYWORDS = ("arresto", "detención", "detencion")
CLOSURE_KEYWORD = "clausura"


@dataclass(frozen=True)
class Aggregations:
    total: int
    undocumented: int
    accidents: int
    arrests: int
    officers: int
    closures: int

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


def field_value(inc: Incident, field: str) -> Any:
    return getattr(inc, FIELD_ALIASES.get(field, field), None)


# ---------------- Classifiers ----------------

def is_accident(inc: Incident) -> bool:
    return ("digesett" in inc.type.lower()
            or ACCIDENT_KEYWORD in inc.transit_incident.lower()
            or ACCIDENT_KEYWORD in inc.narrative.lower())

def is_arrest(inc: Incident) -> bool:
    actions = inc.actions.lower()
    return any(k in actions for k in ARREST_KEYWORDS)

def is_closure(inc: Incident) -> bool:
    return CLOSURE_KEYWORD in inc.actions.lower() or CLOSURE_KEYWORD in inc.narrative.lower()


# ---------------- Group-by ----------------

def _sorted_counts(counts: Dict[Any, int], top: Optional[int] = None) -> List[Tuple[Any, int]]:
    # dict order is first-encounter order; the stable sort keeps it for ties
    out = merge_sort(list(counts.items()), key=lambda kv: kv[1], reverse=True)
    return out[:top] if top is not None else out

def group_by(incidents: Sequence[Incident], field: str) -> List[Tuple[Any, int]]:
    """(value, count) pairs sorted by count desc; empty values count as "No especificado"."""
    counts: Dict[Any, int] = {}
    for inc in incidents:
        key = field_value(inc, field)
        if key is None or key == "":
            key = NOT_SPECIFIED
        counts[key] = counts.get(key, 0) + 1
    return _sorted_counts(counts)

def group_by_hour(incidents: Sequence[Incident]) -> Dict[int, int]:
    hours = {h: 0 for h in range(24)}
    for inc in incidents:
        if inc.date is not None:
            hours[inc.date.hour] += 1
    return hours

def group_by_day_of_week(incidents: Sequence[Incident]) -> Dict[int, int]:
    """7 buckets, 0=Sunday .. 6=Saturday."""
    days = {d: 0 for d in range(7)}
    for inc in incidents:
        dow = inc.day_of_week()
        if dow is not None:
            days[dow] += 1
    return days

def group_by_month(incidents: Sequence[Incident]) -> Dict[int, int]:
    """12 buckets, 0=January."""
    months = {m: 0 for m in range(12)}
    for inc in incidents:
        m = inc.month()
        if m is not None:
            months[m] += 1
    return months

def week_number(d: datetime) -> int:
    """Week of the year, weeks starting on Sunday and week 1 containing Jan 1."""
    first = date(d.year, 1, 1)
    days = (d.date() - first).days if isinstance(d, datetime) else (d - first).days
    first_dow = (first.weekday() + 1) % 7
    return math.ceil((days + first_dow + 1) / 7)

def period_key(d: datetime, period: str) -> str:
    if period == "daily":
        return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"
    if period == "weekly":
        return f"{d.year:04d}-S{week_number(d):02d}"
    return f"{d.year:04d}-{d.month:02d}"

def group_by_period(incidents: Sequence[Incident], period: str = "daily") -> List[Tuple[str, int]]:
    """Timeline counts keyed YYYY-MM-DD / YYYY-Sww / YYYY-MM, ascending.

    Any period other than daily/weekly is treated as monthly.
    """
    counts: Dict[str, int] = {}
    for inc in incidents:
        if inc.date is None:
            continue
        key = period_key(inc.date, period)
        counts[key] = counts.get(key, 0) + 1
    return sorted(counts.items(), key=lambda kv: kv[0])

_MONTHS_ES = ["Ene", "Feb", "Mar", "Abr", "May", "Jun", "Jul", "Ago", "Sep", "Oct", "Nov", "Dic"]

def format_period_label(key: str, period: str) -> str:
    """Display label for a timeline key ("2025-07-01" -> "01/07")."""
    if period == "daily":
        return "/".join(reversed(key.split("-")[1:]))
    if period == "weekly":
        return key.replace("-", " ", 1)
    y, m = key.split("-")[:2]
    return f"{_MONTHS_ES[int(m) - 1]} {y}"


# ---------------- KPIs ----------------

def get_aggregations(incidents: Sequence[Incident]) -> Aggregations:
    officers = {i.officer for i in incidents if i.officer and i.officer != NOT_SPECIFIED}
    return Aggregations(
        total=len(incidents),
        undocumented=sum(i.undocumented for i in incidents),
        accidents=sum(1 for i in incidents if is_accident(i)),
        arrests=sum(1 for i in incidents if is_arrest(i)),
        officers=len(officers),
        closures=sum(1 for i in incidents if is_closure(i)),
    )


# ---------------- Chart helpers ----------------

_ACTION_SPLIT_RE = re.compile(r"[;,]")

def action_counts(incidents: Sequence[Incident], top: Optional[int] = 8) -> List[Tuple[str, int]]:
    """Count action categories over the `actions` text (split on ';' and ',')."""
    counts: Dict[str, int] = {}
    for inc in incidents:
        if not inc.actions:
            continue
        for piece in _ACTION_SPLIT_RE.split(inc.actions):
            piece = piece.strip()
            if len(piece) <= 3:
                continue
            category = normalize_action(piece)
            if category:
                counts[category] = counts.get(category, 0) + 1
    return _sorted_counts(counts, top)

def undocumented_by_quadrant(incidents: Sequence[Incident]) -> Dict[str, int]:
    totals: Dict[str, int] = {}
    for inc in incidents:
        if inc.quadrant and inc.quadrant != NOT_SPECIFIED and inc.undocumented > 0:
            totals[inc.quadrant] = totals.get(inc.quadrant, 0) + inc.undocumented
    return {k: totals[k] for k in sorted(totals)}

def hour_day_matrix(incidents: Sequence[Incident]) -> List[List[int]]:
    """7x24 counts: rows are days (0=Sunday), columns are hours."""
    matrix = [[0] * 24 for _ in range(7)]
    for inc in incidents:
        if inc.date is not None:
            matrix[inc.day_of_week()][inc.date.hour] += 1
    return matrix

def officer_performance(incidents: Sequence[Incident], top: Optional[int] = 15) -> List[Tuple[str, Dict[str, int]]]:
    """Per officer incident and undocumented totals, sorted by undocumented desc."""
    perf: Dict[str, Dict[str, int]] = {}
    for inc in incidents:
        if not inc.officer or inc.officer == NOT_SPECIFIED:
            continue
        p = perf.setdefault(inc.officer, {"incidents": 0, "undocumented": 0})
        p["incidents"] += 1
        p["undocumented"] += inc.undocumented
    out = merge_sort(list(perf.items()), key=lambda kv: kv[1]["undocumented"], reverse=True)
    return out[:top] if top is not None else out

def filter_options(incidents: Sequence[Incident]) -> Dict[str, Any]:
    """Distinct dropdown values and the date span of the data set."""
    def _distinct(attr: str) -> List[str]:
        vals = {getattr(i, attr) for i in incidents}
        return sorted(v for v in vals if v and v != NOT_SPECIFIED)

    dates = [i.date for i in incidents if i.date is not None]
    return {
        "types": _distinct("type"),
        "quadrants": _distinct("quadrant"),
        "officers": _distinct("officer"),
        "date_min": min(dates) if dates else None,
        "date_max": max(dates) if dates else None,
    }
