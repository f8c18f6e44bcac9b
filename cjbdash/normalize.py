"""
Row normalization (raw row -> Incident)
=======================================

Spreadsheet rows arrive as loosely-typed dicts keyed by header text. This
module turns each one into a fixed-shape `Incident`, and it is the only place
where defaults and fallbacks are decided.

Key ideas:
- Header names vary between exports ("Tipo de Incidente" vs "Tipo"), so each
  field lists the headers it accepts, tried in order.
- Conversion helpers (to_str/_to_int/_to_datetime) never raise; bad cells
  degrade to "", 0 or None.
- Free-text fields with a controlled vocabulary (type, quadrant, action) are
  mapped by case-insensitive keyword matching.
"""

from __future__ import annotations
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional
import logging
import re
import pandas as pd
from .models import Incident, NOT_SPECIFIED, QUADRANTS

logger = logging.getLogger(__name__)

# Accepted headers per field, in priority order.
COL_ID = ("Id",)
COL_DATE = ("Hora de inicio", "Fecha")
COL_TYPE = ("Tipo de Incidente", "Tipo")
COL_QUADRANT = ("Cuadrante donde sucedió el hecho", "Cuadrante")
COL_OFFICER = ("Oficial a cargo", "Oficial a cargo1")
COL_UNDOCUMENTED = ("Cantidad de Indocumentados detenidos",)
COL_NARRATIVE = ("Narrativa del Incidente",)
COL_ACTIONS = ("Acciones Tomadas",)
COL_TRANSIT = ("Incidentes relacionados a tránsito",)
COL_MIGRATION = ("Incidentes de migración",)
COL_SECURITY = ("Incidentes de seguridad policial",)
COL_PERSON_ROLE = ("Rol de la Persona",)
COL_PERSON_NAME = ("Nombre Completo",)
COL_EVIDENCE = ("Evidencia Visual",)

# keyword (lowercase substring) -> canonical incident type, checked in order
TYPE_KEYWORDS = (
    ("migracion", "Migración"),
    ("migración", "Migración"),
    ("digesett", "DIGESETT"),
    ("inacif", "INACIF"),
    ("dicrim", "DICRIM"),
    ("dncd", "DNCD"),
    ("policia", "Policía Nacional"),
    ("seguridad", "Seguridad"),
)
DEFAULT_TYPE = "Otros"

# Known free-text quadrant values (upper-cased) and the zone they collapse to.
# Multi-zone values keep the first zone listed.
QUADRANT_REDISTRIBUTION = {
    "TODA LA CIUDAD": "B1",
    "EN LAS PUERTAS PRINCIPALES DE CJB": "B1",
    "PUERTAS PRINCIPALES": "B1",
    "GARITA": "B1",
    "ENTRADA": "B1",
    "GAVIOTA #3": "B3",
    "GAVIOTA": "B3",
    "GAVIOTA 3": "B3",
    "B1 Y B3": "B1",
    "B1 Y B2": "B1",
    "B2 Y B3": "B2",
    "B3 Y B4": "B3",
    "B1, B3": "B1",
    "NO ESPECIFICADO": "B1",
    "N/A": "B1",
}
DEFAULT_QUADRANT = "B1"

# keyword(s) -> action category, checked in order
ACTION_KEYWORDS = (
    (("arresto", "detención"), "Arresto/Detención"),
    (("advertencia",), "Advertencia"),
    (("asistencia",), "Asistencia"),
    (("clausura",), "Clausura"),
    (("migración",), "Entrega Migración"),
    (("policía",), "Entrega PN"),
    (("digesett",), "Ref. DIGESETT"),
    (("multa",), "Multa"),
)

_DMY_RE = re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})\s*(\d{1,2})?:?(\d{2})?")
_ISO_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


# ---------------- Cell helpers ----------------

def is_missing(x: Any) -> bool:
    """True for None, NaN and NaT cells."""
    if x is None:
        return True
    try:
        return bool(pd.isna(x))
    except (TypeError, ValueError):
        # list-like cells
        return False

def to_str(x: Any) -> str:
    """Cell -> stripped string ("" if missing). 3.0 becomes "3"."""
    if is_missing(x):
        return ""
    if isinstance(x, float) and x.is_integer():
        return str(int(x))
    return str(x).strip()

def _to_int(x: Any) -> int:
    """Cell -> non-negative int, 0 if missing/invalid (leading digits win, like "3 personas")."""
    if is_missing(x) or isinstance(x, bool):
        return 0
    if isinstance(x, (int, float)):
        try:
            return max(0, int(x))
        except (OverflowError, ValueError):
            return 0
    m = _LEADING_INT_RE.match(str(x))
    if not m:
        return 0
    return max(0, int(m.group(1)))

def _norm_header(s: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", str(s).lower())

def _get(row: Mapping[str, Any], names: Iterable[str]) -> Any:
    """First non-empty value among the given headers.

    Exact header names are tried first, then a punctuation/case-insensitive match.
    """
    names = tuple(names)
    for n in names:
        v = row.get(n)
        if not is_missing(v) and to_str(v) != "":
            return v
    norm_map = {_norm_header(k): k for k in row.keys()}
    for n in names:
        k = norm_map.get(_norm_header(n))
        if k is None:
            continue
        v = row.get(k)
        if not is_missing(v) and to_str(v) != "":
            return v
    return None


# ---------------- Field normalizers ----------------

def _to_datetime(x: Any) -> Optional[datetime]:
    if isinstance(x, pd.Timestamp):
        if pd.isna(x):
            return None
        if x.tzinfo is not None:
            x = x.tz_localize(None)
        return x.to_pydatetime()
    if isinstance(x, datetime):
        return x.replace(tzinfo=None)
    if isinstance(x, date):
        return datetime(x.year, x.month, x.day)
    return None

def parse_date(value: Any) -> Optional[datetime]:
    """Parse a date cell into a naive local datetime, or None.

    Order: D/M/YYYY [H:MM] (day first), YYYY-MM-DD, then a generic parse.
    Cells that are already datetimes (Excel) pass through.
    """
    if is_missing(value):
        return None
    already = _to_datetime(value)
    if already is not None:
        return already
    s = to_str(value)
    if not s:
        return None

    m = _DMY_RE.search(s)
    if m:
        try:
            return datetime(int(m.group(3)), int(m.group(2)), int(m.group(1)),
                            int(m.group(4) or 0), int(m.group(5) or 0))
        except ValueError:
            pass

    m = _ISO_RE.search(s)
    if m:
        try:
            return datetime(int(m.group(1)), int(m.group(2)), int(m.group(3)))
        except ValueError:
            pass

    try:
        ts = pd.to_datetime(s, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    return _to_datetime(ts)

def normalize_incident_type(value: Any) -> str:
    t = to_str(value)
    if not t:
        return DEFAULT_TYPE
    low = t.lower()
    for keyword, canonical in TYPE_KEYWORDS:
        if keyword in low:
            return canonical
    return t

def normalize_quadrant(value: Any) -> str:
    """Collapse any quadrant text into exactly one of B1..B4.

    Ambiguous or unspecified locations fall into B1.
    """
    q = to_str(value).upper()
    if not q or q == "0":
        return DEFAULT_QUADRANT
    if q in QUADRANTS:
        return q
    if q in QUADRANT_REDISTRIBUTION:
        return QUADRANT_REDISTRIBUTION[q]
    for code in QUADRANTS:
        if code in q:
            return code
    return DEFAULT_QUADRANT

def normalize_officer(value: Any) -> str:
    o = to_str(value)
    if not o or o == "0":
        return NOT_SPECIFIED
    return o

def normalize_action(value: Any) -> Optional[str]:
    """Map one free-text action phrase to its chart category (None if unknown)."""
    a = to_str(value).lower()
    if not a:
        return None
    for keywords, category in ACTION_KEYWORDS:
        if any(k in a for k in keywords):
            return category
    return None

def _to_id(value: Any, ordinal: int):
    # a blank or zero id means "not set": fall back to the row number
    if is_missing(value) or to_str(value) in ("", "0"):
        return ordinal
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    s = to_str(value)
    return s if s else ordinal


# ---------------- Rows ----------------

def normalize_row(row: Mapping[str, Any], ordinal: int) -> Incident:
    """Convert one raw row into an Incident. `ordinal` is the 1-based row number."""
    date_value = _get(row, COL_DATE)
    return Incident(
        id=_to_id(_get(row, COL_ID), ordinal),
        date=parse_date(date_value),
        date_str=to_str(date_value),
        type=normalize_incident_type(_get(row, COL_TYPE)),
        quadrant=normalize_quadrant(_get(row, COL_QUADRANT)),
        officer=normalize_officer(_get(row, COL_OFFICER)),
        undocumented=_to_int(_get(row, COL_UNDOCUMENTED)),
        narrative=to_str(_get(row, COL_NARRATIVE)),
        actions=to_str(_get(row, COL_ACTIONS)),
        transit_incident=to_str(_get(row, COL_TRANSIT)),
        migration_incident=to_str(_get(row, COL_MIGRATION)),
        security_incident=to_str(_get(row, COL_SECURITY)),
        person_role=to_str(_get(row, COL_PERSON_ROLE)),
        person_name=to_str(_get(row, COL_PERSON_NAME)),
        evidence=to_str(_get(row, COL_EVIDENCE)),
        raw=MappingProxyType(dict(row)),
    )

def normalize(rows: Iterable[Mapping[str, Any]]) -> List[Incident]:
    """Normalize a batch of raw rows. Never raises for bad cell values."""
    out: List[Incident] = []
    seen: Dict[str, int] = {}
    for i, row in enumerate(rows):
        if not isinstance(row, Mapping):
            logger.debug("Skipping non-mapping row #%d: %r", i + 1, row)
            continue
        inc = normalize_row(row, i + 1)
        key = str(inc.id)
        if key in seen:
            logger.warning("Duplicate incident id %s (rows %d and %d)", key, seen[key], i + 1)
        else:
            seen[key] = i + 1
        out.append(inc)
    return out
