"""
Export (filtered incidents -> spreadsheet rows)
===============================================

Exports always take the incidents they are given (normally the store's
filtered set) and flatten them to one record per incident with the column
headers the security office uses in its spreadsheets.
"""

from __future__ import annotations
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence
import csv
import json
import os
import pandas as pd
from .models import Incident

EXPORT_COLUMNS = ["ID", "Fecha", "Tipo", "Cuadrante", "Oficial", "Indocumentados", "Narrativa", "Acciones"]
SHEET_NAME = "Incidentes"


def format_display_date(d: Optional[datetime], with_time: bool = False) -> str:
    """DD/MM/YYYY[ HH:MM], or "N/A" when the incident has no date."""
    if d is None:
        return "N/A"
    return d.strftime("%d/%m/%Y %H:%M" if with_time else "%d/%m/%Y")

def export_rows(incidents: Sequence[Incident]) -> List[Dict[str, Any]]:
    return [
        {
            "ID": e.id,
            "Fecha": format_display_date(e.date),
            "Tipo": e.type,
            "Cuadrante": e.quadrant,
            "Oficial": e.officer,
            "Indocumentados": e.undocumented,
            "Narrativa": e.narrative,
            "Acciones": e.actions,
        }
        for e in incidents
    ]

def default_export_name(prefix: str = "Incidentes_CJB", ext: str = "xlsx", today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{prefix}_{today.isoformat()}.{ext.lstrip('.')}"

def _ensure_dir(path: str) -> None:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

def export_xlsx(incidents: Sequence[Incident], path: str) -> str:
    _ensure_dir(path)
    df = pd.DataFrame(export_rows(incidents), columns=EXPORT_COLUMNS)
    df.to_excel(path, sheet_name=SHEET_NAME, index=False, engine="openpyxl")
    return path

def export_csv(incidents: Sequence[Incident], path: str) -> str:
    _ensure_dir(path)
    with open(path, "w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=EXPORT_COLUMNS)
        w.writeheader()
        for row in export_rows(incidents):
            w.writerow(row)
    return path

def export_json(incidents: Sequence[Incident], path: str) -> str:
    """CSV is great for spreadsheets; JSON keeps the values typed for programs."""
    _ensure_dir(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(export_rows(incidents), f, ensure_ascii=False, indent=2)
    return path

EXPORTERS = {"xlsx": export_xlsx, "csv": export_csv, "json": export_json}

def export(incidents: Sequence[Incident], path: str, fmt: Optional[str] = None) -> str:
    """Export by explicit format or by the file extension."""
    fmt = (fmt or os.path.splitext(path)[1].lstrip(".")).lower()
    if fmt not in EXPORTERS:
        raise ValueError(f"Unknown export format {fmt!r}. Use: xlsx, csv or json")
    return EXPORTERS[fmt](incidents, path)
