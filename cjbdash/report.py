from __future__ import annotations

"""
Incident reports
----------------
Executive summary (plain data, printable text) and DOCX reports for either a
set of incidents (the current filtered view) or one incident.

Design goals:
- Keep the dashboard usable even if report dependencies are missing (lazy imports).
- Build the numbers from the same aggregation functions the charts use, so a
  report always agrees with what the operator sees on screen.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple
import os
import tempfile

from . import aggregate
from .export import format_display_date
from .models import Incident, NOT_SPECIFIED


# -----------------------------
# Configuration
# -----------------------------

@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "Resumen Ejecutivo - Dashboard de Seguridad CJB"
    subtitle: str = "Departamento de Seguridad CJB"
    organization: str = "Ciudad Juan Bosch"

    # How many categories to list in the summary tables
    top_n: int = 5

    # How many rows to show in the preview table
    max_rows_preview: int = 15

    # Data source shown in the header (file name or URL)
    source: Optional[str] = None


DAY_NAMES = ["Domingo", "Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado"]

KPI_LABELS = [
    ("total", "Total Incidentes"),
    ("undocumented", "Indocumentados Detenidos"),
    ("accidents", "Accidentes de Tránsito"),
    ("arrests", "Arrestos Realizados"),
    ("officers", "Oficiales Activos"),
    ("closures", "Clausuras"),
]


# -----------------------------
# Executive summary (no optional deps)
# -----------------------------

def executive_summary(
    incidents: Sequence[Incident],
    *,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    top_n: int = 5,
    generated_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """KPIs plus the top types and quadrants of the given incidents."""
    quadrants = [(q, c) for q, c in aggregate.group_by(incidents, "quadrant") if q != NOT_SPECIFIED]
    return {
        "generated_at": generated_at or datetime.now(),
        "period": (date_from, date_to),
        "kpis": aggregate.get_aggregations(incidents).as_dict(),
        "top_types": aggregate.group_by(incidents, "type")[:top_n],
        "top_quadrants": quadrants[:top_n],
    }


def format_summary_text(summary: Dict[str, Any], title: str = ReportConfig.title) -> str:
    date_from, date_to = summary["period"]
    lines = [
        title,
        f"Fecha: {summary['generated_at'].strftime('%d/%m/%Y')}",
        f"Periodo: {_date_or_na(date_from)} - {_date_or_na(date_to)}",
        "",
        "Métricas Principales",
    ]
    for key, label in KPI_LABELS:
        lines.append(f"  - {label}: {summary['kpis'][key]}")
    lines += ["", "Distribución por Tipo"]
    lines += [f"  - {t}: {c}" for t, c in summary["top_types"]]
    lines += ["", "Distribución por Cuadrante"]
    lines += [f"  - {q}: {c}" for q, c in summary["top_quadrants"]]
    return "\n".join(lines)


def _date_or_na(d: Optional[datetime]) -> str:
    return d.strftime("%Y-%m-%d") if d is not None else "N/A"


# -----------------------------
# DOCX helpers
# -----------------------------

def _import_docx():
    # Lazy imports: only required when a DOCX report is requested.
    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e
    return Document, Pt, Inches, WD_ALIGN_PARAGRAPH


def _import_pyplot():
    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib.\n"
            "Install with: python -m pip install matplotlib"
        ) from e
    return plt


def _new_document(Document, Pt):
    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)
    return doc


def _center_title(doc, Pt, align, text: str, size: int, bold: bool = False, italic: bool = False) -> None:
    p = doc.add_paragraph()
    r = p.add_run(text)
    r.bold = bold
    r.italic = italic
    r.font.size = Pt(size)
    p.alignment = align


def _kv(doc, key: str, value: str) -> None:
    p = doc.add_paragraph()
    r = p.add_run(f"{key}: ")
    r.bold = True
    p.add_run(value)


def _table(doc, header: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    t = doc.add_table(rows=1, cols=len(header))
    for i, h in enumerate(header):
        t.rows[0].cells[i].text = h
    for row in rows:
        cells = t.add_row().cells
        for i, v in enumerate(row):
            cells[i].text = "" if v is None else str(v)


# -----------------------------
# Charts
# -----------------------------

def _render_charts(incidents: Sequence[Incident], tmpdir: str, top_n: int) -> List[Tuple[str, str]]:
    """Draw the dashboard's main charts as PNGs; returns (title, path) pairs."""
    plt = _import_pyplot()
    charts: List[Tuple[str, str]] = []

    def _save(filename: str) -> str:
        path = os.path.join(tmpdir, filename)
        plt.tight_layout()
        plt.savefig(path, dpi=150)
        plt.close()
        return path

    def _bar(title: str, labels: List[str], values: List[int], filename: str, horizontal: bool = False) -> None:
        if not values:
            return
        plt.figure()
        if horizontal:
            plt.barh(labels[::-1], values[::-1])
            plt.xlabel("Incidentes")
        else:
            plt.bar(labels, values)
            plt.xticks(rotation=45, ha="right")
            plt.ylabel("Incidentes")
        plt.title(title)
        charts.append((title, _save(filename)))

    by_type = aggregate.group_by(incidents, "type")[:top_n * 2]
    _bar("Incidentes por Tipo", [str(k) for k, _ in by_type], [v for _, v in by_type], "by_type.png", horizontal=True)

    by_quadrant = sorted(aggregate.group_by(incidents, "quadrant"))
    _bar("Incidentes por Cuadrante", [k for k, _ in by_quadrant], [v for _, v in by_quadrant], "by_quadrant.png")

    hours = aggregate.group_by_hour(incidents)
    if any(hours.values()):
        _bar("Incidentes por Hora", [f"{h}:00" for h in hours], list(hours.values()), "by_hour.png")

    days = aggregate.group_by_day_of_week(incidents)
    if any(days.values()):
        _bar("Incidentes por Día de la Semana", DAY_NAMES, list(days.values()), "by_day.png")

    timeline = aggregate.group_by_period(incidents, "daily")
    if timeline:
        plt.figure()
        plt.plot([aggregate.format_period_label(k, "daily") for k, _ in timeline],
                 [v for _, v in timeline], marker="o")
        plt.xticks(rotation=45, ha="right")
        plt.title("Tendencia Temporal")
        plt.ylabel("Incidentes")
        charts.append(("Tendencia Temporal", _save("timeline.png")))

    actions = aggregate.action_counts(incidents)
    _bar("Acciones Tomadas", [k for k, _ in actions], [v for _, v in actions], "actions.png", horizontal=True)
    return charts


# -----------------------------
# Main entry points
# -----------------------------

def generate_docx_report(
    incidents: Sequence[Incident],
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
    scope_label: str = "Vista filtrada actual",
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    include_charts: bool = True,
) -> str:
    """
    Generate a DOCX report (KPIs, distributions, charts, preview table).

    The report describes exactly the incidents passed in; the caller decides
    whether that is the filtered view or the full data set.
    """
    config = config or ReportConfig()
    Document, Pt, Inches, WD_ALIGN_PARAGRAPH = _import_docx()

    if not incidents:
        raise ValueError("No incidents to report on (result set is empty).")

    summary = executive_summary(incidents, date_from=date_from, date_to=date_to, top_n=config.top_n)

    doc = _new_document(Document, Pt)
    _center_title(doc, Pt, WD_ALIGN_PARAGRAPH.CENTER, config.title, 20, bold=True)
    _center_title(doc, Pt, WD_ALIGN_PARAGRAPH.CENTER, config.subtitle, 12, italic=True)

    doc.add_paragraph("")
    _kv(doc, "Fecha", summary["generated_at"].strftime("%d/%m/%Y"))
    _kv(doc, "Periodo", f"{_date_or_na(date_from)} - {_date_or_na(date_to)}")
    _kv(doc, "Alcance", scope_label)
    if config.source:
        _kv(doc, "Fuente de datos", os.path.basename(config.source) or config.source)

    doc.add_heading("Métricas Principales", level=1)
    _table(doc, ["Indicador", "Valor"], [(label, summary["kpis"][key]) for key, label in KPI_LABELS])

    doc.add_heading("Distribución por Tipo", level=1)
    _table(doc, ["Tipo", "Incidentes"], summary["top_types"])

    doc.add_heading("Distribución por Cuadrante", level=1)
    _table(doc, ["Cuadrante", "Incidentes"], summary["top_quadrants"])

    undoc = aggregate.undocumented_by_quadrant(incidents)
    if undoc:
        doc.add_heading("Indocumentados por Cuadrante", level=1)
        _table(doc, ["Cuadrante", "Indocumentados"], list(undoc.items()))

    perf = aggregate.officer_performance(incidents, top=config.top_n * 2)
    if perf:
        doc.add_heading("Desempeño por Oficial", level=1)
        _table(doc, ["Oficial", "Incidentes", "Indocumentados"],
               [(name, p["incidents"], p["undocumented"]) for name, p in perf])

    if include_charts:
        # add_picture embeds the PNG bytes; the directory is removed on exit
        with tempfile.TemporaryDirectory(prefix="cjbdash_report_") as tmpdir:
            charts = _render_charts(incidents, tmpdir, config.top_n)
            if charts:
                doc.add_heading("Visualizaciones", level=1)
                for title, path in charts:
                    doc.add_paragraph(title)
                    doc.add_picture(path, width=Inches(6.0))

    doc.add_heading("Registros", level=1)
    preview = list(incidents)[:config.max_rows_preview]
    _table(doc, ["ID", "Fecha", "Tipo", "Cuadrante", "Oficial", "Indoc."],
           [(e.id, format_display_date(e.date, True), e.type, e.quadrant, e.officer, e.undocumented)
            for e in preview])
    if len(incidents) > len(preview):
        doc.add_paragraph(f"... {len(incidents) - len(preview)} registros adicionales no mostrados.")

    from . import __version__
    doc.add_paragraph("")
    doc.add_paragraph(
        f"Generado por cjbdash {__version__} el "
        f"{summary['generated_at'].isoformat(timespec='seconds')} - {len(incidents)} registros."
    )

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    return out_path


def generate_incident_docx(incident: Incident, out_path: str, *, config: Optional[ReportConfig] = None) -> str:
    """Printable report for a single incident."""
    config = config or ReportConfig()
    Document, Pt, _, WD_ALIGN_PARAGRAPH = _import_docx()

    doc = _new_document(Document, Pt)
    _center_title(doc, Pt, WD_ALIGN_PARAGRAPH.CENTER, config.organization, 16, bold=True)
    _center_title(doc, Pt, WD_ALIGN_PARAGRAPH.CENTER, "Reporte de Incidente", 14, bold=True)
    _center_title(doc, Pt, WD_ALIGN_PARAGRAPH.CENTER, f"No. {incident.id}", 12, italic=True)

    doc.add_paragraph("")
    _table(doc, ["Campo", "Detalle"], [
        ("Fecha", format_display_date(incident.date, True)),
        ("Tipo", incident.type),
        ("Cuadrante", incident.quadrant),
        ("Oficial", incident.officer),
        ("Indocumentados", incident.undocumented or "N/A"),
        ("Acciones", incident.actions or "N/A"),
        ("Rol de la Persona", incident.person_role or "N/A"),
        ("Nombre Completo", incident.person_name or "N/A"),
    ])

    doc.add_heading("Narrativa", level=1)
    doc.add_paragraph(incident.narrative or "Sin narrativa")

    side = [
        ("Tránsito", incident.transit_incident),
        ("Migración", incident.migration_incident),
        ("Seguridad policial", incident.security_incident),
    ]
    side = [(k, v) for k, v in side if v]
    if side:
        doc.add_heading("Clasificación", level=1)
        _table(doc, ["Categoría", "Detalle"], side)

    if incident.evidence:
        doc.add_heading("Evidencia Visual", level=1)
        doc.add_paragraph(incident.evidence)

    doc.add_paragraph("")
    doc.add_paragraph(f"Impreso el {datetime.now().strftime('%d/%m/%Y %H:%M')}")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    return out_path
