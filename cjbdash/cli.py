"""
Dashboard console
=================

This file provides the interactive operator console you run like:

    python -m cjbdash.cli --file "Registro de Incidentes.xlsx"
    python -m cjbdash.cli                 (auto-load from the configured feeds)

It demonstrates:
- Argument parsing (argparse)
- A REPL loop (Read-Eval-Print Loop) for commands
- Mapping operator commands to store methods (dropdown filters, cross-filters,
  groupings, table pages, exports, reports)

The console never modifies the source spreadsheet. It loads it into memory and
works on the store's filtered view.
"""

from __future__ import annotations
import argparse, logging, shlex, time
from typing import List, Optional
from .aggregate import (
    action_counts, format_period_label, hour_day_matrix, officer_performance,
    undocumented_by_quadrant,
)
from .config import DashboardConfig, load_config
from .engine import IncidentStore
from .events import Event, EventKind
from .export import default_export_name, export, format_display_date
from .feed import auto_load, write_feed
from .loader import LoadError, read_rows
from .models import Incident
from .report import DAY_NAMES, executive_summary, format_summary_text
from .table import TableView

logger = logging.getLogger(__name__)

HELP = """
Commands (grouped)
------------------

1) Data
   load "<file>"                    (CSV, Excel .xlsx or JSON snapshot)
   fetch [url]                      (configured feeds when no url is given)
   reset
   snapshot "<out.json>"            (write the loaded rows as a JSON feed)

2) Dropdown filters (set directly; no value clears)
   filter dateFrom <YYYY-MM-DD>
   filter dateTo <YYYY-MM-DD>
   filter type|quadrant|officer "<value>"
   search "<text>"

3) Cross-filters (toggle: same value again clears it)
   cross type|quadrant|officer|action "<value>"
   cross hour <0-23> | cross dayOfWeek <0-6, 0=Sunday> | cross month <0-11>

4) Active filters
   filters                          (list active chips)
   remove cross|dropdown <key>
   clear

5) KPIs / charts
   kpis
   group <field>                    (example: group quadrant)
   hours | days | months | heatmap
   timeline [daily|weekly|monthly]
   actions | undoc | officers
   options                          (dropdown choices)

6) Incident table
   show [page]
   sort <id|date|type|quadrant|officer|undoc>
   pagesize <n>
   view <id>

7) Export / reports (current filtered view)
   export ["<path.xlsx|.csv|.json>"]
   summary
   report "<out.docx>" [current|full]
   print <id> "<out.docx>"

8) Exit
   quit
"""


class Console:
    """Binds one store, one table view and the config for the REPL."""

    def __init__(self, store: IncidentStore, config: Optional[DashboardConfig] = None) -> None:
        self.store = store
        self.config = config or DashboardConfig()
        self.view = TableView(page_size=self.config.page_size)
        self.last_refresh = time.monotonic()
        store.bus.subscribe(EventKind.DATA_LOADED, self._on_loaded)
        store.bus.subscribe(EventKind.FILTERS_CHANGED, self._on_filters)
        store.bus.subscribe(EventKind.FILTERS_CLEARED, self._on_filters)
        store.bus.subscribe(EventKind.DATA_RESET, self._on_reset)

    # ---------------- Notifications ----------------
    def _on_loaded(self, event: Event) -> None:
        self.view.current_page = 1
        print(f"{len(self.store.raw_data)} registros cargados.")

    def _on_filters(self, event: Event) -> None:
        self.view.current_page = 1
        count, _ = self.store.active_filters()
        print(f"Filtros activos: {count} | Registros: {len(self.store.filtered_data)} de {len(self.store.raw_data)}")

    def _on_reset(self, event: Event) -> None:
        print("Dashboard reiniciado.")

    # ---------------- Loading ----------------
    def load_file(self, path: str) -> None:
        # read first: a failed read leaves the current data untouched
        rows = read_rows(path)
        self.store.load_rows(rows, source=path)

    def fetch(self, urls: Optional[List[str]] = None) -> bool:
        feed = auto_load(urls or self.config.sources(), timeout=self.config.fetch_timeout)
        self.last_refresh = time.monotonic()
        if feed is None:
            if self.config.show_manual_upload:
                print('No se pudo cargar datos automáticamente. Use: load "<archivo>"')
            return False
        self.store.load_rows(feed.rows, source=feed.source)
        return True

    def maybe_refresh(self) -> None:
        """Re-fetch the feed when the refresh interval has elapsed."""
        minutes = self.config.refresh_minutes
        if minutes <= 0 or not self.store.raw_data or not self.config.sources():
            return
        if time.monotonic() - self.last_refresh >= minutes * 60:
            logger.info("Refreshing incident feed")
            self.fetch()

    # ---------------- Command dispatch ----------------
    def handle(self, line: str) -> None:
        """Handle one console command line."""
        parts = shlex.split(line)
        if not parts:
            return
        cmd = parts[0].lower()
        args = parts[1:]
        store = self.store

        if cmd == "help":
            print(HELP); return

        if cmd == "load":
            self.load_file(args[0]); return
        if cmd == "fetch":
            self.fetch(args or None); return
        if cmd == "reset":
            store.reset(); return
        if cmd == "snapshot":
            snap = write_feed(args[0], [inc.raw for inc in store.raw_data])
            print(f"Snapshot de {snap['count']} registros escrito en {args[0]}"); return

        if not store.raw_data:
            print('Primero cargue un archivo de datos (load "<archivo>").')
            return

        if cmd == "filter":
            key = args[0]
            store.set_dropdown_filter(key, args[1] if len(args) > 1 else None); return
        if cmd == "search":
            store.set_dropdown_filter("search", " ".join(args)); return
        if cmd == "cross":
            store.set_cross_filter(args[0], args[1] if len(args) > 1 else None); return
        if cmd == "remove":
            store.remove_filter(args[0].lower(), args[1]); return
        if cmd == "clear":
            store.clear_all_filters(); return
        if cmd == "filters":
            count, active = store.active_filters()
            print(f"{count} filtro(s) activo(s)")
            for f in active:
                print(f"  [{f.layer}] {f.key}: {_fmt_value(f.value)}")
            return

        if cmd == "kpis":
            for key, value in store.get_aggregations().as_dict().items():
                print(f"{key:>14}: {value}")
            return
        if cmd == "group":
            _print_pairs(store.group_by(args[0])); return
        if cmd == "hours":
            _print_pairs([(f"{h:02d}:00", c) for h, c in store.group_by_hour().items()]); return
        if cmd == "days":
            _print_pairs([(DAY_NAMES[d], c) for d, c in store.group_by_day_of_week().items()]); return
        if cmd == "months":
            _print_pairs(list(store.group_by_month().items())); return
        if cmd == "heatmap":
            for d, row in enumerate(hour_day_matrix(store.filtered_data)):
                print(f"{DAY_NAMES[d][:3]} " + " ".join(f"{c:2d}" for c in row))
            return
        if cmd == "timeline":
            period = args[0].lower() if args else "daily"
            _print_pairs([(format_period_label(k, period), c) for k, c in store.group_by_period(period)]); return
        if cmd == "actions":
            _print_pairs(action_counts(store.filtered_data)); return
        if cmd == "undoc":
            _print_pairs(list(undocumented_by_quadrant(store.filtered_data).items())); return
        if cmd == "officers":
            for name, p in officer_performance(store.filtered_data):
                print(f"{name}: incidentes={p['incidents']} indocumentados={p['undocumented']}")
            return
        if cmd == "options":
            opts = store.filter_options()
            print("Tipos: " + ", ".join(opts["types"]))
            print("Cuadrantes: " + ", ".join(opts["quadrants"]))
            print("Oficiales: " + ", ".join(opts["officers"]))
            print(f"Fechas: {format_display_date(opts['date_min'])} - {format_display_date(opts['date_max'])}")
            return

        if cmd == "show":
            page = self.view.page(store.filtered_data, int(args[0]) if args else None)
            _print_rows(page.items)
            print(f"Mostrando {page.start}-{page.end} de {page.total} (página {page.number}/{page.total_pages})")
            return
        if cmd == "sort":
            self.view.toggle_sort(args[0])
            print(f"Orden: {self.view.sort_column} {self.view.sort_direction}"); return
        if cmd == "pagesize":
            self.view.set_page_size(int(args[0])); return
        if cmd == "view":
            inc = store.find(args[0])
            if inc is None:
                print("No encontrado"); return
            _print_detail(inc); return

        if cmd == "export":
            path = args[0] if args else default_export_name()
            if not store.filtered_data:
                print("Nada que exportar: la vista actual está vacía.")
                return
            export(store.filtered_data, path)
            print(f"Exportado a {path}"); return
        if cmd == "summary":
            df = store.dropdown_filters
            print(format_summary_text(executive_summary(store.filtered_data, date_from=df.dateFrom, date_to=df.dateTo)))
            return
        if cmd == "report":
            from .report import ReportConfig, generate_docx_report
            path = args[0]
            scope = args[1].lower() if len(args) >= 2 else "current"
            if scope not in ("current", "full"):
                raise ValueError("report scope must be: current | full")
            incidents = store.raw_data if scope == "full" else store.filtered_data
            label = "Conjunto completo" if scope == "full" else "Vista filtrada actual"
            generate_docx_report(incidents, path, config=ReportConfig(source=store.source), scope_label=label,
                                 date_from=store.dropdown_filters.dateFrom, date_to=store.dropdown_filters.dateTo)
            print(f"Reporte escrito en {path}"); return
        if cmd == "print":
            from .report import generate_incident_docx
            inc = store.find(args[0])
            if inc is None:
                print("Incidente no encontrado"); return
            generate_incident_docx(inc, args[1])
            print(f"Reporte de incidente escrito en {args[1]}"); return

        print("Comando desconocido. Escriba 'help'.")


def _fmt_value(v) -> str:
    return v.strftime("%Y-%m-%d") if hasattr(v, "strftime") else str(v)

def _print_pairs(pairs) -> None:
    for k, v in pairs:
        print(f"{k}: {v}")

def _print_rows(rows: List[Incident]) -> None:
    for e in rows:
        print(f"[{e.id}] {format_display_date(e.date, True)} | {e.type} | {e.quadrant} | {e.officer} | indoc={e.undocumented}")

def _print_detail(e: Incident) -> None:
    print(f"Incidente {e.id}")
    print(f"  Fecha: {format_display_date(e.date, True)}")
    print(f"  Tipo: {e.type}")
    print(f"  Cuadrante: {e.quadrant}")
    print(f"  Oficial: {e.officer}")
    print(f"  Indocumentados: {e.undocumented or 'N/A'}")
    print(f"  Acciones: {e.actions or 'N/A'}")
    print(f"  Narrativa: {e.narrative or 'Sin narrativa'}")
    if e.evidence:
        print(f"  Evidencia: {e.evidence}")


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the dashboard console.

    1) Load data (file, explicit URL, or configured feeds)
    2) Start an interactive REPL
    """
    ap = argparse.ArgumentParser(description="CJB incident dashboard console")
    ap.add_argument("--file", help="CSV, Excel (.xlsx) or JSON export to load")
    ap.add_argument("--url", action="append", help="JSON feed URL (repeatable, tried in order)")
    ap.add_argument("--log-level", default="WARNING", help="logging level (default WARNING)")
    args = ap.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    config = load_config()
    console = Console(IncidentStore(), config)

    print("Cargando datos...")
    if args.file:
        try:
            console.load_file(args.file)
        except LoadError as e:
            print(f"Error: {e}")
    elif args.url or config.auto_load:
        console.fetch(args.url)
    print("Escriba 'help' para ver los comandos.")

    while True:
        try:
            line = input("cjb> ")
        except EOFError:
            break
        if not line.strip():
            continue
        if line.strip().lower() in ("quit", "exit"):
            break
        try:
            console.maybe_refresh()
            console.handle(line)
        except (LoadError, ValueError, IndexError, OSError, ImportError) as e:
            print(f"Error: {e}")

if __name__ == "__main__":
    main()
