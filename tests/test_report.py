"""
cjbdash - Report Tests
======================
Tests: executive summary numbers and text, DOCX report files
"""

import tempfile
from datetime import datetime

import pytest

from cjbdash.report import (
    ReportConfig,
    executive_summary,
    format_summary_text,
    generate_docx_report,
    generate_incident_docx,
)

NOW = datetime(2025, 7, 3, 8, 0)


class TestExecutiveSummary:

    def test_numbers(self, scenario):
        s = executive_summary(scenario, date_from=datetime(2025, 7, 1), generated_at=NOW)
        assert s["kpis"]["total"] == 3
        assert s["kpis"]["undocumented"] == 3
        assert s["top_types"] == [("Migración", 2), ("DIGESETT", 1)]
        assert s["top_quadrants"] == [("B1", 2), ("B2", 1)]
        assert s["period"] == (datetime(2025, 7, 1), None)

    def test_top_n(self, sample):
        s = executive_summary(sample, top_n=2, generated_at=NOW)
        assert len(s["top_types"]) == 2

    def test_text(self, scenario):
        text = format_summary_text(executive_summary(scenario, generated_at=NOW))
        assert "Fecha: 03/07/2025" in text
        assert "Periodo: N/A - N/A" in text
        assert "  - Total Incidentes: 3" in text
        assert "  - Indocumentados Detenidos: 3" in text
        assert "  - B1: 2" in text


class TestDocx:

    def _text(self, path):
        from docx import Document
        doc = Document(path)
        parts = [p.text for p in doc.paragraphs]
        for t in doc.tables:
            for row in t.rows:
                parts.extend(c.text for c in row.cells)
        return "\n".join(parts)

    def test_report_without_charts(self, tmp_path, scenario):
        path = generate_docx_report(scenario, str(tmp_path / "r.docx"),
                                    config=ReportConfig(source="/datos/incidentes.xlsx"),
                                    include_charts=False)
        text = self._text(path)
        assert "Métricas Principales" in text
        assert "incidentes.xlsx" in text
        assert "Oficial Pérez" in text
        assert "Visualizaciones" not in text

    def test_report_with_charts(self, tmp_path, sample):
        path = generate_docx_report(sample, str(tmp_path / "charts" / "r.docx"),
                                    config=ReportConfig(max_rows_preview=5))
        text = self._text(path)
        assert "Visualizaciones" in text
        assert "45 registros adicionales no mostrados" in text

    def test_chart_images_are_cleaned_up(self, tmp_path, scenario, monkeypatch):
        scratch = tmp_path / "scratch"
        scratch.mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(scratch))
        generate_docx_report(scenario, str(tmp_path / "r.docx"))
        assert list(scratch.iterdir()) == []

    def test_empty_set_is_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            generate_docx_report([], str(tmp_path / "r.docx"))

    def test_single_incident(self, tmp_path, make):
        inc = make(3, narrative="", evidence="https://example.org/foto.jpg", migration_incident="Indocumentados")
        path = generate_incident_docx(inc, str(tmp_path / "inc.docx"))
        text = self._text(path)
        assert "No. 3" in text
        assert "Sin narrativa" in text
        assert "Indocumentados" in text
        assert "https://example.org/foto.jpg" in text
