"""Tests for constraint log exports."""

from __future__ import annotations

import csv
from pathlib import Path

import pytest
from openpyxl import load_workbook

from siteboard.exports import COLUMNS, ExportError, export_constraints, export_notice

CONSTRAINTS = [
    {
        "id": "1",
        "no": "C-1",
        "category": "1. Design",
        "description": "Structural drawings missing engineer of record stamp",
        "assigned": "Sarah Mitchell",
        "reference": "RFI-014",
        "completionStatus": "In Progress",
        "dateIdentified": "2026-08-04",
        "dueDate": "2026-09-15",
        "daysElapsed": 76,
    },
    {
        "id": "2",
        "no": "C-2",
        "category": "2. Procurement",
        "description": "Window package lead time extended",
        "assigned": "Mike Rodriguez",
        "reference": "",
        "completionStatus": "Pending",
        "dateIdentified": "2026-08-20",
        "dueDate": "",
        "daysElapsed": 60,
    },
]
STATS = {
    "total": 2,
    "open": 2,
    "closed": 0,
    "overdue": 1,
    "by_category": {"1. Design": 1, "2. Procurement": 1},
    "by_status": {"In Progress": 1, "Pending": 1},
}


def _export(tmp_path: Path, fmt: str, file_name: str = "constraints") -> Path:
    return export_constraints(
        CONSTRAINTS,
        STATS,
        fmt,
        file_name=file_name,
        output_dir=tmp_path / "exports",
        project_name="Palm Beach Luxury Estate",
    )


def test_csv_export(tmp_path: Path):
    path = _export(tmp_path, "csv")
    assert path.name == "constraints.csv"
    with path.open(encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["Constraints Log - Palm Beach Luxury Estate"]
    assert rows[2] == [label for _, label in COLUMNS]
    assert rows[3][0] == "C-1"
    assert rows[3][6] == "Aug 04, 2026"
    assert rows[4][7] == ""
    assert len(rows) == 5


def test_extension_not_doubled(tmp_path: Path):
    assert _export(tmp_path, "csv", file_name="log.csv").name == "log.csv"
    assert _export(tmp_path, "EXCEL", file_name="q3 log").name == "q3_log.xlsx"


def test_excel_export(tmp_path: Path):
    path = _export(tmp_path, "excel")
    wb = load_workbook(path)
    assert wb.sheetnames == ["Constraints", "Summary"]
    ws = wb["Constraints"]
    assert [cell.value for cell in ws[1]] == [label for _, label in COLUMNS]
    assert ws["A2"].value == "C-1"
    assert ws["I2"].value == 76
    assert ws.max_row == 3
    summary = wb["Summary"]
    assert summary["B1"].value == "Palm Beach Luxury Estate"
    labels = [row[0].value for row in summary.iter_rows(min_row=4, max_row=7)]
    assert labels == ["Total", "Open", "Closed", "Overdue"]


def test_pdf_export(tmp_path: Path):
    path = _export(tmp_path, "pdf")
    assert path.suffix == ".pdf"
    assert path.read_bytes().startswith(b"%PDF")


def test_unknown_format_raises(tmp_path: Path):
    with pytest.raises(ExportError):
        _export(tmp_path, "docx")
    assert not (tmp_path / "exports").exists()


def test_write_failure_wrapped(tmp_path: Path):
    blocker = tmp_path / "exports"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(ExportError):
        _export(tmp_path, "csv")


def test_export_notice():
    assert export_notice("pdf") == {
        "title": "Export Started",
        "description": "Constraints data exported to PDF",
        "variant": "default",
    }
    failed = export_notice("pdf", ExportError("disk full"))
    assert failed["title"] == "Export Failed"
    assert failed["description"] == "There was an error exporting the data"
    assert failed["variant"] == "destructive"
