"""Constraint log exports to CSV, Excel and PDF."""

from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .config import EXPORT_FORMATS
from .utils import clean_text, format_display_date, safe_file_name

COLUMNS = (
    ("no", "No."),
    ("category", "Category"),
    ("description", "Description"),
    ("assigned", "Assigned"),
    ("reference", "Reference"),
    ("completionStatus", "Status"),
    ("dateIdentified", "Date Identified"),
    ("dueDate", "Due Date"),
    ("daysElapsed", "Days Elapsed"),
)
FILE_EXTENSIONS = {"pdf": ".pdf", "excel": ".xlsx", "csv": ".csv"}
HEADER_COLOR = "1E3A5F"
PDF_DESCRIPTION_CHARS = 80


class ExportError(Exception):
    """Any failure while writing an export file."""


def _row(constraint: dict[str, Any]) -> list[Any]:
    row: list[Any] = []
    for key, _ in COLUMNS:
        value = constraint.get(key)
        if key in ("dateIdentified", "dueDate"):
            row.append(format_display_date(value))
        elif key == "daysElapsed":
            row.append(value if isinstance(value, int) else clean_text(value))
        else:
            row.append(clean_text(value))
    return row


def export_to_csv(constraints: list[dict[str, Any]], project_name: str, path: Path) -> Path:
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow([f"Constraints Log - {project_name}"])
        writer.writerow([])
        writer.writerow([label for _, label in COLUMNS])
        for constraint in constraints:
            writer.writerow(_row(constraint))
    return path


def export_to_excel(
    constraints: list[dict[str, Any]],
    stats: dict[str, Any],
    project_name: str,
    path: Path,
) -> Path:
    wb = Workbook()

    header_font = Font(bold=True, color="FFFFFF", size=11)
    header_fill = PatternFill(start_color=HEADER_COLOR, end_color=HEADER_COLOR, fill_type="solid")
    thin_border = Border(
        left=Side(style="thin"), right=Side(style="thin"),
        top=Side(style="thin"), bottom=Side(style="thin"),
    )

    ws = wb.active
    ws.title = "Constraints"
    ws.append([label for _, label in COLUMNS])
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = thin_border
    for constraint in constraints:
        ws.append(_row(constraint))
    for row in ws.iter_rows(min_row=2, max_row=ws.max_row):
        for cell in row:
            cell.border = thin_border
            cell.alignment = Alignment(vertical="top", wrap_text=True)
    widths = {"A": 10, "B": 24, "C": 60, "D": 20, "E": 16, "F": 14, "G": 16, "H": 16, "I": 12}
    for column, width in widths.items():
        ws.column_dimensions[column].width = width
    ws.freeze_panes = "A2"

    summary = wb.create_sheet("Summary")
    summary.append(["Constraints Log", project_name])
    summary.append(["Generated", datetime.now().strftime("%Y-%m-%d %H:%M")])
    summary.append([])
    for key in ("total", "open", "closed", "overdue"):
        summary.append([key.title(), int(stats.get(key, 0))])
    summary.append([])
    summary.append(["Category", "Count"])
    for category, count in sorted((stats.get("by_category") or {}).items()):
        summary.append([category, count])
    summary.append([])
    summary.append(["Status", "Count"])
    for status, count in sorted((stats.get("by_status") or {}).items()):
        summary.append([status, count])
    summary["A1"].font = Font(bold=True, size=13)
    summary.column_dimensions["A"].width = 28
    summary.column_dimensions["B"].width = 24

    wb.save(str(path))
    return path


def export_to_pdf(
    constraints: list[dict[str, Any]],
    stats: dict[str, Any],
    project_name: str,
    path: Path,
) -> Path:
    styles = getSampleStyleSheet()
    cell_style = styles["BodyText"]
    cell_style.fontSize = 7
    cell_style.leading = 9

    doc = SimpleDocTemplate(
        str(path),
        pagesize=landscape(LETTER),
        leftMargin=0.5 * inch,
        rightMargin=0.5 * inch,
        topMargin=0.5 * inch,
        bottomMargin=0.5 * inch,
        title=f"Constraints Log - {project_name}",
    )
    story: list[Any] = [
        Paragraph(f"Constraints Log - {project_name}", styles["Title"]),
        Paragraph(
            f"Total {int(stats.get('total', 0))} · Open {int(stats.get('open', 0))} · "
            f"Closed {int(stats.get('closed', 0))} · Overdue {int(stats.get('overdue', 0))}",
            styles["Normal"],
        ),
        Spacer(1, 0.2 * inch),
    ]

    rows: list[list[Any]] = [[label for _, label in COLUMNS]]
    for constraint in constraints:
        row = _row(constraint)
        description = str(row[2])
        if len(description) > PDF_DESCRIPTION_CHARS:
            description = description[:PDF_DESCRIPTION_CHARS] + "..."
        row[2] = Paragraph(description, cell_style)
        rows.append(row)

    table = Table(
        rows,
        repeatRows=1,
        colWidths=[0.6 * inch, 1.3 * inch, 3.2 * inch, 1.1 * inch, 0.9 * inch, 0.8 * inch, 0.9 * inch, 0.9 * inch, 0.6 * inch],
    )
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(f"#{HEADER_COLOR}")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 7),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#F3F4F6")]),
    ]))
    story.append(table)
    doc.build(story)
    return path


def export_constraints(
    constraints: Iterable[dict[str, Any]],
    stats: dict[str, Any],
    fmt: str,
    *,
    file_name: str,
    output_dir: Path,
    project_name: str = "All Projects",
) -> Path:
    """Write an export and return its path. Every failure raises ``ExportError``."""
    fmt = clean_text(fmt).lower()
    if fmt not in EXPORT_FORMATS:
        raise ExportError(f"Unsupported export format '{fmt}'. Valid formats: {', '.join(EXPORT_FORMATS)}")

    items = list(constraints)
    name = safe_file_name(file_name, default="constraints")
    extension = FILE_EXTENSIONS[fmt]
    if not name.lower().endswith(extension):
        name += extension

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / name
        if fmt == "csv":
            return export_to_csv(items, project_name, path)
        if fmt == "excel":
            return export_to_excel(items, stats, project_name, path)
        return export_to_pdf(items, stats, project_name, path)
    except ExportError:
        raise
    except Exception as exc:
        raise ExportError(str(exc)) from exc


def export_notice(fmt: str, error: Exception | None = None) -> dict[str, str]:
    """User-facing notification for an export attempt."""
    if error is not None:
        return {
            "title": "Export Failed",
            "description": "There was an error exporting the data",
            "variant": "destructive",
        }
    return {
        "title": "Export Started",
        "description": f"Constraints data exported to {clean_text(fmt).upper()}",
        "variant": "default",
    }
