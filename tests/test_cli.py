"""Tests for Siteboard CLI parser wiring and handlers."""

from __future__ import annotations

import csv
from datetime import date
from pathlib import Path

import pytest
from openpyxl import load_workbook

from siteboard.cli import build_parser, main


def test_serve_parser_defaults(monkeypatch):
    monkeypatch.delenv("SITEBOARD_PORT", raising=False)
    args = build_parser().parse_args(["serve"])
    assert args.mode == "serve"
    assert args.port == 3000
    assert args.host == "127.0.0.1"


def test_serve_port_from_environment(monkeypatch):
    monkeypatch.setenv("SITEBOARD_PORT", "8123")
    assert build_parser().parse_args(["serve"]).port == 8123


def test_constraints_parser_filters():
    args = build_parser().parse_args([
        "constraints",
        "--tab", "closed",
        "--category", "1. Design",
        "--start", "2026-08-01",
        "--today", "2026-10-19",
        "--group",
    ])
    assert args.tab == "closed"
    assert args.category == "1. Design"
    assert args.start == date(2026, 8, 1)
    assert args.today == date(2026, 10, 19)
    assert args.group is True


def test_bad_date_rejected():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["constraints", "--start", "next tuesday"])


def test_staffing_parser():
    args = build_parser().parse_args(["staffing", "2525801", "--sort", "allocation", "--direction", "desc", "--seed", "3"])
    assert args.project_id == "2525801"
    assert args.sort_field == "allocation"
    assert args.sort_direction == "desc"
    assert args.seed == 3


def test_export_parser_restricts_formats():
    assert build_parser().parse_args(["export", "--format", "excel"]).fmt == "excel"
    with pytest.raises(SystemExit):
        build_parser().parse_args(["export", "--format", "docx"])


def test_export_command_writes_file(tmp_path: Path):
    main(["export", "--format", "csv", "--tab", "closed", "--output-dir", str(tmp_path), "--today", "2026-10-19"])
    with (tmp_path / "constraints.csv").open(encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f))
    assert [row[0] for row in rows[3:]] == ["C-4", "C-6", "C-8"]


def test_export_summary_counts_whole_log(tmp_path: Path):
    main(["export", "--format", "excel", "--output-dir", str(tmp_path), "--today", "2026-10-19"])
    summary = load_workbook(tmp_path / "constraints.xlsx")["Summary"]
    totals = {row[0].value: row[1].value for row in summary.iter_rows(min_row=4, max_row=7)}
    assert totals["Total"] == 10
    assert totals["Closed"] == 3


def test_export_failure_exits_nonzero(tmp_path: Path):
    blocker = tmp_path / "exports"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        main(["export", "--output-dir", str(blocker)])
    assert exc.value.code == 1


def test_staffing_invalid_project_exits_nonzero():
    with pytest.raises(SystemExit) as exc:
        main(["staffing", "abc"])
    assert exc.value.code == 1


@pytest.mark.parametrize(
    "argv",
    [
        ["constraints", "--today", "2026-10-19", "--insights", "--group"],
        ["constraints", "--gantt", "--view-mode", "quarter"],
        ["staffing"],
        ["staffing", "2525802", "--seed", "1"],
        ["field-reports", "--from", "2026-10-12", "--to", "2026-10-23", "--insights"],
        ["field-reports", "--today", "2026-10-19", "--insights"],
        ["bidders", "--category", "Healthcare"],
        ["bidders", "--json"],
    ],
)
def test_views_render(argv, capsys):
    main(argv)
    assert capsys.readouterr().out.strip()
