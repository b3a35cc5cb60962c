"""Tests for siteboard.utils: dates, text helpers, JSON loading."""

from datetime import date, datetime
from pathlib import Path

import siteboard.utils as utils
from siteboard.utils import (
    clean_text,
    count_by,
    format_display_date,
    load_json,
    matches_search,
    parse_date,
    safe_file_name,
    safe_int,
    sorted_unique,
    today_local,
)


# ── Text ──────────────────────────────────────────────────────────────────────

class TestMatchesSearch:
    def test_empty_search_matches_everything(self):
        assert matches_search("", "anything")
        assert matches_search("   ", None)

    def test_case_insensitive(self):
        assert matches_search("WINDOW", "Impact-rated window package")

    def test_any_field(self):
        assert matches_search("rfi", "Pool deck", "RFI-014")
        assert not matches_search("rfi", "Pool deck", None)


def test_clean_text_handles_none():
    assert clean_text(None) == ""
    assert clean_text("  x ") == "x"


def test_sorted_unique_drops_blanks():
    assert sorted_unique(["b", "", None, "a", "b", " "]) == ["a", "b"]


def test_count_by():
    records = [{"s": "Open"}, {"s": "Closed"}, {"s": "Open"}]
    assert count_by(records, "s") == {"Open": 2, "Closed": 1}


def test_safe_int():
    assert safe_int("7") == 7
    assert safe_int("x", default=3) == 3
    assert safe_int(None) == 0


# ── Dates ─────────────────────────────────────────────────────────────────────

class TestParseDate:
    def test_iso_date(self):
        assert parse_date("2026-10-19") == date(2026, 10, 19)

    def test_iso_datetime_with_z(self):
        assert parse_date("2026-10-19T08:00:00Z") == date(2026, 10, 19)

    def test_date_and_datetime_objects(self):
        assert parse_date(date(2026, 1, 2)) == date(2026, 1, 2)
        assert parse_date(datetime(2026, 1, 2, 15, 30)) == date(2026, 1, 2)

    def test_blank_and_garbage(self):
        assert parse_date("") is None
        assert parse_date(None) is None
        assert parse_date("garbage") is None
        assert parse_date(42) is None


def test_format_display_date():
    assert format_display_date("2025-03-04") == "Mar 04, 2025"
    assert format_display_date("") == ""


# ── File Helpers ──────────────────────────────────────────────────────────────

class TestLoadJson:
    def test_missing_file_returns_default(self, tmp_path: Path):
        assert load_json(tmp_path / "missing.json", default=[]) == []

    def test_malformed_file_returns_default(self, tmp_path: Path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_json(path) == {}


def test_safe_file_name_strips_paths():
    assert safe_file_name("../etc/passwd") == "etc_passwd"
    assert safe_file_name("", default="constraints") == "constraints"
    assert safe_file_name("Q3 report.xlsx") == "Q3_report.xlsx"


def test_today_follows_local_calendar(monkeypatch):
    class _LocalDate(date):
        @classmethod
        def today(cls):
            return cls(2026, 10, 19)

    monkeypatch.setattr(utils, "date", _LocalDate)
    assert today_local() == date(2026, 10, 19)
