"""Tests for field report transforms, filters and metrics."""

from __future__ import annotations

from datetime import date

import pytest

from siteboard.config import (
    BUNDLED_DATA_DIR,
    DAILY_LOGS_FILE,
    QUALITY_CONTROL_FILE,
    SAFETY_FILE,
)
from siteboard.field_reports import (
    FieldFilters,
    build_field_data,
    business_days,
    compliance_score,
    cost_per_hour,
    count_at_risk,
    count_defects,
    efficiency,
    extract_issues,
    field_metrics,
    filter_field_data,
    filter_options,
    infer_trade,
    log_status,
)
from siteboard.utils import load_json

TODAY = date(2026, 10, 19)


@pytest.fixture
def field_data() -> dict:
    return build_field_data(
        load_json(BUNDLED_DATA_DIR / DAILY_LOGS_FILE, default=[]),
        load_json(BUNDLED_DATA_DIR / QUALITY_CONTROL_FILE, default=[]),
        load_json(BUNDLED_DATA_DIR / SAFETY_FILE, default=[]),
        TODAY,
    )


def _counts(data: dict) -> dict:
    return {key: len(records) for key, records in data.items()}


class TestRecordHelpers:
    def test_log_status(self):
        assert log_status("2026-10-19", TODAY) == "submitted"
        assert log_status("2026-10-18", TODAY) == "pending"
        assert log_status("2026-10-17", TODAY) == "overdue"
        assert log_status(None, TODAY) == "overdue"

    def test_quality_checklist(self):
        checklist = [
            {"question": "Pressure test documented", "response": "No"},
            {"question": "Supports", "response": "Yes"},
            "noise",
        ]
        assert count_defects(checklist) == 1
        assert extract_issues(checklist) == ["Pressure test documented"]
        assert count_defects(None) == 0

    def test_safety_responses(self):
        responses = [
            {"response": "Safe"},
            {"response": "At Risk"},
            {"response": "Safe"},
            {"response": "At Risk"},
        ]
        assert count_at_risk(responses) == 2
        assert compliance_score(responses) == 50
        assert compliance_score([]) == 100

    def test_infer_trade(self):
        assert infer_trade("Sunstate Electric") == "Electrical"
        assert infer_trade("Atlantic Concrete Structures") == "Concrete"
        assert infer_trade("Coastal Roofing") == "Roofing"
        assert infer_trade("Acme Builders") == "General"
        assert infer_trade(None) == "General"

    def test_efficiency(self):
        assert efficiency({"workers": 10, "total_hours": 60}) == 75
        assert efficiency({"workers": 6, "total_hours": 40}) == 83
        assert efficiency({"workers": 1, "total_hours": 12}) == 100
        assert efficiency({}) == 75

    def test_cost_per_hour(self):
        assert cost_per_hour("Sunstate Electric") == 85
        assert cost_per_hour("Acme Builders") == 60


class TestTransforms:
    def test_record_families(self, field_data):
        assert _counts(field_data) == {"daily_logs": 4, "quality_control": 3, "safety": 2, "manpower": 9}

    def test_log_statuses(self, field_data):
        assert [log["status"] for log in field_data["daily_logs"]] == ["overdue", "overdue", "overdue", "submitted"]

    def test_quality_status_and_defects(self, field_data):
        by_id = {q["id"]: q for q in field_data["quality_control"]}
        assert by_id["qc-QC-1001"]["status"] == "pass"
        assert by_id["qc-QC-1002"]["status"] == "pending"
        assert by_id["qc-QC-1002"]["defects"] == 2

    def test_safety_status(self, field_data):
        by_id = {s["id"]: s for s in field_data["safety"]}
        assert by_id["safety-SA-501"]["status"] == "pass"
        assert by_id["safety-SA-601"]["status"] == "fail"
        assert by_id["safety-SA-601"]["violations"] == 2

    def test_manpower_flattened_from_logs(self, field_data):
        first = field_data["manpower"][0]
        assert first["contractor"] == "Atlantic Concrete Structures"
        assert first["trade"] == "Concrete"
        assert first["project_id"] == "2525801"


class TestFilters:
    def test_no_filters_is_identity(self, field_data):
        assert filter_field_data(field_data, FieldFilters()) == field_data

    def test_project(self, field_data):
        filtered = filter_field_data(field_data, FieldFilters(project="2525801"))
        assert _counts(filtered) == {"daily_logs": 2, "quality_control": 2, "safety": 1, "manpower": 5}

    def test_status_skips_manpower(self, field_data):
        filtered = filter_field_data(field_data, FieldFilters(status="pass"))
        assert _counts(filtered) == {"daily_logs": 0, "quality_control": 1, "safety": 1, "manpower": 9}

    def test_trade_skips_daily_logs(self, field_data):
        filtered = filter_field_data(field_data, FieldFilters(trade="Concrete"))
        assert _counts(filtered) == {"daily_logs": 4, "quality_control": 2, "safety": 1, "manpower": 4}

    def test_contractor_only_affects_manpower(self, field_data):
        filtered = filter_field_data(field_data, FieldFilters(contractor="Gulf Rebar Supply"))
        assert _counts(filtered)["manpower"] == 1
        assert _counts(filtered)["daily_logs"] == 4

    def test_date_range_inclusive(self, field_data):
        filters = FieldFilters(date_from=date(2026, 10, 15), date_to=date(2026, 10, 16))
        filtered = filter_field_data(field_data, filters)
        assert _counts(filtered) == {"daily_logs": 2, "quality_control": 2, "safety": 1, "manpower": 4}

    def test_half_open_range_is_ignored(self, field_data):
        filtered = filter_field_data(field_data, FieldFilters(date_from=date(2026, 10, 19)))
        assert filtered == field_data

    def test_options(self, field_data):
        options = filter_options(field_data)
        assert options["projects"] == ["2525801", "2525802"]
        assert "Gulf Rebar Supply" in options["contractors"]
        assert "Concrete" in options["trades"]


def test_business_days_inclusive():
    assert business_days(date(2026, 10, 19), date(2026, 10, 25)) == 5
    assert business_days(date(2026, 10, 12), date(2026, 10, 19)) == 6
    assert business_days(date(2026, 10, 24), date(2026, 10, 25)) == 0


class TestMetrics:
    def test_missing_range_defaults_to_current_month(self, field_data):
        filters = FieldFilters().with_default_range(TODAY)
        assert (filters.date_from, filters.date_to) == (date(2026, 10, 1), date(2026, 10, 31))
        metrics = field_metrics(filter_field_data(field_data, filters), FieldFilters(), TODAY)
        assert metrics["business_days_in_range"] == 22
        assert metrics["business_days_to_date"] == 13
        assert metrics["total_workers"] > 0

    def test_explicit_bound_kept(self):
        filters = FieldFilters(date_from=date(2026, 9, 28)).with_default_range(TODAY)
        assert (filters.date_from, filters.date_to) == (date(2026, 9, 28), date(2026, 10, 31))

    def test_from_mapping_fills_range_when_today_given(self):
        assert FieldFilters.from_mapping({}).date_from is None
        filters = FieldFilters.from_mapping({"date_to": "2026-10-20"}, today=TODAY)
        assert (filters.date_from, filters.date_to) == (date(2026, 10, 1), date(2026, 10, 20))

    def test_rollup(self, field_data):
        filters = FieldFilters(date_from=date(2026, 10, 12), date_to=date(2026, 10, 23))
        metrics = field_metrics(filter_field_data(field_data, filters), filters, TODAY)
        assert metrics["expected_logs"] == 6
        assert metrics["completed_logs"] == 1
        assert metrics["log_compliance_rate"] == 16.67
        assert metrics["total_workers"] == 128
        assert metrics["safety_violations"] == 2
        assert metrics["safety_compliance_rate"] == 71.43
        assert metrics["quality_defects"] == 3
        assert metrics["quality_pass_rate"] == 33.33
        assert metrics["business_days_in_range"] == 10

    def test_nothing_to_measure_defaults_to_full_rates(self):
        empty = {"daily_logs": [], "quality_control": [], "safety": [], "manpower": []}
        filters = FieldFilters(date_from=date(2026, 10, 24), date_to=date(2026, 10, 25))
        metrics = field_metrics(empty, filters, TODAY)
        assert metrics["log_compliance_rate"] == 100.0
        assert metrics["safety_compliance_rate"] == 100.0
        assert metrics["quality_pass_rate"] == 100.0
