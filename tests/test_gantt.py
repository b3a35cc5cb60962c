"""Tests for Gantt windows, periods and bar geometry."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from siteboard.gantt import (
    DateWindow,
    bar_geometry,
    calculate_position,
    calculate_width,
    end_of_week,
    normalize_view_mode,
    start_of_week,
    time_periods,
    view_window,
)

TODAY = date(2026, 10, 19)  # a Monday


def test_weeks_start_on_sunday():
    assert start_of_week(TODAY) == date(2026, 10, 18)
    assert end_of_week(TODAY) == date(2026, 10, 24)
    assert start_of_week(date(2026, 10, 18)) == date(2026, 10, 18)


@pytest.mark.parametrize(
    ("mode", "start", "end"),
    [
        ("week", date(2026, 9, 20), date(2026, 12, 19)),
        ("month", date(2026, 8, 1), date(2027, 8, 31)),
        ("quarter", date(2026, 4, 1), date(2028, 6, 30)),
        ("year", date(2025, 1, 1), date(2030, 12, 31)),
    ],
)
def test_view_window(mode: str, start: date, end: date):
    window = view_window(mode, TODAY)
    assert window.start == start
    assert window.end == end


def test_unknown_view_mode_falls_back_to_month():
    assert normalize_view_mode("fortnight") == "month"
    assert view_window("fortnight", TODAY) == view_window("month", TODAY)


def test_month_periods_cover_window():
    window = view_window("month", TODAY)
    periods = time_periods(window, "month")
    assert len(periods) == 13
    assert periods[0] == date(2026, 8, 1)
    assert periods[-1] == date(2027, 8, 1)


def test_week_periods_are_sundays():
    window = view_window("week", TODAY)
    periods = time_periods(window, "week")
    assert all(p.weekday() == 6 for p in periods)


class TestGeometry:
    window = DateWindow(date(2026, 1, 1), date(2026, 1, 11))

    def test_position_inside_window(self):
        assert calculate_position(date(2026, 1, 6), self.window) == 50.0

    def test_position_is_clamped(self):
        assert calculate_position(date(2025, 12, 1), self.window) == 0.0
        assert calculate_position(date(2026, 3, 1), self.window) == 100.0

    def test_width_never_below_one(self):
        assert calculate_width(date(2026, 1, 2), date(2026, 1, 2), self.window) == 1.0

    def test_zero_length_window(self):
        empty = DateWindow(date(2026, 1, 1), date(2026, 1, 1))
        assert calculate_position(date(2026, 1, 1), empty) == 0.0
        assert calculate_width(date(2026, 1, 1), date(2026, 2, 1), empty) == 1.0

    def test_bar_geometry_bounds(self):
        for offset in range(-20, 40, 3):
            start = date(2026, 1, 1) + timedelta(days=offset)
            geometry = bar_geometry(start, start + timedelta(days=4), self.window)
            assert 0.0 <= geometry["position"] <= 100.0
            assert geometry["width"] >= 1.0


def test_window_to_dict():
    window = DateWindow(date(2026, 1, 1), date(2026, 1, 31))
    assert window.to_dict() == {"start": "2026-01-01", "end": "2026-01-31", "total_days": 30}
