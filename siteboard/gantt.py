"""Gantt timeline math shared by the staffing and constraint timelines.

All geometry is expressed as percentages of a date window so that any
renderer (rich text bars, a browser chart) can lay bars out the same way.
Weeks start on Sunday.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

VIEW_MODES = ("week", "month", "quarter", "year")
DEFAULT_VIEW_MODE = "month"


@dataclass(frozen=True)
class DateWindow:
    start: date
    end: date

    @property
    def total_days(self) -> int:
        return (self.end - self.start).days

    def to_dict(self) -> dict[str, object]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "total_days": self.total_days,
        }


def normalize_view_mode(value: str | None, allowed: tuple[str, ...] = VIEW_MODES) -> str:
    mode = str(value or "").strip().lower()
    return mode if mode in allowed else DEFAULT_VIEW_MODE


# ── Period boundaries ─────────────────────────────────────────────────────────

def start_of_week(day: date) -> date:
    return day - timedelta(days=(day.weekday() + 1) % 7)


def end_of_week(day: date) -> date:
    return start_of_week(day) + timedelta(days=6)


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def end_of_month(day: date) -> date:
    return start_of_month(day) + relativedelta(months=1) - timedelta(days=1)


def start_of_quarter(day: date) -> date:
    return date(day.year, 3 * ((day.month - 1) // 3) + 1, 1)


def end_of_quarter(day: date) -> date:
    return start_of_quarter(day) + relativedelta(months=3) - timedelta(days=1)


def start_of_year(day: date) -> date:
    return date(day.year, 1, 1)


def end_of_year(day: date) -> date:
    return date(day.year, 12, 31)


_PERIOD_START = {
    "week": start_of_week,
    "month": start_of_month,
    "quarter": start_of_quarter,
    "year": start_of_year,
}

_PERIOD_STEP = {
    "week": relativedelta(weeks=1),
    "month": relativedelta(months=1),
    "quarter": relativedelta(months=3),
    "year": relativedelta(years=1),
}


# ── Windows and periods ───────────────────────────────────────────────────────

def view_window(view_mode: str, today: date) -> DateWindow:
    """Date window shown for a view mode, anchored on ``today``."""
    mode = normalize_view_mode(view_mode)
    if mode == "week":
        return DateWindow(
            start_of_week(today - relativedelta(weeks=4)),
            end_of_week(today + relativedelta(weeks=8)),
        )
    if mode == "quarter":
        return DateWindow(
            start_of_quarter(today - relativedelta(months=6)),
            end_of_quarter(today + relativedelta(months=18)),
        )
    if mode == "year":
        return DateWindow(
            start_of_year(today - relativedelta(years=1)),
            end_of_year(today + relativedelta(years=4)),
        )
    return DateWindow(
        start_of_month(today - relativedelta(months=2)),
        end_of_month(today + relativedelta(months=10)),
    )


def time_periods(window: DateWindow, view_mode: str) -> list[date]:
    """Header period starts covering ``window``."""
    mode = normalize_view_mode(view_mode)
    current = _PERIOD_START[mode](window.start)
    step = _PERIOD_STEP[mode]
    periods: list[date] = []
    while current <= window.end:
        periods.append(current)
        current = current + step
    return periods


# ── Bar geometry ──────────────────────────────────────────────────────────────

def calculate_position(day: date, window: DateWindow) -> float:
    """Left offset of ``day`` as a percentage of the window, clamped 0..100."""
    total = window.total_days
    if total <= 0:
        return 0.0
    since_start = (day - window.start).days
    return max(0.0, min(100.0, since_start / total * 100))


def calculate_width(start: date, end: date, window: DateWindow) -> float:
    """Bar width as a percentage of the window, never below 1."""
    total = window.total_days
    if total <= 0:
        return 1.0
    item_days = (end - start).days
    return max(1.0, item_days / total * 100)


def bar_geometry(start: date, end: date, window: DateWindow) -> dict[str, float]:
    return {
        "position": round(calculate_position(start, window), 4),
        "width": round(calculate_width(start, end, window), 4),
    }
