"""Constraint log views: filter pipeline, statistics, grouping and timeline.

Everything here is a pure function over constraint dicts, so the server, the
CLI and the exporters all derive the same displayed list from the same
filter state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable

from . import gantt
from .utils import (
    clean_text,
    count_by,
    matches_search,
    parse_date,
    sorted_unique,
)

CLOSED_STATUS = "Closed"
CONSTRAINT_STATUSES = ("Identified", "Pending", "In Progress", "Closed")
CONSTRAINT_TABS = ("open", "closed")
TIMELINE_VIEW_MODES = ("week", "month", "quarter")
ALL = "all"
NAME_PREVIEW_CHARS = 50


@dataclass
class ConstraintFilters:
    """Filter state of the constraint log. ``"all"`` disables a selector."""

    search: str = ""
    status: str = ALL
    category: str = ALL
    assigned: str = ALL
    date_start: date | None = None
    date_end: date | None = None

    @classmethod
    def from_mapping(cls, raw: dict[str, Any] | None) -> "ConstraintFilters":
        raw = raw or {}
        return cls(
            search=clean_text(raw.get("search")),
            status=clean_text(raw.get("status")) or ALL,
            category=clean_text(raw.get("category")) or ALL,
            assigned=clean_text(raw.get("assigned")) or ALL,
            date_start=parse_date(raw.get("date_start") or raw.get("start")),
            date_end=parse_date(raw.get("date_end") or raw.get("end")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "search": self.search,
            "status": self.status,
            "category": self.category,
            "assigned": self.assigned,
            "date_start": self.date_start.isoformat() if self.date_start else None,
            "date_end": self.date_end.isoformat() if self.date_end else None,
        }


def is_closed(constraint: dict[str, Any]) -> bool:
    return clean_text(constraint.get("completionStatus")) == CLOSED_STATUS


def is_overdue(constraint: dict[str, Any], today: date) -> bool:
    if is_closed(constraint):
        return False
    due = parse_date(constraint.get("dueDate"))
    if due is None:
        return False
    return due < today


def days_elapsed(date_identified: Any, today: date) -> int:
    identified = parse_date(date_identified)
    if identified is None:
        return 0
    return (today - identified).days


def strip_category_prefix(category: str) -> str:
    """Drop a leading ``"3. "`` style numbering from a category label."""
    return re.sub(r"^\d+\.\s*", "", clean_text(category))


def flatten_projects(projects: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    constraints: list[dict[str, Any]] = []
    for project in projects:
        if not isinstance(project, dict):
            continue
        items = project.get("constraints")
        if not isinstance(items, list):
            continue
        constraints.extend(item for item in items if isinstance(item, dict))
    return constraints


# ── Filter pipeline ───────────────────────────────────────────────────────────

def filter_constraints(
    constraints: Iterable[dict[str, Any]],
    filters: ConstraintFilters | None = None,
    tab: str = "open",
) -> list[dict[str, Any]]:
    """Apply tab, search, status, category, assignee and date range in order."""
    filters = filters or ConstraintFilters()
    filtered = list(constraints)

    if clean_text(tab).lower() == "open":
        filtered = [c for c in filtered if not is_closed(c)]
    else:
        filtered = [c for c in filtered if is_closed(c)]

    if filters.search:
        filtered = [
            c for c in filtered
            if matches_search(
                filters.search,
                c.get("description"),
                c.get("category"),
                c.get("assigned"),
                c.get("reference"),
                c.get("no"),
            )
        ]

    if filters.status != ALL:
        filtered = [c for c in filtered if clean_text(c.get("completionStatus")) == filters.status]

    if filters.category != ALL:
        filtered = [c for c in filtered if clean_text(c.get("category")) == filters.category]

    if filters.assigned != ALL:
        filtered = [c for c in filtered if clean_text(c.get("assigned")) == filters.assigned]

    if filters.date_start or filters.date_end:
        filtered = [c for c in filtered if _in_date_range(c, filters.date_start, filters.date_end)]

    return filtered


def _in_date_range(constraint: dict[str, Any], start: date | None, end: date | None) -> bool:
    identified = parse_date(constraint.get("dateIdentified"))
    if identified is None:
        return False
    if start and identified < start:
        return False
    if end and identified > end:
        return False
    return True


# ── Aggregation ───────────────────────────────────────────────────────────────

def constraint_stats(constraints: Iterable[dict[str, Any]], today: date) -> dict[str, Any]:
    items = list(constraints)
    closed = sum(1 for c in items if is_closed(c))
    return {
        "total": len(items),
        "open": len(items) - closed,
        "closed": closed,
        "overdue": sum(1 for c in items if is_overdue(c, today)),
        "by_category": count_by(items, "category"),
        "by_status": count_by(items, "completionStatus"),
    }


def unique_categories(constraints: Iterable[dict[str, Any]]) -> list[str]:
    return sorted_unique(c.get("category") for c in constraints)


def unique_assignees(constraints: Iterable[dict[str, Any]]) -> list[str]:
    return sorted_unique(c.get("assigned") for c in constraints)


def group_by_category(
    constraints: Iterable[dict[str, Any]],
    enabled: bool = True,
) -> dict[str, list[dict[str, Any]]]:
    items = list(constraints)
    if not enabled:
        return {"All": items}
    groups: dict[str, list[dict[str, Any]]] = {}
    for constraint in items:
        groups.setdefault(clean_text(constraint.get("category")), []).append(constraint)
    return groups


# ── Timeline ──────────────────────────────────────────────────────────────────

def _timeline_name(constraint: dict[str, Any]) -> str:
    description = clean_text(constraint.get("description"))
    preview = description[:NAME_PREVIEW_CHARS]
    if len(description) > NAME_PREVIEW_CHARS:
        preview += "..."
    return f"{clean_text(constraint.get('no'))} - {preview}"


def _timeline_item(constraint: dict[str, Any], today: date) -> dict[str, Any] | None:
    start = parse_date(constraint.get("dateIdentified"))
    end = parse_date(constraint.get("dueDate"))
    if start is None or end is None:
        return None

    total_days = (end - start).days
    elapsed = min((today - start).days, total_days)
    progress = max(0.0, min(100.0, elapsed / total_days * 100)) if total_days > 0 else 0.0
    closed = is_closed(constraint)

    return {
        "id": clean_text(constraint.get("id")),
        "name": _timeline_name(constraint),
        "category": clean_text(constraint.get("category")),
        "start_date": start,
        "end_date": end,
        "status": clean_text(constraint.get("completionStatus")),
        "assigned": clean_text(constraint.get("assigned")),
        "is_overdue": not closed and end < today,
        "progress": 100.0 if closed else round(progress, 2),
    }


def _timeline_window(items: list[dict[str, Any]], today: date) -> gantt.DateWindow:
    if not items:
        return gantt.DateWindow(
            gantt.start_of_week(today),
            gantt.end_of_week(today + timedelta(days=30)),
        )
    min_start = min(item["start_date"] for item in items)
    max_end = max(item["end_date"] for item in items)
    return gantt.DateWindow(
        gantt.start_of_week(min_start - timedelta(days=7)),
        gantt.end_of_week(max_end + timedelta(days=7)),
    )


def _timeline_periods(window: gantt.DateWindow, view_mode: str) -> list[date]:
    days = [window.start + timedelta(days=i) for i in range(window.total_days + 1)]
    if view_mode == "week":
        return [day for index, day in enumerate(days) if index % 7 == 0]
    if view_mode == "quarter":
        return [day for day in days if day.day == 1 and (day.month - 1) % 3 == 0]
    return [day for day in days if day.day == 1]


def constraint_gantt(
    constraints: Iterable[dict[str, Any]],
    *,
    today: date,
    view_mode: str = "month",
    category: str = ALL,
    status: str = ALL,
) -> dict[str, Any]:
    """Timeline bars for constraints that carry both an identified and a due date."""
    mode = gantt.normalize_view_mode(view_mode, TIMELINE_VIEW_MODES)
    items = [item for item in (_timeline_item(c, today) for c in constraints) if item]
    items.sort(key=lambda item: item["start_date"])

    categories = sorted_unique(item["category"] for item in items)
    statuses = sorted_unique(item["status"] for item in items)

    category = clean_text(category) or ALL
    status = clean_text(status) or ALL
    visible = [
        item for item in items
        if (category == ALL or item["category"] == category)
        and (status == ALL or item["status"] == status)
    ]

    window = _timeline_window(visible, today)
    bars = []
    for item in visible:
        bar = dict(item)
        bar.update(gantt.bar_geometry(item["start_date"], item["end_date"], window))
        bar["start_date"] = item["start_date"].isoformat()
        bar["end_date"] = item["end_date"].isoformat()
        bars.append(bar)

    return {
        "view_mode": mode,
        "window": window.to_dict(),
        "periods": [p.isoformat() for p in _timeline_periods(window, mode)],
        "today_position": round(gantt.calculate_position(today, window), 4),
        "categories": categories,
        "statuses": statuses,
        "items": bars,
        "count": len(bars),
    }
