"""Project staffing timeline: one Gantt bar per staff assignment."""

from __future__ import annotations

import random
import re
from datetime import date
from typing import Any, Iterable

from . import gantt
from .utils import clean_text, matches_search, parse_date, sorted_unique

SORT_FIELDS = ("name", "position", "startDate", "endDate", "allocation")
SORT_DIRECTIONS = ("asc", "desc")

BASE_POSITION_COLORS = {
    "Project Executive": "violet",
    "Project Manager": "blue",
    "Superintendent": "green",
    "Project Administrator": "cyan",
    "Project Accountant": "amber",
    "Project Engineer": "indigo",
    "Field Engineer": "emerald",
    "Safety Manager": "red",
    "Quality Manager": "purple",
    "Foreman": "orange",
    "Estimator": "pink",
    "Scheduler": "slate",
}
DEFAULT_POSITION_COLOR = "gray"

POSITION_ALIASES = {
    "Senior Project Manager": "Project Manager",
    "Assistant Project Manager": "Project Manager",
    "General Superintendent": "Superintendent",
    "Assistant Superintendent": "Superintendent",
    "General Foreman": "Foreman",
}

BASE_ALLOCATIONS = {
    "Project Executive": 25,
    "Project Manager": 100,
    "Superintendent": 100,
    "Project Administrator": 100,
    "Project Accountant": 50,
    "Project Engineer": 100,
    "Field Engineer": 100,
    "Safety Manager": 75,
    "Quality Manager": 50,
    "Foreman": 100,
    "Estimator": 25,
    "Scheduler": 50,
}
ALLOCATION_VARIATIONS = (-25, -20, -15, -10, -5, 0, 5, 10, 15, 20, 25)

_GRADE_SUFFIX = re.compile(r"\s+(I{1,3}|IV|V|VI{0,3}|\d+)$")


class StaffingError(Exception):
    """Raised when a staffing timeline cannot be built for the request."""


def parse_project_id(value: Any) -> int | None:
    """Positive integer project id from an int or numeric string, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        match = re.match(r"^\s*(\d+)", value)
        if not match:
            return None
        parsed = int(match.group(1))
        return parsed if parsed > 0 else None
    return None


def base_position_type(position: str) -> str:
    cleaned = _GRADE_SUFFIX.sub("", clean_text(position))
    return POSITION_ALIASES.get(cleaned, cleaned)


def position_color(position: str) -> str:
    return BASE_POSITION_COLORS.get(base_position_type(position), DEFAULT_POSITION_COLOR)


def generate_allocation(position: str, rng: random.Random | None = None) -> int:
    """Mock allocation percentage: role baseline plus a +/-25 jitter in steps of 5."""
    rng = rng or random.Random()
    base = BASE_ALLOCATIONS.get(base_position_type(position), 100)
    result = base + rng.choice(ALLOCATION_VARIATIONS)
    return max(5, min(100, int(round(result / 5)) * 5))


def toggle_sort(current_field: str, current_direction: str, field: str) -> tuple[str, str]:
    """Header click: same field flips direction, a new field sorts ascending."""
    if field == current_field:
        return field, "desc" if current_direction == "asc" else "asc"
    return field, "asc"


def _placeholder_project(project_id: int) -> dict[str, Any]:
    return {
        "project_id": project_id,
        "name": f"Project {project_id}",
        "project_stage_name": "Active",
        "contract_value": 0,
        "project_number": f"P{project_id}",
        "active": True,
    }


def _find_project(projects: Iterable[dict[str, Any]], project_id: int) -> dict[str, Any] | None:
    for project in projects:
        if isinstance(project, dict) and parse_project_id(project.get("project_id")) == project_id:
            return project
    return None


def _sort_key(field: str):
    if field == "position":
        return lambda item: item["position"].lower()
    if field == "startDate":
        return lambda item: item["start_date"]
    if field == "endDate":
        return lambda item: item["end_date"]
    if field == "allocation":
        return lambda item: item["allocation"]
    return lambda item: item["name"].lower()


def staffing_gantt(
    staff_members: Iterable[dict[str, Any]],
    projects: Iterable[dict[str, Any]],
    project_id: Any,
    *,
    today: date,
    search: str = "",
    position: str = "all",
    sort_field: str = "name",
    sort_direction: str = "asc",
    view_mode: str = "month",
    rng: random.Random | None = None,
) -> dict[str, Any]:
    """Build the staffing timeline for one project."""
    target = parse_project_id(project_id)
    if target is None:
        raise StaffingError(f"Invalid project id {project_id!r}")

    projects = [p for p in projects if isinstance(p, dict)]
    project = _find_project(projects, target) or _placeholder_project(target)
    rng = rng or random.Random()
    position = clean_text(position) or "all"
    if sort_field not in SORT_FIELDS:
        sort_field = "name"
    if sort_direction not in SORT_DIRECTIONS:
        sort_direction = "asc"

    items: list[dict[str, Any]] = []
    for staff_index, staff in enumerate(s for s in staff_members if isinstance(s, dict)):
        assignments = staff.get("assignments") if isinstance(staff.get("assignments"), list) else []
        for assignment_index, assignment in enumerate(assignments):
            if not isinstance(assignment, dict):
                continue
            if parse_project_id(assignment.get("project_id")) != target:
                continue
            start = parse_date(assignment.get("startDate"))
            end = parse_date(assignment.get("endDate"))
            if start is None or end is None:
                continue

            name = clean_text(staff.get("name"))
            staff_position = clean_text(staff.get("position"))
            if not matches_search(search, name, staff_position, project.get("name")):
                continue
            if position != "all" and staff_position != position:
                continue

            items.append({
                "id": f"{clean_text(staff.get('id'))}-{target}-{assignment_index}",
                "staff_id": clean_text(staff.get("id")),
                "name": name,
                "position": staff_position,
                "base_position": base_position_type(staff_position),
                "color": position_color(staff_position),
                "project_id": target,
                "project_name": clean_text(project.get("name")),
                "start_date": start,
                "end_date": end,
                "allocation": generate_allocation(staff_position, rng),
                "row": staff_index * 100 + assignment_index,
            })

    items.sort(key=_sort_key(sort_field), reverse=sort_direction == "desc")

    window = gantt.view_window(view_mode, today)
    mode = gantt.normalize_view_mode(view_mode)
    for item in items:
        # "position" is the staff role here, so bar offset goes under "left"
        geometry = gantt.bar_geometry(item["start_date"], item["end_date"], window)
        item["left"] = geometry["position"]
        item["width"] = geometry["width"]
        item["start_date"] = item["start_date"].isoformat()
        item["end_date"] = item["end_date"].isoformat()

    return {
        "project": project,
        "view_mode": mode,
        "sort": {"field": sort_field, "direction": sort_direction},
        "window": window.to_dict(),
        "periods": [p.isoformat() for p in gantt.time_periods(window, mode)],
        "today_position": round(gantt.calculate_position(today, window), 4),
        "positions": sorted_unique(item["position"] for item in items),
        "items": items,
        "count": len(items),
    }


def list_projects(projects: Iterable[dict[str, Any]], staff_members: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    """Projects with the number of staff assigned to each."""
    counts: dict[int, int] = {}
    for staff in staff_members:
        if not isinstance(staff, dict):
            continue
        seen: set[int] = set()
        for assignment in staff.get("assignments") or []:
            if not isinstance(assignment, dict):
                continue
            pid = parse_project_id(assignment.get("project_id"))
            if pid is not None and pid not in seen:
                seen.add(pid)
                counts[pid] = counts.get(pid, 0) + 1
    out = []
    for project in projects:
        if not isinstance(project, dict):
            continue
        pid = parse_project_id(project.get("project_id"))
        if pid is None:
            continue
        out.append({
            "project_id": pid,
            "name": clean_text(project.get("name")),
            "project_number": clean_text(project.get("project_number")),
            "stage": clean_text(project.get("project_stage_name")),
            "staff_count": counts.get(pid, 0),
        })
    out.sort(key=lambda p: p["project_id"])
    return out
