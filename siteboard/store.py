"""In-memory dashboard session store.

Fixtures are read once from the data directory; every edit afterwards lives
only in this object. ``refresh()`` throws edits away and re-reads the files,
the same way a browser reload resets the dashboard.
"""

from __future__ import annotations

import random
from datetime import date
from pathlib import Path
from typing import Any, Callable

from . import bidders as bidder_ops
from . import constraints as constraint_views
from .config import (
    BIDDER_TEMPLATES_FILE,
    CONSTRAINTS_FILE,
    DAILY_LOGS_FILE,
    QUALITY_CONTROL_FILE,
    SAFETY_FILE,
    STAFFING_FILE,
)
from .utils import clean_text, iso_now, load_json, safe_int, today_local

CONSTRAINT_FIELDS = (
    "description",
    "category",
    "assigned",
    "reference",
    "completionStatus",
    "dateIdentified",
    "dueDate",
)
BULK_ACTIONS = {
    "close": "Closed",
    "reopen": "Identified",
}


def _list(value: Any) -> list[dict[str, Any]]:
    return [item for item in value if isinstance(item, dict)] if isinstance(value, list) else []


class DashboardStore:
    """Session state for every dashboard view."""

    def __init__(
        self,
        data_dir: Path,
        *,
        today_fn: Callable[[], date] = today_local,
        rng: random.Random | None = None,
    ):
        self.data_dir = Path(data_dir)
        self.today_fn = today_fn
        self.rng = rng or random.Random()
        self.constraint_projects: list[dict[str, Any]] = []
        self.constraints: list[dict[str, Any]] = []
        self.staff_members: list[dict[str, Any]] = []
        self.projects: list[dict[str, Any]] = []
        self.bidder_templates: list[dict[str, Any]] = []
        self.raw_daily_logs: list[dict[str, Any]] = []
        self.raw_quality: list[dict[str, Any]] = []
        self.raw_safety: list[dict[str, Any]] = []
        self.last_updated = ""
        self._next_constraint_id = 1
        self.load()

    @property
    def today(self) -> date:
        return self.today_fn()

    # ── Loading ──────────────────────────────────────────────────

    def load(self):
        constraint_payload = load_json(self.data_dir / CONSTRAINTS_FILE, default=[])
        if isinstance(constraint_payload, dict):
            constraint_payload = constraint_payload.get("projects", [])
        self.constraint_projects = _list(constraint_payload)
        self.constraints = [dict(c) for c in constraint_views.flatten_projects(self.constraint_projects)]
        for constraint in self.constraints:
            constraint["id"] = clean_text(constraint.get("id"))
            if "daysElapsed" not in constraint:
                constraint["daysElapsed"] = constraint_views.days_elapsed(constraint.get("dateIdentified"), self.today)
        numeric_ids = [safe_int(c["id"], 0) for c in self.constraints]
        self._next_constraint_id = max(numeric_ids, default=0) + 1

        staffing = load_json(self.data_dir / STAFFING_FILE, default={})
        if not isinstance(staffing, dict):
            staffing = {}
        self.staff_members = _list(staffing.get("staffMembers", staffing.get("staff_members")))
        self.projects = _list(staffing.get("projects"))

        self.bidder_templates = _list(load_json(self.data_dir / BIDDER_TEMPLATES_FILE, default=[]))
        self.raw_daily_logs = _list(load_json(self.data_dir / DAILY_LOGS_FILE, default=[]))
        self.raw_quality = _list(load_json(self.data_dir / QUALITY_CONTROL_FILE, default=[]))
        self.raw_safety = _list(load_json(self.data_dir / SAFETY_FILE, default=[]))
        self.last_updated = iso_now()

    def refresh(self) -> dict[str, Any]:
        self.load()
        return self.status()

    def status(self) -> dict[str, Any]:
        return {
            "data_dir": str(self.data_dir),
            "last_updated": self.last_updated,
            "counts": {
                "constraints": len(self.constraints),
                "constraint_projects": len(self.constraint_projects),
                "staff_members": len(self.staff_members),
                "projects": len(self.projects),
                "bidder_templates": len(self.bidder_templates),
                "daily_logs": len(self.raw_daily_logs),
                "quality_inspections": len(self.raw_quality),
                "safety_inspections": len(self.raw_safety),
            },
        }

    # ── Constraints ──────────────────────────────────────────────

    def get_constraint(self, constraint_id: str) -> dict[str, Any]:
        for constraint in self.constraints:
            if constraint["id"] == clean_text(constraint_id):
                return constraint
        raise KeyError(constraint_id)

    def _constraint_fields(self, payload: dict[str, Any]) -> dict[str, Any]:
        fields = {key: clean_text(payload.get(key)) for key in CONSTRAINT_FIELDS}
        if not fields["description"]:
            raise ValueError("description is required.")
        if not fields["category"]:
            raise ValueError("category is required.")
        status = fields["completionStatus"] or "Identified"
        if status not in constraint_views.CONSTRAINT_STATUSES:
            valid = ", ".join(constraint_views.CONSTRAINT_STATUSES)
            raise ValueError(f"Invalid completionStatus '{status}'. Valid statuses: {valid}")
        fields["completionStatus"] = status
        fields["daysElapsed"] = constraint_views.days_elapsed(fields["dateIdentified"], self.today)
        return fields

    def create_constraint(self, payload: dict[str, Any]) -> dict[str, Any]:
        fields = self._constraint_fields(payload)
        constraint = {
            "id": str(self._next_constraint_id),
            "no": f"C-{len(self.constraints) + 1}",
            **fields,
        }
        self._next_constraint_id += 1
        self.constraints.append(constraint)
        return constraint

    def update_constraint(self, constraint_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        existing = self.get_constraint(constraint_id)
        merged = {key: payload.get(key, existing.get(key)) for key in CONSTRAINT_FIELDS}
        fields = self._constraint_fields(merged)
        updated = {"id": existing["id"], "no": existing.get("no", ""), **fields}
        index = self.constraints.index(existing)
        self.constraints[index] = updated
        return updated

    def delete_constraint(self, constraint_id: str) -> dict[str, Any]:
        existing = self.get_constraint(constraint_id)
        self.constraints = [c for c in self.constraints if c["id"] != existing["id"]]
        return existing

    def bulk_action(self, action: str, constraint_ids: list[str]) -> dict[str, Any]:
        action = clean_text(action).lower()
        if not action:
            raise ValueError("action is required.")
        ids = [clean_text(i) for i in constraint_ids if clean_text(i)]
        if not ids:
            raise ValueError("constraint_ids must not be empty.")
        for constraint_id in ids:
            self.get_constraint(constraint_id)

        if action == "delete":
            self.constraints = [c for c in self.constraints if c["id"] not in ids]
        elif action in BULK_ACTIONS:
            for constraint in self.constraints:
                if constraint["id"] in ids:
                    constraint["completionStatus"] = BULK_ACTIONS[action]
        return {
            "title": "Bulk Action",
            "description": f"{action} applied to {len(ids)} constraints",
            "affected": ids,
        }

    # ── Bidder templates ─────────────────────────────────────────

    def create_template(self, payload: dict[str, Any]) -> dict[str, Any]:
        template = bidder_ops.create_template(payload)
        self.bidder_templates.append(template)
        return template

    def update_template(self, template_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        existing = bidder_ops.find_template(self.bidder_templates, template_id)
        updated = bidder_ops.update_template(existing, changes)
        self.bidder_templates[self.bidder_templates.index(existing)] = updated
        return updated

    def duplicate_template(self, template_id: str) -> dict[str, Any]:
        existing = bidder_ops.find_template(self.bidder_templates, template_id)
        duplicate = bidder_ops.duplicate_template(existing)
        self.bidder_templates.append(duplicate)
        return duplicate

    def delete_template(self, template_id: str) -> dict[str, Any]:
        existing = bidder_ops.find_template(self.bidder_templates, template_id)
        self.bidder_templates = bidder_ops.delete_template(self.bidder_templates, template_id)
        return existing
