"""Field reports: daily logs, quality inspections, safety audits and manpower.

Raw fixture records are normalized into four record families, filtered with
one shared filter state and rolled up into the field metrics panel.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Any, Iterable

from .gantt import end_of_month, start_of_month
from .utils import clean_text, matches_search, parse_date, safe_int, sorted_unique

ALL = "all"
TRADE_KEYWORDS = (
    ("concrete", "Concrete"),
    ("electric", "Electrical"),
    ("plumb", "Plumbing"),
    ("steel", "Structural Steel"),
    ("roofing", "Roofing"),
    ("hvac", "HVAC"),
)
TRADE_COST_PER_HOUR = {
    "Electrical": 85,
    "Plumbing": 80,
    "HVAC": 75,
    "Structural Steel": 90,
    "Concrete": 70,
    "Roofing": 65,
    "General": 60,
}
DEFAULT_EFFICIENCY = 75
STANDARD_SHIFT_HOURS = 8


@dataclass
class FieldFilters:
    project: str = ALL
    status: str = ALL
    contractor: str = ALL
    trade: str = ALL
    search: str = ""
    date_from: date | None = None
    date_to: date | None = None

    @classmethod
    def from_mapping(cls, raw: dict[str, Any] | None, today: date | None = None) -> "FieldFilters":
        raw = raw or {}
        filters = cls(
            project=clean_text(raw.get("project")) or ALL,
            status=clean_text(raw.get("status")) or ALL,
            contractor=clean_text(raw.get("contractor")) or ALL,
            trade=clean_text(raw.get("trade")) or ALL,
            search=clean_text(raw.get("search")),
            date_from=parse_date(raw.get("date_from") or raw.get("from")),
            date_to=parse_date(raw.get("date_to") or raw.get("to")),
        )
        return filters.with_default_range(today) if today is not None else filters

    def with_default_range(self, today: date) -> "FieldFilters":
        """Fill a missing bound with the start or end of the current month."""
        return replace(
            self,
            date_from=self.date_from or start_of_month(today),
            date_to=self.date_to or end_of_month(today),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "project": self.project,
            "status": self.status,
            "contractor": self.contractor,
            "trade": self.trade,
            "search": self.search,
            "date_from": self.date_from.isoformat() if self.date_from else None,
            "date_to": self.date_to.isoformat() if self.date_to else None,
        }


# ── Record helpers ────────────────────────────────────────────────────────────

def log_status(log_date: Any, today: date) -> str:
    parsed = parse_date(log_date)
    if parsed is None:
        return "overdue"
    days = (today - parsed).days
    if days == 0:
        return "submitted"
    if days == 1:
        return "pending"
    return "overdue"


def _responses(items: Any) -> list[dict[str, Any]]:
    return [item for item in items if isinstance(item, dict)] if isinstance(items, list) else []


def count_defects(checklist: Any) -> int:
    return sum(1 for item in _responses(checklist) if item.get("response") == "No")


def extract_issues(checklist: Any) -> list[str]:
    return [clean_text(item.get("question")) for item in _responses(checklist) if item.get("response") == "No"]


def count_at_risk(responses: Any) -> int:
    return sum(1 for item in _responses(responses) if item.get("response") == "At Risk")


def compliance_score(responses: Any) -> int:
    items = _responses(responses)
    if not items:
        return 100
    safe = sum(1 for item in items if item.get("response") == "Safe")
    return round(safe / len(items) * 100)


def infer_trade(company: Any) -> str:
    lowered = clean_text(company).lower()
    if not lowered:
        return "General"
    for keyword, trade in TRADE_KEYWORDS:
        if keyword in lowered:
            return trade
    return "General"


def efficiency(entry: dict[str, Any]) -> int:
    total_hours = safe_int(entry.get("total_hours"))
    workers = safe_int(entry.get("workers"))
    if not total_hours or not workers:
        return DEFAULT_EFFICIENCY
    expected = workers * STANDARD_SHIFT_HOURS
    return min(100, round(total_hours / expected * 100))


def cost_per_hour(company: Any) -> int:
    return TRADE_COST_PER_HOUR.get(infer_trade(company), TRADE_COST_PER_HOUR["General"])


# ── Transforms ────────────────────────────────────────────────────────────────

def _project_id(raw: dict[str, Any]) -> str:
    value = raw.get("project_id")
    return clean_text(value) if value is not None else "unknown"


def transform_daily_logs(raw_logs: Iterable[Any], today: date) -> list[dict[str, Any]]:
    logs = []
    for raw in raw_logs:
        if not isinstance(raw, dict):
            continue
        manpower = raw.get("manpower_log") if isinstance(raw.get("manpower_log"), dict) else {}
        entries = manpower.get("entries") if isinstance(manpower.get("entries"), list) else []
        log_date = clean_text(raw.get("date"))
        logs.append({
            "id": f"log-{_project_id(raw)}-{log_date}",
            "project_id": _project_id(raw),
            "project_name": clean_text(raw.get("project_name")) or "Unknown Project",
            "date": log_date,
            "submitted_by": clean_text(raw.get("created_by")) or "System",
            "status": log_status(log_date, today),
            "total_workers": safe_int(manpower.get("total_workers")),
            "total_hours": safe_int(manpower.get("total_hours")),
            "weather": raw.get("weather_report"),
            "manpower_entries": [e for e in entries if isinstance(e, dict)],
            "activities": raw.get("activities") if isinstance(raw.get("activities"), list) else [],
            "comments": clean_text(raw.get("comments")),
        })
    return logs


def transform_quality(raw_inspections: Iterable[Any]) -> list[dict[str, Any]]:
    out = []
    for raw in raw_inspections:
        if not isinstance(raw, dict):
            continue
        checklist = _responses(raw.get("checklist"))
        out.append({
            "id": f"qc-{clean_text(raw.get('inspection_id'))}",
            "project_id": _project_id(raw),
            "project_name": clean_text(raw.get("project_name")) or "Unknown Project",
            "date": clean_text(raw.get("inspection_date")),
            "type": clean_text(raw.get("inspection_type")),
            "trade": clean_text(raw.get("trade")),
            "status": "pass" if clean_text(raw.get("status")).lower() == "closed" else "pending",
            "location": clean_text(raw.get("location")),
            "created_by": clean_text(raw.get("created_by")),
            "description": clean_text(raw.get("description")),
            "checklist": checklist,
            "defects": count_defects(checklist),
            "issues": extract_issues(checklist),
        })
    return out


def transform_safety(raw_audits: Iterable[Any]) -> list[dict[str, Any]]:
    out = []
    for raw in raw_audits:
        if not isinstance(raw, dict):
            continue
        responses = _responses(raw.get("responses"))
        if clean_text(raw.get("status")).lower() == "closed":
            status = "pass"
        elif count_at_risk(responses):
            status = "fail"
        else:
            status = "pass"
        at_risk = count_at_risk(responses)
        out.append({
            "id": f"safety-{clean_text(raw.get('inspection_id'))}",
            "project_id": _project_id(raw),
            "project_name": clean_text(raw.get("project_name")) or "Unknown Project",
            "date": clean_text(raw.get("inspection_date")),
            "type": clean_text(raw.get("inspection_type")),
            "trade": clean_text(raw.get("trade")),
            "status": status,
            "location": clean_text(raw.get("location")),
            "created_by": clean_text(raw.get("created_by")),
            "description": clean_text(raw.get("description")),
            "responses": responses,
            "violations": at_risk,
            "at_risk_items": at_risk,
            "compliance_score": compliance_score(responses),
        })
    return out


def manpower_records(daily_logs: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    records = []
    for log in daily_logs:
        for index, entry in enumerate(log.get("manpower_entries", [])):
            company = clean_text(entry.get("contact_company"))
            records.append({
                "id": f"manpower-{log['id']}-{index}",
                "project_id": log["project_id"],
                "project_name": log["project_name"],
                "date": log["date"],
                "contractor": company or "Unknown Contractor",
                "workers": safe_int(entry.get("workers")),
                "hours": safe_int(entry.get("hours")),
                "total_hours": safe_int(entry.get("total_hours")),
                "location": clean_text(entry.get("location")) or "Unknown Location",
                "comments": clean_text(entry.get("comments")),
                "trade": infer_trade(company),
                "efficiency": efficiency(entry),
                "cost_per_hour": cost_per_hour(company),
            })
    return records


def build_field_data(
    raw_logs: Iterable[Any],
    raw_quality: Iterable[Any],
    raw_safety: Iterable[Any],
    today: date,
) -> dict[str, list[dict[str, Any]]]:
    daily_logs = transform_daily_logs(raw_logs, today)
    return {
        "daily_logs": daily_logs,
        "quality_control": transform_quality(raw_quality),
        "safety": transform_safety(raw_safety),
        "manpower": manpower_records(daily_logs),
    }


# ── Filtering ─────────────────────────────────────────────────────────────────

def _in_range(record: dict[str, Any], start: date, end: date) -> bool:
    parsed = parse_date(record.get("date"))
    return parsed is not None and start <= parsed <= end


def filter_field_data(
    data: dict[str, list[dict[str, Any]]],
    filters: FieldFilters | None = None,
) -> dict[str, list[dict[str, Any]]]:
    filters = filters or FieldFilters()
    logs = list(data.get("daily_logs", []))
    quality = list(data.get("quality_control", []))
    safety = list(data.get("safety", []))
    manpower = list(data.get("manpower", []))

    if filters.project != ALL:
        logs = [r for r in logs if r["project_id"] == filters.project]
        quality = [r for r in quality if r["project_id"] == filters.project]
        safety = [r for r in safety if r["project_id"] == filters.project]
        manpower = [r for r in manpower if r["project_id"] == filters.project]

    # manpower has no status
    if filters.status != ALL:
        logs = [r for r in logs if r["status"] == filters.status]
        quality = [r for r in quality if r["status"] == filters.status]
        safety = [r for r in safety if r["status"] == filters.status]

    if filters.contractor != ALL:
        manpower = [r for r in manpower if r["contractor"] == filters.contractor]

    if filters.trade != ALL:
        quality = [r for r in quality if r["trade"] == filters.trade]
        safety = [r for r in safety if r["trade"] == filters.trade]
        manpower = [r for r in manpower if r["trade"] == filters.trade]

    if filters.search:
        logs = [r for r in logs if matches_search(filters.search, r["project_name"], r["submitted_by"], r["comments"])]
        quality = [r for r in quality if matches_search(filters.search, r["project_name"], r["description"], r["location"])]
        safety = [r for r in safety if matches_search(filters.search, r["project_name"], r["description"], r["location"])]
        manpower = [r for r in manpower if matches_search(filters.search, r["project_name"], r["contractor"], r["location"])]

    if filters.date_from and filters.date_to:
        logs = [r for r in logs if _in_range(r, filters.date_from, filters.date_to)]
        quality = [r for r in quality if _in_range(r, filters.date_from, filters.date_to)]
        safety = [r for r in safety if _in_range(r, filters.date_from, filters.date_to)]
        manpower = [r for r in manpower if _in_range(r, filters.date_from, filters.date_to)]

    return {
        "daily_logs": logs,
        "quality_control": quality,
        "safety": safety,
        "manpower": manpower,
    }


def filter_options(data: dict[str, list[dict[str, Any]]]) -> dict[str, list[str]]:
    every = [r for family in data.values() for r in family]
    return {
        "projects": sorted_unique(r.get("project_id") for r in every),
        "contractors": sorted_unique(r.get("contractor") for r in data.get("manpower", [])),
        "trades": sorted_unique(r.get("trade") for r in every if r.get("trade")),
    }


# ── Metrics ───────────────────────────────────────────────────────────────────

def business_days(start: date, end: date) -> int:
    """Weekdays from ``start`` to ``end`` inclusive."""
    count = 0
    current = start
    while current <= end:
        if current.weekday() < 5:
            count += 1
        current += timedelta(days=1)
    return count


def field_metrics(
    filtered: dict[str, list[dict[str, Any]]],
    filters: FieldFilters,
    today: date,
) -> dict[str, Any]:
    """Roll filtered field data up into the metrics panel.

    Missing range bounds fall back to the month containing ``today``.
    """
    filters = filters.with_default_range(today)

    days_in_range = business_days(filters.date_from, filters.date_to)
    days_to_date = business_days(filters.date_from, min(today, filters.date_to))

    logs = filtered.get("daily_logs", [])
    manpower = filtered.get("manpower", [])
    safety = filtered.get("safety", [])
    quality = filtered.get("quality_control", [])

    completed = sum(1 for log in logs if log["status"] == "submitted")
    expected = days_to_date
    log_rate = completed / expected * 100 if expected > 0 else 100.0

    total_workers = sum(r["workers"] for r in manpower)
    avg_efficiency = sum(r["efficiency"] for r in manpower) / len(manpower) if manpower else 0.0

    violations = sum(a["violations"] for a in safety)
    total_responses = sum(len(a["responses"]) for a in safety)
    safe_responses = sum(
        1 for a in safety for r in a["responses"] if r.get("response") == "Safe"
    )
    safety_rate = safe_responses / total_responses * 100 if total_responses > 0 else 100.0

    defects = sum(q["defects"] for q in quality)
    passed = sum(1 for q in quality if q["status"] == "pass")
    pass_rate = passed / len(quality) * 100 if quality else 100.0

    return {
        "total_logs": len(logs),
        "log_compliance_rate": round(log_rate, 2),
        "expected_logs": expected,
        "completed_logs": completed,
        "total_workers": total_workers,
        "average_efficiency": round(avg_efficiency, 2),
        "safety_violations": violations,
        "safety_compliance_rate": round(safety_rate, 2),
        "quality_defects": defects,
        "quality_pass_rate": round(pass_rate, 2),
        "total_inspections": len(quality),
        "at_risk_safety_items": sum(a["at_risk_items"] for a in safety),
        "business_days_in_range": days_in_range,
        "business_days_to_date": days_to_date,
    }
