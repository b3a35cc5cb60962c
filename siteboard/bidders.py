"""Bidder template list management for estimating."""

from __future__ import annotations

import copy
import uuid
from typing import Any, Iterable

from .utils import clean_text, iso_now, matches_search

CSI_DIVISIONS = (
    "01 - General Requirements",
    "02 - Existing Conditions",
    "03 - Concrete",
    "04 - Masonry",
    "05 - Metals",
    "06 - Wood, Plastics, and Composites",
    "07 - Thermal and Moisture Protection",
    "08 - Openings",
    "09 - Finishes",
    "10 - Specialties",
    "11 - Equipment",
    "12 - Furnishings",
    "13 - Special Construction",
    "14 - Conveying Equipment",
    "21 - Fire Suppression",
    "22 - Plumbing",
    "23 - HVAC",
    "25 - Integrated Automation",
    "26 - Electrical",
    "27 - Communications",
    "28 - Electronic Safety and Security",
    "31 - Earthwork",
    "32 - Exterior Improvements",
    "33 - Utilities",
    "34 - Transportation",
    "35 - Waterway and Marine Construction",
)

REGIONS = (
    "Southeast",
    "Mid-Atlantic",
    "Northeast",
    "Southwest",
    "Midwest",
    "West Coast",
    "Gulf Coast",
    "Rocky Mountain",
    "Pacific Northwest",
    "National",
)

TEMPLATE_CATEGORIES = (
    "Commercial Office",
    "Healthcare",
    "Education",
    "Hospitality",
    "Industrial",
    "Residential",
    "Infrastructure",
    "Government",
    "Retail",
    "Mixed-Use",
)

QUALIFICATION_LEVELS = ("A", "B", "C", "D")
EDITABLE_FIELDS = (
    "name",
    "description",
    "category",
    "scopes",
    "regions",
    "bidders",
    "defaultMessage",
    "isPublic",
    "tags",
)
DEFAULT_AUTHOR = "Current User"


def _new_id() -> str:
    return f"tpl-{uuid.uuid4().hex[:12]}"


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [clean_text(v) for v in value if clean_text(v)]


def _validate(template: dict[str, Any]):
    if not clean_text(template.get("name")):
        raise ValueError("Template name is required.")
    if not clean_text(template.get("category")):
        raise ValueError("Template category is required.")
    for bidder in template.get("bidders") or []:
        level = clean_text(bidder.get("qualificationLevel"))
        if level and level not in QUALIFICATION_LEVELS:
            valid = ", ".join(QUALIFICATION_LEVELS)
            raise ValueError(f"Invalid qualificationLevel '{level}'. Valid levels: {valid}")


def filter_templates(
    templates: Iterable[dict[str, Any]],
    search: str = "",
    category: str = "all",
) -> list[dict[str, Any]]:
    category = clean_text(category) or "all"
    return [
        t for t in templates
        if matches_search(search, t.get("name"), t.get("description"))
        and (category == "all" or clean_text(t.get("category")) == category)
    ]


def bidder_count(template: dict[str, Any]) -> int:
    bidders = template.get("bidders")
    return len(bidders) if isinstance(bidders, list) else 0


def toggle_item(values: list[str], item: str) -> list[str]:
    """Scope/region checkbox toggle; returns a new list."""
    return [v for v in values if v != item] if item in values else [*values, item]


def template_summary(template: dict[str, Any]) -> dict[str, Any]:
    bidders = template.get("bidders") if isinstance(template.get("bidders"), list) else []
    prequalified = sum(1 for b in bidders if isinstance(b, dict) and b.get("prequalified"))
    ratings = [float(b.get("rating", 0)) for b in bidders if isinstance(b, dict)]
    return {
        "id": template.get("id"),
        "name": template.get("name"),
        "category": template.get("category"),
        "bidder_count": len(bidders),
        "prequalified_count": prequalified,
        "average_rating": round(sum(ratings) / len(ratings), 2) if ratings else 0.0,
        "usage_count": template.get("usageCount", 0),
        "last_used": template.get("lastUsed", ""),
    }


def create_template(payload: dict[str, Any], *, created_by: str = DEFAULT_AUTHOR) -> dict[str, Any]:
    now = iso_now()
    template = {
        "id": _new_id(),
        "name": clean_text(payload.get("name")),
        "description": clean_text(payload.get("description")),
        "category": clean_text(payload.get("category")),
        "scopes": _str_list(payload.get("scopes")),
        "regions": _str_list(payload.get("regions")),
        "bidders": [b for b in payload.get("bidders") or [] if isinstance(b, dict)],
        "defaultMessage": clean_text(payload.get("defaultMessage")),
        "usageCount": 0,
        "lastUsed": now,
        "createdAt": now,
        "updatedAt": now,
        "isPublic": bool(payload.get("isPublic", False)),
        "createdBy": clean_text(payload.get("createdBy")) or created_by,
        "tags": _str_list(payload.get("tags")),
    }
    _validate(template)
    return template


def update_template(template: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """Apply editable fields from ``changes``; returns the updated copy."""
    updated = copy.deepcopy(template)
    for key in EDITABLE_FIELDS:
        if key not in changes:
            continue
        value = changes[key]
        if key in ("scopes", "regions", "tags"):
            updated[key] = _str_list(value)
        elif key == "bidders":
            updated[key] = [b for b in value or [] if isinstance(b, dict)]
        elif key == "isPublic":
            updated[key] = bool(value)
        else:
            updated[key] = clean_text(value)
    _validate(updated)
    updated["updatedAt"] = iso_now()
    return updated


def duplicate_template(template: dict[str, Any]) -> dict[str, Any]:
    now = iso_now()
    duplicate = copy.deepcopy(template)
    duplicate.update({
        "id": _new_id(),
        "name": f"{clean_text(template.get('name'))} (Copy)",
        "usageCount": 0,
        "createdAt": now,
        "updatedAt": now,
        "lastUsed": now,
    })
    return duplicate


def find_template(templates: Iterable[dict[str, Any]], template_id: str) -> dict[str, Any]:
    for template in templates:
        if clean_text(template.get("id")) == clean_text(template_id):
            return template
    raise KeyError(template_id)


def delete_template(templates: Iterable[dict[str, Any]], template_id: str) -> list[dict[str, Any]]:
    """Templates without ``template_id``; raises KeyError when it is absent."""
    items = list(templates)
    target = find_template(items, template_id)
    return [t for t in items if t is not target]
