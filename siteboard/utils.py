"""
Siteboard shared utilities: JSON files, date parsing and text helpers.

These functions are shared between the view modules, the store and the server.
View modules import these instead of keeping private copies.
"""

from __future__ import annotations

import json
import re
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterable


# ── Text ──────────────────────────────────────────────────────────────────────

def clean_text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def matches_search(search: str, *fields: Any) -> bool:
    """Case-insensitive substring match of ``search`` against any field."""
    needle = clean_text(search).lower()
    if not needle:
        return True
    return any(needle in clean_text(field).lower() for field in fields)


def sorted_unique(values: Iterable[Any]) -> list[str]:
    """Sorted distinct non-empty strings."""
    return sorted({clean_text(v) for v in values if clean_text(v)})


def count_by(records: Iterable[dict[str, Any]], key: str) -> dict[str, int]:
    counts: dict[str, int] = {}
    for record in records:
        value = clean_text(record.get(key))
        counts[value] = counts.get(value, 0) + 1
    return counts


def safe_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


# ── Dates ─────────────────────────────────────────────────────────────────────

def parse_date(value: Any) -> date | None:
    """
    Parse a fixture date into a ``date``.

    Accepts ``date``/``datetime`` objects and ISO strings with or without a
    time part or trailing ``Z``. Returns None for blanks and garbage.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    v = value.strip()
    if not v:
        return None

    for candidate in (v, v.replace("Z", "+00:00")):
        try:
            return datetime.fromisoformat(candidate).date()
        except ValueError:
            continue
    try:
        return date.fromisoformat(v[:10])
    except ValueError:
        return None


def today_local() -> date:
    """Calendar date on the machine running the dashboard."""
    return date.today()


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def format_display_date(value: Any) -> str:
    """Render a date as ``Mar 04, 2025``; blank for missing dates."""
    parsed = parse_date(value)
    return parsed.strftime("%b %d, %Y") if parsed else ""


# ── File Helpers ──────────────────────────────────────────────────────────────

def load_json(path: Path, default: Any = None) -> Any:
    """Safely load a JSON file, returning default on failure."""
    if default is None:
        default = {}
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return default


def safe_file_name(text: str, default: str = "export") -> str:
    """Strip path separators and odd characters from a user supplied file name."""
    s = re.sub(r"[^A-Za-z0-9._-]+", "_", clean_text(text))
    s = s.strip("._")
    return s or default
