"""
Siteboard configuration: fixture names, defaults and environment handling.
"""

from __future__ import annotations

import os
from pathlib import Path

# ── Fixture Files ─────────────────────────────────────────────────────────────

CONSTRAINTS_FILE = "constraints.json"
STAFFING_FILE = "staffing.json"
BIDDER_TEMPLATES_FILE = "bidder_templates.json"
DAILY_LOGS_FILE = "daily_logs.json"
QUALITY_CONTROL_FILE = "quality_control.json"
SAFETY_FILE = "safety.json"

# ── Server Defaults ───────────────────────────────────────────────────────────

DEFAULT_PORT = 3000
DEFAULT_HOST = "127.0.0.1"

# ── Exports ───────────────────────────────────────────────────────────────────

EXPORT_FORMATS = ("pdf", "excel", "csv")
DEFAULT_EXPORT_DIR = "exports"

# ── Paths ─────────────────────────────────────────────────────────────────────

BUNDLED_DATA_DIR = Path(__file__).resolve().parent / "data"


def get_data_path(override: str | Path | None = None) -> Path:
    """Resolve fixture directory from override or environment or bundled data."""
    if override:
        return Path(override)
    env = os.environ.get("SITEBOARD_DATA")
    if env:
        return Path(env)
    return BUNDLED_DATA_DIR


def get_export_dir(override: str | Path | None = None) -> Path:
    if override:
        return Path(override)
    env = os.environ.get("SITEBOARD_EXPORT_DIR")
    if env:
        return Path(env)
    return Path(DEFAULT_EXPORT_DIR)


def get_port(default: int = DEFAULT_PORT) -> int:
    raw = str(os.environ.get("SITEBOARD_PORT", "")).strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_dotenv(workspace: Path | None = None):
    """Load .env file from workspace or cwd."""
    candidates = []
    if workspace:
        candidates.append(workspace / ".env")
    candidates.append(Path(".env"))

    for env_path in candidates:
        if env_path.exists():
            with env_path.open() as f:
                for line in f:
                    line = line.strip()
                    if line and not line.startswith("#") and "=" in line:
                        k, v = line.split("=", 1)
                        os.environ.setdefault(k.strip(), v.strip())
            return
