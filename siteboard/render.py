"""rich renderables for the `siteboard` CLI views."""

from __future__ import annotations

import platform
from typing import Any

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from .constraints import CLOSED_STATUS
from .utils import format_display_date

CYAN = "cyan"
BRIGHT_CYAN = "bright_cyan"
DIM = "dim"
GREEN = "green"
YELLOW = "yellow"
RED = "red"

GANTT_COLUMNS = 48
BAR_CHAR = "█"
TRACK_CHAR = "·"
TODAY_CHAR = "│"

STATUS_STYLES = {
    "Identified": YELLOW,
    "Pending": BRIGHT_CYAN,
    "In Progress": CYAN,
    CLOSED_STATUS: GREEN,
}
IMPACT_STYLES = {"critical": RED, "high": YELLOW, "medium": CYAN, "low": GREEN}

console = Console(force_terminal=True if platform.system() == "Windows" else None)


def text_bar(left: float, width: float, columns: int = GANTT_COLUMNS, today: float | None = None) -> str:
    """Draw a Gantt bar from percentage geometry onto ``columns`` cells."""
    start = min(columns - 1, max(0, int(round(left / 100 * columns))))
    length = max(1, int(round(width / 100 * columns)))
    length = min(length, columns - start)
    cells = [TRACK_CHAR] * columns
    for index in range(start, start + length):
        cells[index] = BAR_CHAR
    if today is not None:
        marker = min(columns - 1, max(0, int(round(today / 100 * columns))))
        if cells[marker] == TRACK_CHAR:
            cells[marker] = TODAY_CHAR
    return "".join(cells)


def _status(value: str) -> str:
    style = STATUS_STYLES.get(value, DIM)
    return f"[{style}]{value}[/]"


# ── Constraints ─────────────────────────────────────────────────

def render_constraint_stats(stats: dict[str, Any], title: str = "CONSTRAINTS") -> Panel:
    lines = [
        f"  [{BRIGHT_CYAN}]Total[/]     {stats.get('total', 0)}",
        f"  [{BRIGHT_CYAN}]Open[/]      {stats.get('open', 0)}",
        f"  [{BRIGHT_CYAN}]Closed[/]    {stats.get('closed', 0)}",
        f"  [{BRIGHT_CYAN}]Overdue[/]   [{RED}]{stats.get('overdue', 0)}[/]",
    ]
    return Panel("\n".join(lines), border_style=CYAN, title=f"[bold {BRIGHT_CYAN}]{title}[/]")


def constraint_table(constraints: list[dict[str, Any]], title: str | None = None) -> Table:
    table = Table(title=title, border_style=CYAN, header_style=f"bold {BRIGHT_CYAN}", expand=True)
    table.add_column("No.", no_wrap=True)
    table.add_column("Category")
    table.add_column("Description", ratio=3)
    table.add_column("Assigned")
    table.add_column("Status", no_wrap=True)
    table.add_column("Identified", no_wrap=True)
    table.add_column("Due", no_wrap=True)
    table.add_column("Days", justify="right")
    for c in constraints:
        table.add_row(
            str(c.get("no", "")),
            str(c.get("category", "")),
            str(c.get("description", "")),
            str(c.get("assigned", "")),
            _status(str(c.get("completionStatus", ""))),
            format_display_date(c.get("dateIdentified")),
            format_display_date(c.get("dueDate")),
            str(c.get("daysElapsed", "")),
        )
    return table


def render_constraints(constraints: list[dict[str, Any]], groups: dict[str, list[dict[str, Any]]] | None = None):
    if not constraints:
        return Panel(f"[{DIM}]No constraints match the current filters.[/]", border_style=CYAN)
    if not groups:
        return constraint_table(constraints)
    return Group(*(
        constraint_table(items, title=f"{category or 'Uncategorized'} ({len(items)})")
        for category, items in groups.items()
    ))


def render_constraint_gantt(view: dict[str, Any]) -> Table:
    window = view["window"]
    table = Table(
        title=f"Constraint timeline  {window['start']} → {window['end']}  ({view['view_mode']})",
        border_style=CYAN,
        header_style=f"bold {BRIGHT_CYAN}",
    )
    table.add_column("Constraint", max_width=40)
    table.add_column("Status", no_wrap=True)
    table.add_column("Timeline", no_wrap=True)
    table.add_column("Progress", justify="right")
    for item in view["items"]:
        bar = text_bar(item["position"], item["width"], today=view["today_position"])
        style = RED if item["is_overdue"] else GREEN if item["status"] == CLOSED_STATUS else CYAN
        table.add_row(
            item["name"],
            _status(item["status"]),
            f"[{style}]{bar}[/]",
            f"{item['progress']:.0f}%",
        )
    return table


# ── Staffing ────────────────────────────────────────────────────

def render_staffing_gantt(view: dict[str, Any]) -> Table:
    project = view["project"]
    window = view["window"]
    table = Table(
        title=(
            f"{project.get('name', '')}  {window['start']} → {window['end']}  "
            f"({view['view_mode']}, sorted by {view['sort']['field']} {view['sort']['direction']})"
        ),
        border_style=CYAN,
        header_style=f"bold {BRIGHT_CYAN}",
    )
    table.add_column("Name", no_wrap=True)
    table.add_column("Position")
    table.add_column("Dates", no_wrap=True)
    table.add_column("Alloc", justify="right")
    table.add_column("Timeline", no_wrap=True)
    for item in view["items"]:
        bar = text_bar(item["left"], item["width"], today=view["today_position"])
        table.add_row(
            item["name"],
            item["position"],
            f"{item['start_date']} → {item['end_date']}",
            f"{item['allocation']}%",
            f"[{item['color']}]{bar}[/]",
        )
    if not view["items"]:
        table.add_row(f"[{DIM}]No staff assigned[/]", "", "", "", "")
    return table


def render_projects(projects: list[dict[str, Any]]) -> Table:
    table = Table(border_style=CYAN, header_style=f"bold {BRIGHT_CYAN}")
    table.add_column("ID", justify="right")
    table.add_column("Project")
    table.add_column("Number")
    table.add_column("Stage")
    table.add_column("Staff", justify="right")
    for p in projects:
        table.add_row(str(p["project_id"]), p["name"], p["project_number"], p["stage"], str(p["staff_count"]))
    return table


# ── Field reports + insights ────────────────────────────────────

def render_field_metrics(metrics: dict[str, Any]) -> Panel:
    lines = [
        f"  [{BRIGHT_CYAN}]Log Compliance[/]     {metrics['log_compliance_rate']:.1f}%  "
        f"[{DIM}]({metrics['completed_logs']}/{metrics['expected_logs']} logs)[/]",
        f"  [{BRIGHT_CYAN}]Workers[/]            {metrics['total_workers']}  "
        f"[{DIM}]avg efficiency {metrics['average_efficiency']:.1f}%[/]",
        f"  [{BRIGHT_CYAN}]Safety[/]             {metrics['safety_compliance_rate']:.1f}%  "
        f"[{RED}]{metrics['safety_violations']} violations[/]",
        f"  [{BRIGHT_CYAN}]Quality[/]            {metrics['quality_pass_rate']:.1f}% pass  "
        f"[{YELLOW}]{metrics['quality_defects']} defects[/]",
    ]
    return Panel("\n".join(lines), border_style=CYAN, title=f"[bold {BRIGHT_CYAN}]FIELD REPORTS[/]")


def render_field_counts(filtered: dict[str, list[dict[str, Any]]]) -> Table:
    table = Table(border_style=CYAN, header_style=f"bold {BRIGHT_CYAN}")
    table.add_column("Records")
    table.add_column("Count", justify="right")
    for label, key in (
        ("Daily logs", "daily_logs"),
        ("Quality inspections", "quality_control"),
        ("Safety audits", "safety"),
        ("Manpower entries", "manpower"),
    ):
        table.add_row(label, str(len(filtered.get(key, []))))
    return table


def render_insights(insights: list[dict[str, Any]], title: str = "HBI INSIGHTS") -> Panel:
    if not insights:
        return Panel(f"[{DIM}]No insights for the current data.[/]", border_style=CYAN, title=f"[bold {BRIGHT_CYAN}]{title}[/]")
    lines: list[str] = []
    for insight in insights:
        style = IMPACT_STYLES.get(insight["impact"], DIM)
        lines.append(f"  [{style}]●[/] [bold]{insight['title']}[/]  [{DIM}]{insight['impact']} · {insight['confidence']}%[/]")
        lines.append(f"    {insight['description']}")
        for action in insight["action_items"]:
            lines.append(f"    [{DIM}]- {action}[/]")
    return Panel("\n".join(lines), border_style=CYAN, title=f"[bold {BRIGHT_CYAN}]{title}[/]")


# ── Bidders + exports ───────────────────────────────────────────

def render_templates(summaries: list[dict[str, Any]]) -> Table:
    table = Table(border_style=CYAN, header_style=f"bold {BRIGHT_CYAN}")
    table.add_column("ID", no_wrap=True)
    table.add_column("Template")
    table.add_column("Category")
    table.add_column("Bidders", justify="right")
    table.add_column("Prequalified", justify="right")
    table.add_column("Avg Rating", justify="right")
    table.add_column("Used", justify="right")
    for s in summaries:
        table.add_row(
            str(s["id"]),
            str(s["name"]),
            str(s["category"]),
            str(s["bidder_count"]),
            str(s["prequalified_count"]),
            f"{s['average_rating']:.2f}",
            str(s["usage_count"]),
        )
    return table


def render_notice(notice: dict[str, str], detail: str = "") -> Panel:
    failed = notice.get("variant") == "destructive"
    body = notice["description"]
    if detail:
        body += f"\n[{DIM}]{detail}[/]"
    return Panel(body, border_style=RED if failed else GREEN, title=f"[bold]{notice['title']}[/]")
