"""
Siteboard CLI: unified entry point for the dashboard views.

Usage:
    siteboard serve [--port 3000] [--data DIR]
    siteboard constraints [filters] [--gantt] [--insights]
    siteboard staffing [PROJECT_ID] [options]
    siteboard field-reports [filters] [--insights]
    siteboard bidders [--search TEXT] [--category NAME]
    siteboard export --format csv|excel|pdf [filters]
"""

from __future__ import annotations

import argparse
import json
import random
import sys
from datetime import date
from typing import Any

from . import bidders as bidder_ops
from . import constraints as constraint_views
from . import field_reports as field_views
from . import insights as insight_rules
from . import render
from . import staffing as staffing_views
from .config import DEFAULT_HOST, EXPORT_FORMATS, get_data_path, get_export_dir, get_port, load_dotenv
from .exports import ExportError, export_constraints, export_notice
from .gantt import VIEW_MODES
from .store import DashboardStore
from .utils import parse_date

console = render.console


def _iso_date(value: str) -> date:
    parsed = parse_date(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"invalid date '{value}' (expected YYYY-MM-DD)")
    return parsed


def _add_data_flags(parser: argparse.ArgumentParser):
    parser.add_argument("--data", type=str, default=None, help="Fixture directory (default: SITEBOARD_DATA or bundled data)")
    parser.add_argument("--today", type=_iso_date, default=None, help="Pin today's date (YYYY-MM-DD)")
    parser.add_argument("--json", action="store_true", help="Print raw JSON instead of tables")


def _add_constraint_filter_flags(parser: argparse.ArgumentParser):
    parser.add_argument("--tab", choices=constraint_views.CONSTRAINT_TABS, default="open")
    parser.add_argument("--search", default="")
    parser.add_argument("--status", default="all")
    parser.add_argument("--category", default="all")
    parser.add_argument("--assigned", default="all")
    parser.add_argument("--start", type=_iso_date, default=None, help="Identified on or after")
    parser.add_argument("--end", type=_iso_date, default=None, help="Identified on or before")


def _add_serve_parser(subparsers: argparse._SubParsersAction):
    parser = subparsers.add_parser("serve", help="Start the dashboard API server")
    parser.add_argument("--port", type=int, default=get_port())
    parser.add_argument("--host", type=str, default=DEFAULT_HOST)
    parser.add_argument("--data", type=str, default=None, help="Fixture directory")
    parser.add_argument("--export-dir", type=str, default=None, help="Where export files are written")


def _add_constraints_parser(subparsers: argparse._SubParsersAction):
    parser = subparsers.add_parser("constraints", help="Show the constraint log")
    _add_data_flags(parser)
    _add_constraint_filter_flags(parser)
    parser.add_argument("--group", action="store_true", help="Group rows by category")
    parser.add_argument("--gantt", action="store_true", help="Show the constraint timeline instead of the log")
    parser.add_argument("--view-mode", choices=constraint_views.TIMELINE_VIEW_MODES, default="month")
    parser.add_argument("--insights", action="store_true", help="Append HBI insights")


def _add_staffing_parser(subparsers: argparse._SubParsersAction):
    parser = subparsers.add_parser("staffing", help="Show a project's staffing Gantt")
    parser.add_argument("project_id", nargs="?", default=None, help="Project id (omit to list projects)")
    _add_data_flags(parser)
    parser.add_argument("--search", default="")
    parser.add_argument("--position", default="all")
    parser.add_argument("--sort", dest="sort_field", choices=staffing_views.SORT_FIELDS, default="name")
    parser.add_argument("--direction", dest="sort_direction", choices=staffing_views.SORT_DIRECTIONS, default="asc")
    parser.add_argument("--view-mode", choices=VIEW_MODES, default="month")
    parser.add_argument("--seed", type=int, default=None, help="Seed for mock allocation percentages")


def _add_field_reports_parser(subparsers: argparse._SubParsersAction):
    parser = subparsers.add_parser("field-reports", help="Show field report metrics")
    _add_data_flags(parser)
    parser.add_argument("--project", default="all")
    parser.add_argument("--status", default="all")
    parser.add_argument("--contractor", default="all")
    parser.add_argument("--trade", default="all")
    parser.add_argument("--search", default="")
    parser.add_argument("--from", dest="date_from", type=_iso_date, default=None, help="Range start (default: first of this month)")
    parser.add_argument("--to", dest="date_to", type=_iso_date, default=None, help="Range end (default: last of this month)")
    parser.add_argument("--insights", action="store_true", help="Append HBI insights")


def _add_bidders_parser(subparsers: argparse._SubParsersAction):
    parser = subparsers.add_parser("bidders", help="List bidder templates")
    _add_data_flags(parser)
    parser.add_argument("--search", default="")
    parser.add_argument("--category", default="all")


def _add_export_parser(subparsers: argparse._SubParsersAction):
    parser = subparsers.add_parser("export", help="Export the filtered constraint log")
    _add_data_flags(parser)
    _add_constraint_filter_flags(parser)
    parser.add_argument("--format", dest="fmt", choices=EXPORT_FORMATS, default="csv")
    parser.add_argument("--file-name", default="constraints")
    parser.add_argument("--project-name", default="All Projects")
    parser.add_argument("--output-dir", default=None)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="siteboard",
        description="Siteboard: construction dashboard views over local project data",
    )
    subparsers = parser.add_subparsers(dest="mode", required=True)

    _add_serve_parser(subparsers)
    _add_constraints_parser(subparsers)
    _add_staffing_parser(subparsers)
    _add_field_reports_parser(subparsers)
    _add_bidders_parser(subparsers)
    _add_export_parser(subparsers)

    return parser


def _load_store(args: argparse.Namespace) -> DashboardStore:
    pinned = getattr(args, "today", None)
    seed = getattr(args, "seed", None)
    kwargs: dict[str, Any] = {"rng": random.Random(seed)}
    if pinned is not None:
        kwargs["today_fn"] = lambda: pinned
    return DashboardStore(get_data_path(args.data), **kwargs)


def _print_json(payload: Any):
    console.print_json(json.dumps(payload, default=str))


def _constraint_filters(args: argparse.Namespace) -> constraint_views.ConstraintFilters:
    return constraint_views.ConstraintFilters(
        search=args.search,
        status=args.status,
        category=args.category,
        assigned=args.assigned,
        date_start=args.start,
        date_end=args.end,
    )


def _handle_serve(args: argparse.Namespace):
    import uvicorn

    import siteboard.server as srv

    srv.data_path = get_data_path(args.data)
    srv.export_dir = get_export_dir(args.export_dir)
    srv.server_port = int(args.port)
    print(f"Siteboard server starting on http://localhost:{args.port}")
    print(f"Data directory: {srv.data_path}")
    print(f"Exports: {srv.export_dir}")
    uvicorn.run(srv.app, host=args.host, port=args.port, log_level="warning", access_log=False)


def _handle_constraints(args: argparse.Namespace):
    store = _load_store(args)
    today = store.today

    if args.gantt:
        view = constraint_views.constraint_gantt(
            store.constraints,
            today=today,
            view_mode=args.view_mode,
            category=args.category,
            status=args.status,
        )
        if args.json:
            _print_json(view)
            return
        console.print(render.render_constraint_gantt(view))
        return

    items = constraint_views.filter_constraints(store.constraints, _constraint_filters(args), args.tab)
    stats = constraint_views.constraint_stats(store.constraints, today)
    groups = constraint_views.group_by_category(items) if args.group else None
    found = insight_rules.constraint_insights(store.constraints, stats, today) if args.insights else []

    if args.json:
        payload: dict[str, Any] = {"stats": stats, "constraints": items, "count": len(items)}
        if groups is not None:
            payload["groups"] = groups
        if args.insights:
            payload["insights"] = found
        _print_json(payload)
        return

    console.print(render.render_constraint_stats(stats))
    console.print(render.render_constraints(items, groups))
    if args.insights:
        console.print(render.render_insights(found))


def _handle_staffing(args: argparse.Namespace):
    store = _load_store(args)

    if args.project_id is None:
        projects = staffing_views.list_projects(store.projects, store.staff_members)
        if args.json:
            _print_json(projects)
        else:
            console.print(render.render_projects(projects))
        return

    try:
        view = staffing_views.staffing_gantt(
            store.staff_members,
            store.projects,
            args.project_id,
            today=store.today,
            search=args.search,
            position=args.position,
            sort_field=args.sort_field,
            sort_direction=args.sort_direction,
            view_mode=args.view_mode,
            rng=store.rng,
        )
    except staffing_views.StaffingError as exc:
        console.print(f"[red]{exc}[/]")
        sys.exit(1)

    if args.json:
        _print_json(view)
    else:
        console.print(render.render_staffing_gantt(view))


def _handle_field_reports(args: argparse.Namespace):
    store = _load_store(args)
    data = field_views.build_field_data(store.raw_daily_logs, store.raw_quality, store.raw_safety, store.today)
    filters = field_views.FieldFilters(
        project=args.project,
        status=args.status,
        contractor=args.contractor,
        trade=args.trade,
        search=args.search,
        date_from=args.date_from,
        date_to=args.date_to,
    ).with_default_range(store.today)
    filtered = field_views.filter_field_data(data, filters)
    metrics = field_views.field_metrics(filtered, filters, store.today)
    found = insight_rules.field_report_insights(filtered, metrics) if args.insights else []

    if args.json:
        payload: dict[str, Any] = {"filters": filters.to_dict(), "metrics": metrics, **filtered}
        if args.insights:
            payload["insights"] = found
        _print_json(payload)
        return

    console.print(render.render_field_metrics(metrics))
    console.print(render.render_field_counts(filtered))
    if args.insights:
        console.print(render.render_insights(found))


def _handle_bidders(args: argparse.Namespace):
    store = _load_store(args)
    templates = bidder_ops.filter_templates(store.bidder_templates, args.search, args.category)
    summaries = [bidder_ops.template_summary(t) for t in templates]
    if args.json:
        _print_json(summaries)
        return
    console.print(render.render_templates(summaries))


def _handle_export(args: argparse.Namespace):
    store = _load_store(args)
    items = constraint_views.filter_constraints(store.constraints, _constraint_filters(args), args.tab)
    # summary describes the whole log, rows follow the filters
    stats = constraint_views.constraint_stats(store.constraints, store.today)
    try:
        path = export_constraints(
            items,
            stats,
            args.fmt,
            file_name=args.file_name,
            output_dir=get_export_dir(args.output_dir),
            project_name=args.project_name,
        )
    except ExportError as exc:
        console.print(render.render_notice(export_notice(args.fmt, exc), detail=str(exc)))
        sys.exit(1)
    console.print(render.render_notice(export_notice(args.fmt), detail=str(path)))


def main(argv: list[str] | None = None):
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    handlers = {
        "serve": _handle_serve,
        "constraints": _handle_constraints,
        "staffing": _handle_staffing,
        "field-reports": _handle_field_reports,
        "bidders": _handle_bidders,
        "export": _handle_export,
    }
    handlers[args.mode](args)


if __name__ == "__main__":
    main()
