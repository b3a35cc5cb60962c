"""
Siteboard dashboard server: JSON views over the fixture store + live WebSocket updates.

No database. No auth. Reads fixtures from disk into a session store, watches
the data directory and tells connected clients when it reloads.

Usage:
    siteboard serve [--port 3000] [--data path/to/fixtures]
"""

from __future__ import annotations

import asyncio
import json
import sys
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import Any

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from watchfiles import awatch

from . import bidders as bidder_ops
from . import constraints as constraint_views
from . import field_reports as field_views
from . import insights as insight_rules
from . import staffing as staffing_views
from .config import DEFAULT_PORT, get_data_path, get_export_dir
from .exports import ExportError, export_constraints, export_notice
from .store import DashboardStore

# ── In-memory state ────────────────────────────────────────────

store: DashboardStore | None = None
data_path: Path = get_data_path()
export_dir: Path = get_export_dir()
server_port: int = DEFAULT_PORT
ws_clients: set[WebSocket] = set()


class ApiError(Exception):
    """Structured API error carrying the JSON payload and status code."""

    def __init__(self, status_code: int, payload: dict[str, Any]):
        super().__init__(payload.get("error", "Request failed"))
        self.status_code = int(status_code)
        self.payload = payload


def _error(status_code: int, message: str, next_step: str | None = None) -> JSONResponse:
    payload: dict[str, Any] = {"error": message}
    if next_step:
        payload["next_step"] = next_step
    return JSONResponse(payload, status_code=status_code)


def _not_found(kind: str, item_id: Any) -> JSONResponse:
    return _error(404, f"{kind} '{item_id}' not found")


def _refresh_store() -> DashboardStore:
    global store
    if store is None or store.data_dir != data_path:
        store = DashboardStore(data_path)
    else:
        store.refresh()
    return store


def _ensure_store() -> DashboardStore:
    if store is None:
        return _refresh_store()
    return store


def _require_data_dir():
    if not data_path.exists():
        raise ApiError(404, {
            "error": f"Data directory '{data_path}' not found.",
            "next_step": "Set SITEBOARD_DATA or run siteboard serve --data <dir>",
        })


# ── Request models ─────────────────────────────────────────────

class ConstraintRequest(BaseModel):
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    assigned: str = ""
    reference: str = ""
    completionStatus: str = "Identified"
    dateIdentified: str = ""
    dueDate: str = ""


class ConstraintUpdateRequest(BaseModel):
    description: str | None = None
    category: str | None = None
    assigned: str | None = None
    reference: str | None = None
    completionStatus: str | None = None
    dateIdentified: str | None = None
    dueDate: str | None = None


class BulkActionRequest(BaseModel):
    action: str = Field(..., min_length=1)
    constraint_ids: list[str] = Field(default_factory=list)


class ExportRequest(BaseModel):
    format: str = Field(default="csv")
    file_name: str = Field(default="constraints")
    project_name: str = Field(default="All Projects")
    tab: str = Field(default="open")
    filters: dict[str, Any] = Field(default_factory=dict)


class BidderTemplateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    description: str = ""
    scopes: list[str] = Field(default_factory=list)
    regions: list[str] = Field(default_factory=list)
    bidders: list[dict[str, Any]] = Field(default_factory=list)
    defaultMessage: str = ""
    isPublic: bool = False
    tags: list[str] = Field(default_factory=list)


class BidderTemplateUpdateRequest(BaseModel):
    name: str | None = None
    category: str | None = None
    description: str | None = None
    scopes: list[str] | None = None
    regions: list[str] | None = None
    bidders: list[dict[str, Any]] | None = None
    defaultMessage: str | None = None
    isPublic: bool | None = None
    tags: list[str] | None = None


# ── Filesystem watcher ─────────────────────────────────────────

async def watch_data_dir():
    if not data_path.exists():
        return

    print(f"Watching {data_path} for changes...")

    async for changes in awatch(data_path):
        if not any(Path(path_str).suffix == ".json" for _, path_str in changes):
            continue
        try:
            _refresh_store()
        except Exception as exc:
            print(f"Failed to reload fixtures: {exc}", file=sys.stderr)
            continue
        await broadcast(_refresh_event("watcher"))


def _refresh_event(source: str) -> dict[str, Any]:
    current = _ensure_store()
    return {
        "type": "data_refreshed",
        "source": source,
        "last_updated": current.last_updated,
        "counts": current.status()["counts"],
    }


async def broadcast(event: dict[str, Any]):
    if not ws_clients:
        return
    data = json.dumps(event)
    disconnected: set[WebSocket] = set()
    for ws in ws_clients:
        try:
            await ws.send_text(data)
        except Exception:
            disconnected.add(ws)
    ws_clients.difference_update(disconnected)


# ── FastAPI app ────────────────────────────────────────────────

@asynccontextmanager
async def _lifespan(_: FastAPI):
    _refresh_store()
    watch_task = asyncio.create_task(watch_data_dir())
    try:
        yield
    finally:
        watch_task.cancel()
        with suppress(asyncio.CancelledError):
            await watch_task


app = FastAPI(title="Siteboard", docs_url=None, redoc_url=None, lifespan=_lifespan)


@app.exception_handler(ApiError)
async def _api_error_handler(_, exc: ApiError):
    return JSONResponse(exc.payload, status_code=exc.status_code)


@app.exception_handler(Exception)
async def _unexpected_error_handler(_, exc: Exception):
    print(f"Unhandled server error: {exc}", file=sys.stderr)
    return _error(500, "Internal server error", next_step="Check the server log and retry")


@app.get("/api/status")
async def api_status():
    _require_data_dir()
    return {**_ensure_store().status(), "port": server_port}


@app.post("/api/refresh")
async def api_refresh():
    _require_data_dir()
    status = _refresh_store().status()
    await broadcast(_refresh_event("api"))
    return status


# ── Constraints ────────────────────────────────────────────────

@app.get("/api/constraints")
async def api_constraints(
    tab: str = "open",
    search: str = "",
    status: str = "all",
    category: str = "all",
    assigned: str = "all",
    start: str | None = None,
    end: str | None = None,
    group_by_category: bool = False,
):
    current = _ensure_store()
    filters = constraint_views.ConstraintFilters.from_mapping({
        "search": search,
        "status": status,
        "category": category,
        "assigned": assigned,
        "start": start,
        "end": end,
    })
    items = constraint_views.filter_constraints(current.constraints, filters, tab)
    payload: dict[str, Any] = {
        "tab": "open" if tab.strip().lower() == "open" else "closed",
        "filters": filters.to_dict(),
        "constraints": items,
        "count": len(items),
        "categories": constraint_views.unique_categories(current.constraints),
        "assignees": constraint_views.unique_assignees(current.constraints),
    }
    if group_by_category:
        payload["groups"] = constraint_views.group_by_category(items)
    return payload


@app.post("/api/constraints")
async def api_create_constraint(request: ConstraintRequest):
    try:
        constraint = _ensure_store().create_constraint(request.model_dump())
    except ValueError as exc:
        return _error(400, str(exc))
    return JSONResponse(constraint, status_code=201)


@app.get("/api/constraints/stats")
async def api_constraint_stats():
    current = _ensure_store()
    return constraint_views.constraint_stats(current.constraints, current.today)


@app.get("/api/constraints/gantt")
async def api_constraint_gantt(view_mode: str = "month", category: str = "all", status: str = "all"):
    current = _ensure_store()
    return constraint_views.constraint_gantt(
        current.constraints,
        today=current.today,
        view_mode=view_mode,
        category=category,
        status=status,
    )


@app.post("/api/constraints/bulk")
async def api_constraint_bulk(request: BulkActionRequest):
    try:
        return _ensure_store().bulk_action(request.action, request.constraint_ids)
    except KeyError as exc:
        return _not_found("Constraint", exc.args[0])
    except ValueError as exc:
        return _error(400, str(exc))


@app.post("/api/constraints/export")
async def api_constraint_export(request: ExportRequest):
    current = _ensure_store()
    filters = constraint_views.ConstraintFilters.from_mapping(request.filters)
    items = constraint_views.filter_constraints(current.constraints, filters, request.tab)
    # summary describes the whole log, rows follow the filters
    stats = constraint_views.constraint_stats(current.constraints, current.today)
    try:
        path = export_constraints(
            items,
            stats,
            request.format,
            file_name=request.file_name,
            output_dir=export_dir,
            project_name=request.project_name,
        )
    except ExportError as exc:
        print(f"Export failed: {exc}", file=sys.stderr)
        notice = export_notice(request.format, exc)
        return JSONResponse(
            {"error": notice["description"], "detail": str(exc), "notice": notice},
            status_code=500,
        )
    return {"path": str(path), "count": len(items), "notice": export_notice(request.format)}


@app.put("/api/constraints/{constraint_id}")
async def api_update_constraint(constraint_id: str, request: ConstraintUpdateRequest):
    try:
        return _ensure_store().update_constraint(constraint_id, request.model_dump(exclude_unset=True))
    except KeyError:
        return _not_found("Constraint", constraint_id)
    except ValueError as exc:
        return _error(400, str(exc))


@app.delete("/api/constraints/{constraint_id}")
async def api_delete_constraint(constraint_id: str):
    try:
        removed = _ensure_store().delete_constraint(constraint_id)
    except KeyError:
        return _not_found("Constraint", constraint_id)
    return {"deleted": removed["id"]}


# ── Staffing ───────────────────────────────────────────────────

@app.get("/api/staffing/projects")
async def api_staffing_projects():
    current = _ensure_store()
    return {"projects": staffing_views.list_projects(current.projects, current.staff_members)}


@app.get("/api/staffing/projects/{project_id}/gantt")
async def api_staffing_gantt(
    project_id: str,
    search: str = "",
    position: str = "all",
    sort_field: str = "name",
    sort_direction: str = "asc",
    view_mode: str = "month",
):
    current = _ensure_store()
    try:
        return staffing_views.staffing_gantt(
            current.staff_members,
            current.projects,
            project_id,
            today=current.today,
            search=search,
            position=position,
            sort_field=sort_field,
            sort_direction=sort_direction,
            view_mode=view_mode,
            rng=current.rng,
        )
    except staffing_views.StaffingError as exc:
        return _error(400, str(exc), next_step="Use a positive numeric project id")


# ── Field reports + insights ───────────────────────────────────

def _field_view(raw_filters: dict[str, Any]) -> tuple[dict[str, Any], field_views.FieldFilters, dict[str, Any]]:
    current = _ensure_store()
    data = field_views.build_field_data(current.raw_daily_logs, current.raw_quality, current.raw_safety, current.today)
    filters = field_views.FieldFilters.from_mapping(raw_filters, today=current.today)
    filtered = field_views.filter_field_data(data, filters)
    metrics = field_views.field_metrics(filtered, filters, current.today)
    return {"all": data, "filtered": filtered}, filters, metrics


@app.get("/api/field-reports")
async def api_field_reports(
    project: str = "all",
    status: str = "all",
    contractor: str = "all",
    trade: str = "all",
    search: str = "",
    date_from: str | None = None,
    date_to: str | None = None,
):
    views, filters, metrics = _field_view({
        "project": project,
        "status": status,
        "contractor": contractor,
        "trade": trade,
        "search": search,
        "date_from": date_from,
        "date_to": date_to,
    })
    return {
        "filters": filters.to_dict(),
        "options": field_views.filter_options(views["all"]),
        "metrics": metrics,
        **views["filtered"],
    }


@app.get("/api/insights")
async def api_insights(date_from: str | None = None, date_to: str | None = None):
    current = _ensure_store()
    views, _, metrics = _field_view({"date_from": date_from, "date_to": date_to})
    stats = constraint_views.constraint_stats(current.constraints, current.today)
    return {
        "constraints": insight_rules.constraint_insights(current.constraints, stats, current.today),
        "field_reports": insight_rules.field_report_insights(views["filtered"], metrics),
    }


# ── Bidder templates ───────────────────────────────────────────

@app.get("/api/bidder-templates")
async def api_bidder_templates(search: str = "", category: str = "all"):
    current = _ensure_store()
    templates = bidder_ops.filter_templates(current.bidder_templates, search, category)
    return {
        "templates": templates,
        "summaries": [bidder_ops.template_summary(t) for t in templates],
        "count": len(templates),
        "categories": list(bidder_ops.TEMPLATE_CATEGORIES),
        "divisions": list(bidder_ops.CSI_DIVISIONS),
        "regions": list(bidder_ops.REGIONS),
    }


@app.post("/api/bidder-templates")
async def api_create_bidder_template(request: BidderTemplateRequest):
    try:
        template = _ensure_store().create_template(request.model_dump())
    except ValueError as exc:
        return _error(400, str(exc))
    return JSONResponse(template, status_code=201)


@app.put("/api/bidder-templates/{template_id}")
async def api_update_bidder_template(template_id: str, request: BidderTemplateUpdateRequest):
    try:
        return _ensure_store().update_template(template_id, request.model_dump(exclude_unset=True))
    except KeyError:
        return _not_found("Template", template_id)
    except ValueError as exc:
        return _error(400, str(exc))


@app.delete("/api/bidder-templates/{template_id}")
async def api_delete_bidder_template(template_id: str):
    try:
        removed = _ensure_store().delete_template(template_id)
    except KeyError:
        return _not_found("Template", template_id)
    return {"deleted": removed["id"]}


@app.post("/api/bidder-templates/{template_id}/duplicate")
async def api_duplicate_bidder_template(template_id: str):
    try:
        duplicate = _ensure_store().duplicate_template(template_id)
    except KeyError:
        return _not_found("Template", template_id)
    return JSONResponse(duplicate, status_code=201)


# ── WebSocket ──────────────────────────────────────────────────

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()
    ws_clients.add(websocket)
    current = _ensure_store()
    try:
        await websocket.send_text(json.dumps({
            "type": "init",
            "last_updated": current.last_updated,
            "counts": current.status()["counts"],
        }))
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        ws_clients.discard(websocket)


@app.get("/")
async def root():
    return {"name": "siteboard", "status": "/api/status", "ws": "/ws"}
