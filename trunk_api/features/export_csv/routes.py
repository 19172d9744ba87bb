"""
Export CSV API Routes
Feature toggle: export_csv

Endpoints:
- GET  /csv      download all tasks as CSV (optional ?columns=a,b,c)
- POST /csv      download filtered tasks as CSV
- GET  /preview  CSV text wrapped in JSON

Mounted under /api/export only when the flag is enabled.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from trunk_api.app.models.task import ExportRequest
from trunk_api.app.routes.dependencies import get_tasks_store
from trunk_api.app.services.stores.tasks_store import TasksStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["export"])

DEFAULT_COLUMNS = ["id", "title", "description", "status", "priority", "tags", "created_at"]
EMPTY_EXPORT = "No tasks to export"


def _format_cell(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        value = ";".join(str(v) for v in value)
    if value is None:
        value = ""
    text = str(value)
    if "," in text or '"' in text or "\n" in text:
        text = '"' + text.replace('"', '""') + '"'
    return text


def tasks_to_csv(tasks: List[Dict[str, Any]], columns: Optional[List[str]] = None) -> str:
    """
    Render task records as CSV text

    Args:
        tasks: Task records
        columns: Column names to include; defaults to DEFAULT_COLUMNS

    Returns:
        CSV text with a header row, or EMPTY_EXPORT when there are no tasks
    """
    if not tasks:
        return EMPTY_EXPORT

    selected = columns if columns else DEFAULT_COLUMNS
    header = ",".join(selected)
    rows = [",".join(_format_cell(task.get(col)) for col in selected) for task in tasks]
    return "\n".join([header, *rows])


def _parse_columns(columns: Optional[str]) -> Optional[List[str]]:
    if not columns:
        return None
    return [c.strip() for c in columns.split(",") if c.strip()]


def _csv_response(csv_text: str, filename_prefix: str) -> Response:
    filename = f"{filename_prefix}_{date.today().isoformat()}.csv"
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/csv")
async def export_csv(
    columns: Optional[str] = Query(None, description="Comma-separated column names"),
    store: TasksStore = Depends(get_tasks_store),
):
    """Export all tasks as a CSV download"""
    csv_text = tasks_to_csv(store.list_tasks(), _parse_columns(columns))
    return _csv_response(csv_text, "tasks")


@router.post("/csv")
async def export_filtered_csv(
    request: ExportRequest,
    store: TasksStore = Depends(get_tasks_store),
):
    """Export tasks matching status/priority/tags filters as a CSV download"""
    tasks = store.list_tasks()

    if request.status:
        tasks = [t for t in tasks if t.get("status") == request.status]
    if request.priority:
        tasks = [t for t in tasks if t.get("priority") == request.priority]
    if request.tags:
        wanted = set(request.tags)
        tasks = [t for t in tasks if wanted.intersection(t.get("tags") or [])]

    logger.info(f"Exporting {len(tasks)} filtered tasks")
    return _csv_response(tasks_to_csv(tasks, request.columns), "filtered_tasks")


@router.get("/preview")
async def export_preview(
    columns: Optional[str] = Query(None, description="Comma-separated column names"),
    store: TasksStore = Depends(get_tasks_store),
):
    """Preview the CSV export as JSON"""
    tasks = store.list_tasks()
    return {
        "success": True,
        "preview": tasks_to_csv(tasks, _parse_columns(columns)),
        "taskCount": len(tasks),
        "feature": {
            "name": "export_csv",
            "developer": "dev2",
            "status": "completed",
        },
    }
