"""
Advanced Search API Routes
Feature toggle: advanced_search

Filtered task search and the facet values a search form needs.
Mounted under /api/search only when the flag is enabled.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException

from trunk_api.app.models.task import SearchRequest
from trunk_api.app.routes.dependencies import get_tasks_store
from trunk_api.app.services.stores.tasks_store import TasksStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["search"])

FEATURE = {"name": "advanced_search", "developer": "dev1"}


def _parse_date(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def search_tasks(tasks: List[Dict[str, Any]], request: SearchRequest) -> List[Dict[str, Any]]:
    """
    Apply search filters to task records

    Args:
        tasks: Task records
        request: Filters; unset filters are ignored

    Returns:
        Matching tasks, in store order

    Raises:
        ValueError: If dateFrom or dateTo is not an ISO date
    """
    results = list(tasks)

    if request.query:
        needle = request.query.lower()
        results = [
            t for t in results
            if needle in (t.get("title") or "").lower()
            or needle in (t.get("description") or "").lower()
        ]

    if request.status:
        results = [t for t in results if t.get("status") == request.status]

    if request.priority:
        results = [t for t in results if t.get("priority") == request.priority]

    if request.tags:
        wanted = set(request.tags)
        results = [t for t in results if wanted.intersection(t.get("tags") or [])]

    if request.date_from:
        start = _parse_date(request.date_from)
        results = [t for t in results if t.get("created_at") and _parse_date(t["created_at"]) >= start]

    if request.date_to:
        end = _parse_date(request.date_to)
        results = [t for t in results if t.get("created_at") and _parse_date(t["created_at"]) <= end]

    return results


def _distinct(values) -> List[Any]:
    seen: List[Any] = []
    for value in values:
        if value is not None and value not in seen:
            seen.append(value)
    return seen


@router.post("")
async def advanced_search(
    request: SearchRequest,
    store: TasksStore = Depends(get_tasks_store),
):
    """
    Search tasks with filters

    Body fields (all optional): query, status, priority, tags, dateFrom, dateTo.
    """
    try:
        results = search_tasks(store.list_tasks(), request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid date filter: {e}")

    filters: Dict[str, Optional[Any]] = {
        "query": request.query,
        "status": request.status,
        "priority": request.priority,
        "tags": request.tags,
        "dateFrom": request.date_from,
        "dateTo": request.date_to,
    }
    return {
        "success": True,
        "results": results,
        "count": len(results),
        "filters": filters,
        "feature": {**FEATURE, "status": "This feature is enabled!"},
    }


@router.get("/facets")
async def search_facets(store: TasksStore = Depends(get_tasks_store)):
    """Distinct filter values available across all tasks"""
    tasks = store.list_tasks()
    return {
        "success": True,
        "facets": {
            "statuses": _distinct(t.get("status") for t in tasks),
            "priorities": _distinct(t.get("priority") for t in tasks),
            "tags": _distinct(tag for t in tasks for tag in (t.get("tags") or [])),
            "totalTasks": len(tasks),
        },
        "feature": FEATURE,
    }
