"""
Tasks store backed by a flat JSON document

Document shape: {"tasks": [...], "nextId": int}. Records are plain dicts and
are never inspected by the feature flag machinery.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class TasksStore:
    """Store for task records"""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, Any]:
        if not self.db_path.exists():
            logger.info(f"Task database not found at {self.db_path}, starting empty")
            return {"tasks": [], "nextId": 1}
        with open(self.db_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        data.setdefault("tasks", [])
        data.setdefault("nextId", max((t.get("id", 0) for t in data["tasks"]), default=0) + 1)
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.db_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2)

    def list_tasks(self) -> List[Dict[str, Any]]:
        with self._lock:
            return self._read()["tasks"]

    def get_task(self, task_id: int) -> Optional[Dict[str, Any]]:
        with self._lock:
            for task in self._read()["tasks"]:
                if task.get("id") == task_id:
                    return task
        return None

    def create_task(
        self,
        title: str,
        description: str = "",
        priority: str = "medium",
        tags: Optional[List[str]] = None,
    ) -> Dict[str, Any]:
        """
        Create a new task record

        Args:
            title: Task title
            description: Optional description
            priority: Priority label
            tags: Optional tag list

        Returns:
            Created task record
        """
        with self._lock:
            data = self._read()
            timestamp = _now()
            task = {
                "id": data["nextId"],
                "title": title,
                "description": description or "",
                "status": "pending",
                "priority": priority or "medium",
                "tags": tags or [],
                "created_at": timestamp,
                "updated_at": timestamp,
            }
            data["tasks"].append(task)
            data["nextId"] += 1
            self._write(data)
        logger.info(f"Created task: {task['id']}")
        return task

    def update_task(self, task_id: int, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Merge updates into a task, preserving its id; returns None if absent"""
        with self._lock:
            data = self._read()
            for index, task in enumerate(data["tasks"]):
                if task.get("id") == task_id:
                    merged = {**task, **updates, "id": task["id"], "updated_at": _now()}
                    data["tasks"][index] = merged
                    self._write(data)
                    return merged
        return None

    def delete_task(self, task_id: int) -> Optional[Dict[str, Any]]:
        with self._lock:
            data = self._read()
            for index, task in enumerate(data["tasks"]):
                if task.get("id") == task_id:
                    deleted = data["tasks"].pop(index)
                    self._write(data)
                    logger.info(f"Deleted task: {task_id}")
                    return deleted
        return None
