"""
Base Task CRUD Routes
Always mounted; not behind any feature flag
"""

from fastapi import APIRouter, Depends, HTTPException, status

from ...models.task import TaskCreate, TaskUpdate
from ..dependencies import get_tasks_store
from ...services.stores.tasks_store import TasksStore

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("")
async def list_tasks(store: TasksStore = Depends(get_tasks_store)):
    tasks = store.list_tasks()
    return {"success": True, "tasks": tasks, "count": len(tasks)}


@router.get("/{task_id}")
async def get_task(task_id: int, store: TasksStore = Depends(get_tasks_store)):
    task = store.get_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return {"success": True, "task": task}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(request: TaskCreate, store: TasksStore = Depends(get_tasks_store)):
    """Create a task; title is required"""
    if not request.title:
        raise HTTPException(status_code=400, detail="Title is required")
    task = store.create_task(
        title=request.title,
        description=request.description,
        priority=request.priority,
        tags=request.tags,
    )
    return {"success": True, "task": task}


@router.put("/{task_id}")
async def update_task(task_id: int, request: TaskUpdate, store: TasksStore = Depends(get_tasks_store)):
    """Merge the given fields into a task; the id is never changed"""
    updates = request.model_dump(exclude_unset=True)
    updates.pop("id", None)
    task = store.update_task(task_id, updates)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return {"success": True, "task": task}


@router.delete("/{task_id}")
async def delete_task(task_id: int, store: TasksStore = Depends(get_tasks_store)):
    task = store.delete_task(task_id)
    if task is None:
        raise HTTPException(status_code=404, detail="Task not found")
    return {"success": True, "task": task}
