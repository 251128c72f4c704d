# mission_control/routes/tasks.py
"""CRUD endpoints for tasks."""

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Response
from sqlmodel import Session

from mission_control import service
from mission_control.database import get_session
from mission_control.models import TaskPriority, TaskStatus
from mission_control.store import TaskStore

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


def get_store(session: Session = Depends(get_session)) -> TaskStore:
    return TaskStore(session)


def _with_successor(task, spawned) -> dict:
    body = task.to_json()
    if spawned is not None:
        body["newRecurringTask"] = spawned.to_json()
    return body


@router.get("")
def list_tasks(
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    project: Optional[str] = None,
    assignee: Optional[str] = None,
    store: TaskStore = Depends(get_store),
) -> list[dict]:
    """List all tasks, newest first, optionally filtered."""
    tasks = service.list_tasks(
        store, status=status, priority=priority, project=project, assignee=assignee
    )
    return [t.to_json() for t in tasks]


@router.get("/{task_id}")
def get_task(task_id: str, store: TaskStore = Depends(get_store)) -> dict:
    """Get a single task by ID."""
    return service.get_task(store, task_id).to_json()


@router.post("", status_code=201)
def create_task(
    payload: Any = Body(...), store: TaskStore = Depends(get_store)
) -> dict:
    """Create a new task."""
    return service.create_task(store, payload).to_json()


@router.put("/{task_id}")
def replace_task(
    task_id: str, payload: Any = Body(...), store: TaskStore = Depends(get_store)
) -> dict:
    """Update a task from a full payload; omitted fields keep their values."""
    task, spawned = service.update_task(store, task_id, payload, partial=False)
    return _with_successor(task, spawned)


@router.patch("/{task_id}")
def patch_task(
    task_id: str, payload: Any = Body(...), store: TaskStore = Depends(get_store)
) -> dict:
    """Change only the fields named in the payload.

    Moving a recurring task into Done also returns its next occurrence under
    ``newRecurringTask``.
    """
    task, spawned = service.update_task(store, task_id, payload, partial=True)
    return _with_successor(task, spawned)


@router.delete("/{task_id}", status_code=204)
def delete_task(task_id: str, store: TaskStore = Depends(get_store)) -> Response:
    """Delete a task by ID."""
    service.delete_task(store, task_id)
    return Response(status_code=204)
