# mission_control/service.py
"""Task lifecycle operations behind the REST routes.

Each operation is one read-check-write sequence against the store:
validate the payload, plan the writes, persist, and return read models.
"""

import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from mission_control.errors import PersistenceFailure
from mission_control.models import TaskPriority, TaskRead, TaskStatus, encode_assignees
from mission_control.patching import TaskPatch, apply_partial
from mission_control.store import TaskStore, now_iso
from mission_control.validation import ensure_valid

logger = logging.getLogger(__name__)


@contextmanager
def _storage_errors(message: str):
    """Log storage errors with traceback and re-raise them client-safe."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception(message)
        raise PersistenceFailure(message) from exc


def list_tasks(
    store: TaskStore,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    project: Optional[str] = None,
    assignee: Optional[str] = None,
) -> list[TaskRead]:
    with _storage_errors("Failed to fetch tasks"):
        tasks = store.list_tasks(
            status=status, priority=priority, project=project, assignee=assignee
        )
        return [TaskRead.from_record(t) for t in tasks]


def get_task(store: TaskStore, task_id: str) -> TaskRead:
    with _storage_errors("Failed to fetch task"):
        return TaskRead.from_record(store.require(task_id))


def count_tasks(store: TaskStore) -> int:
    with _storage_errors("Failed to count tasks"):
        return store.count()


def create_task(store: TaskStore, payload: dict) -> TaskRead:
    """Create a task from a full payload. Never spawns, whatever the status."""
    ensure_valid(payload, partial=False)
    fields = TaskPatch.from_payload(payload).provided()
    if "assignees" in fields:
        fields["assignees"] = encode_assignees(fields["assignees"])
    with _storage_errors("Failed to create task"):
        task = store.create(fields)
        logger.info("Created task %s", task.id)
        return TaskRead.from_record(task)


def update_task(
    store: TaskStore, task_id: str, payload: dict, partial: bool
) -> tuple[TaskRead, Optional[TaskRead]]:
    """Apply a full (PUT) or partial (PATCH) update.

    Both keep existing values for fields the payload leaves out; a full
    update only differs in requiring a title. Returns the updated task and
    the successor spawned by completing it, if any.
    """
    ensure_valid(payload, partial=partial)
    patch = TaskPatch.from_payload(payload)
    with _storage_errors("Failed to update task"):
        existing = store.require(task_id)
        plan = apply_partial(existing, patch, now_iso())
        task, spawned = store.update(existing, plan.fields, plan.successor)
        return (
            TaskRead.from_record(task),
            TaskRead.from_record(spawned) if spawned is not None else None,
        )


def delete_task(store: TaskStore, task_id: str) -> None:
    with _storage_errors("Failed to delete task"):
        store.delete(store.require(task_id))
        logger.info("Deleted task %s", task_id)
