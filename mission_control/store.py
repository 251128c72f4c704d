# mission_control/store.py
"""Task repository over a SQLModel session."""

import json
import logging
import threading
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from mission_control.errors import TaskNotFound
from mission_control.models import (
    Recurrence,
    Task,
    TaskPriority,
    TaskStatus,
    decode_assignees,
    encode_assignees,
)

logger = logging.getLogger(__name__)

_id_lock = threading.Lock()
_last_id = 0


def new_task_id() -> str:
    """Return a millisecond-clock id, strictly greater than any issued before.

    Ids only grow within one process; two processes creating tasks in the
    same millisecond can still collide.
    """
    global _last_id
    with _id_lock:
        _last_id = max(time.time_ns() // 1_000_000, _last_id + 1)
        return str(_last_id)


def now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


CREATE_DEFAULTS = {
    "description": "",
    "status": TaskStatus.backlog,
    "priority": TaskPriority.medium,
    "assignees": "[]",
    "project": "",
    "output": "",
    "due_date": None,
    "recurrence": None,
}


class TaskStore:
    """Authoritative task repository.

    Each write method commits its own transaction and rolls back on storage
    errors. There is no locking across calls: a read followed by a write from
    another request may interleave with this one.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    @contextmanager
    def _transaction(self):
        try:
            yield
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise

    # -- reads ---------------------------------------------------------------

    def list_tasks(
        self,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        project: Optional[str] = None,
        assignee: Optional[str] = None,
    ) -> list[Task]:
        """All tasks, newest first, optionally filtered."""
        statement = select(Task)
        if status is not None:
            statement = statement.where(Task.status == status)
        if priority is not None:
            statement = statement.where(Task.priority == priority)
        if project is not None:
            statement = statement.where(Task.project == project)
        statement = statement.order_by(Task.created_at.desc(), Task.id.desc())
        tasks = list(self._session.exec(statement).all())
        if assignee is not None:
            tasks = [t for t in tasks if assignee in decode_assignees(t.assignees)]
        return tasks

    def get(self, task_id: str) -> Optional[Task]:
        return self._session.get(Task, task_id)

    def require(self, task_id: str) -> Task:
        """Like :meth:`get` but raises :class:`TaskNotFound` for unknown ids."""
        task = self.get(task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    def count(self) -> int:
        return self._session.exec(select(func.count()).select_from(Task)).one()

    # -- writes --------------------------------------------------------------

    def _new_task(self, fields: dict) -> Task:
        stamp = now_iso()
        return Task(
            **{**CREATE_DEFAULTS, **fields},
            id=new_task_id(),
            created_at=stamp,
            updated_at=stamp,
        )

    def create(self, fields: dict) -> Task:
        """Insert a task; id and timestamps are assigned here."""
        task = self._new_task(fields)
        with self._transaction():
            self._session.add(task)
        self._session.refresh(task)
        return task

    def update(
        self, task: Task, writes: dict, successor: Optional[dict] = None
    ) -> tuple[Task, Optional[Task]]:
        """Apply *writes* to *task* and insert *successor*, in one commit."""
        spawned = self._new_task(successor) if successor is not None else None
        with self._transaction():
            for key, value in writes.items():
                setattr(task, key, value)
            self._session.add(task)
            if spawned is not None:
                self._session.add(spawned)
        self._session.refresh(task)
        if spawned is not None:
            self._session.refresh(spawned)
            logger.info("Task %s spawned successor %s", task.id, spawned.id)
        return task, spawned

    def delete(self, task: Task) -> None:
        with self._transaction():
            self._session.delete(task)

    def seed_from_file(self, path: Path) -> int:
        """Load ``{"tasks": [...]}`` from *path* into an empty store.

        Returns the number of tasks inserted. A missing file, a non-empty
        store or an unreadable file leaves the store untouched.
        """
        if self.count() > 0 or not path.exists():
            return 0
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            stamp = now_iso()
            tasks = [
                Task(
                    id=str(item["id"]),
                    title=item["title"],
                    description=item.get("description") or "",
                    status=TaskStatus(item.get("status") or TaskStatus.backlog.value),
                    priority=TaskPriority(item.get("priority") or TaskPriority.medium.value),
                    assignees=encode_assignees(item.get("assignees")),
                    project=item.get("project") or "",
                    output=item.get("output") or "",
                    due_date=item.get("dueDate"),
                    recurrence=Recurrence(item["recurrence"]) if item.get("recurrence") else None,
                    created_at=item.get("createdAt") or stamp,
                    updated_at=item.get("updatedAt") or item.get("createdAt") or stamp,
                )
                for item in raw["tasks"]
            ]
        except (OSError, ValueError, KeyError, TypeError):
            logger.exception("Failed to read seed file %s", path)
            return 0
        with self._transaction():
            self._session.add_all(tasks)
        return len(tasks)
