# mission_control/sync.py
"""Client-side task cache kept in step with the Mission Control API.

Listing, creation, full updates and deletion touch the cache only after the
server confirms them. Status moves are optimistic: the cached status changes
immediately and the PATCH runs afterwards; if it fails, the whole cache is
refetched, which also drops any other unconfirmed moves.

The cache follows the immutable update pattern: ``self._tasks`` is replaced,
never mutated in place, and readers get deep copies.
"""

import asyncio
import copy
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx

from mission_control.config import API_URL
from mission_control.errors import SyncFailure

logger = logging.getLogger(__name__)

DONE = "Done"
IN_PROGRESS = "In Progress"


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("error"):
        return body["error"]
    return fallback


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class TaskSyncManager:
    """Local cache of all tasks backed by the REST API.

    Parameters
    ----------
    base_url : str
        API root, e.g. ``http://localhost:3001/api``. Ignored when *client*
        is given.
    client : httpx.AsyncClient, optional
        Pre-configured client (tests pass one with a mock transport).
    discard_stale_moves : bool
        When True, a successful move response is ignored if a later move of
        the same task was issued after it. Off by default, so the last
        response to arrive wins.
    """

    def __init__(
        self,
        base_url: str = API_URL,
        client: Optional[httpx.AsyncClient] = None,
        discard_stale_moves: bool = False,
    ) -> None:
        self._client = client if client is not None else httpx.AsyncClient(base_url=base_url)
        self._tasks: list[dict] = []
        self._move_seq: dict[str, int] = {}
        self._background: set[asyncio.Task] = set()
        self.discard_stale_moves = discard_stale_moves
        self.loading = True
        self.error: Optional[str] = None

    async def aclose(self) -> None:
        await self._client.aclose()

    # -- reads ---------------------------------------------------------------

    @property
    def tasks(self) -> list[dict]:
        """Deep copy of the cached tasks, in cache order."""
        return copy.deepcopy(self._tasks)

    def get(self, task_id: str) -> Optional[dict]:
        for task in self._tasks:
            if task["id"] == task_id:
                return copy.deepcopy(task)
        return None

    def tasks_by_status(self, status: str) -> list[dict]:
        return [copy.deepcopy(t) for t in self._tasks if t["status"] == status]

    def projects(self) -> list[str]:
        """Distinct non-empty project names, sorted."""
        return sorted({t["project"] for t in self._tasks if t.get("project")})

    def filter_tasks(
        self,
        assignee: Optional[str] = None,
        project: Optional[str] = None,
        query: str = "",
    ) -> list[dict]:
        """Tasks matching every given filter.

        *query* matches case-insensitively against title, description and
        project.
        """
        needle = query.strip().lower()
        result = []
        for task in self._tasks:
            if assignee is not None and assignee not in task.get("assignees", []):
                continue
            if project is not None and task.get("project") != project:
                continue
            if needle:
                haystack = " ".join(
                    task.get(key) or "" for key in ("title", "description", "project")
                ).lower()
                if needle not in haystack:
                    continue
            result.append(copy.deepcopy(task))
        return result

    def stats(self, now: Optional[datetime] = None) -> dict:
        """Board summary: tasks created this week, in progress, total, % done."""
        now = now or datetime.now(timezone.utc)
        week_ago = now - timedelta(days=7)
        created = [_parse_timestamp(t.get("createdAt", "")) for t in self._tasks]
        total = len(self._tasks)
        done = sum(1 for t in self._tasks if t["status"] == DONE)
        return {
            "thisWeek": sum(1 for c in created if c is not None and c >= week_ago),
            "inProgress": sum(1 for t in self._tasks if t["status"] == IN_PROGRESS),
            "total": total,
            "completion": math.floor(done * 100 / total + 0.5) if total else 0,
        }

    # -- cache updates -------------------------------------------------------

    def _replace(self, task: dict) -> None:
        self._tasks = [
            copy.deepcopy(task) if t["id"] == task["id"] else t for t in self._tasks
        ]

    def _append(self, task: dict) -> None:
        # A refetch racing the response may already have brought it in
        if any(t["id"] == task["id"] for t in self._tasks):
            self._replace(task)
        else:
            self._tasks = [*self._tasks, copy.deepcopy(task)]

    def _merge_update(self, body: dict) -> dict:
        """Merge an update response and any successor it carries."""
        spawned = body.get("newRecurringTask")
        updated = {k: v for k, v in body.items() if k != "newRecurringTask"}
        if spawned is not None:
            updated["recurrence"] = None
        self._replace(updated)
        if spawned is not None:
            self._append(spawned)
        return updated

    def _fail(self, message: str) -> SyncFailure:
        logger.error(message)
        self.error = message
        return SyncFailure(message)

    async def _send(self, method: str, url: str, fallback: str, expect: type = dict, **kwargs):
        """Issue one request and return its decoded JSON body.

        Transport errors, error statuses, undecodable bodies and bodies that
        are not an *expect* instance raise SyncFailure. An empty 204 body
        decodes to None.
        """
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise self._fail(f"{fallback}: {exc}") from exc
        if response.is_error:
            raise self._fail(_error_message(response, fallback))
        if response.status_code == 204:
            return None
        try:
            body = response.json()
        except ValueError as exc:
            raise self._fail(f"{fallback}: invalid response body") from exc
        if not isinstance(body, expect):
            raise self._fail(f"{fallback}: invalid response body")
        return body

    # -- pessimistic operations ----------------------------------------------

    async def fetch_tasks(self) -> list[dict]:
        """Replace the cache with the server's full listing.

        Failures are recorded in :attr:`error` and leave the cache as it was.
        """
        try:
            body = await self._send("GET", "/tasks", "Failed to fetch tasks", expect=list)
        except SyncFailure:
            return self.tasks
        else:
            self._tasks = body
            self.error = None
            return self.tasks
        finally:
            self.loading = False

    async def add_task(self, task: dict) -> dict:
        created = await self._send("POST", "/tasks", "Failed to create task", json=task)
        self._tasks = [created, *self._tasks]
        return copy.deepcopy(created)

    async def update_task(self, task_id: str, updates: dict) -> dict:
        body = await self._send(
            "PUT", f"/tasks/{task_id}", "Failed to update task", json=updates
        )
        return self._merge_update(body)

    async def delete_task(self, task_id: str) -> None:
        await self._send("DELETE", f"/tasks/{task_id}", "Failed to delete task")
        self._tasks = [t for t in self._tasks if t["id"] != task_id]

    # -- optimistic move -----------------------------------------------------

    def _apply_move(self, task_id: str, new_status: str) -> int:
        self._tasks = [
            {**t, "status": new_status} if t["id"] == task_id else t
            for t in self._tasks
        ]
        seq = self._move_seq.get(task_id, 0) + 1
        self._move_seq = {**self._move_seq, task_id: seq}
        return seq

    async def _send_move(self, task_id: str, new_status: str, seq: int) -> None:
        try:
            body = await self._send(
                "PATCH", f"/tasks/{task_id}", "Failed to move task",
                json={"status": new_status},
            )
        except SyncFailure as exc:
            await self.fetch_tasks()
            self.error = str(exc)
            return

        if self.discard_stale_moves and self._move_seq.get(task_id) != seq:
            logger.debug("Ignoring stale move response for task %s", task_id)
            return
        self._merge_update(body)

    async def move_task(self, task_id: str, new_status: str) -> None:
        """Move a task to *new_status*, showing the change before the server answers.

        Never raises for request failures: the cache is resynchronised from
        the server instead and :attr:`error` is set.
        """
        seq = self._apply_move(task_id, new_status)
        await self._send_move(task_id, new_status, seq)

    def schedule_move(self, task_id: str, new_status: str) -> asyncio.Task:
        """Apply a move to the cache now and send it in the background."""
        seq = self._apply_move(task_id, new_status)
        pending = asyncio.create_task(self._send_move(task_id, new_status, seq))
        self._background.add(pending)
        pending.add_done_callback(self._background.discard)
        return pending
