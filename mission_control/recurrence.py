# mission_control/recurrence.py
"""Recurrence engine: due-date arithmetic and the completion spawn rule.

Completing a recurring task (moving it into Done from any other status)
produces exactly one successor in Backlog, due one period after the source.
The source loses its recurrence in the same write, so it can never spawn
again.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Union

from mission_control.models import Recurrence, Task, TaskStatus

logger = logging.getLogger(__name__)

_DAY_STEPS = {
    Recurrence.daily: 1,
    Recurrence.weekly: 7,
    Recurrence.biweekly: 14,
}


def _calendar_date(year: int, month_index: int, day: int) -> date:
    """Build a date, rolling overflowing months and days forward.

    ``month_index`` is zero-based and may exceed 11; ``day`` may exceed the
    month length (or be 0), in which case the surplus spills into the
    following month the way a lenient calendar constructor does.
    """
    year += month_index // 12
    first = date(year, month_index % 12 + 1, 1)
    return first + timedelta(days=day - 1)


def next_due_date(current: Optional[str], period: Optional[str]) -> Optional[str]:
    """Return the due date one *period* after *current* as ``YYYY-MM-DD``.

    Monthly steps keep the day of month and let it overflow, so 2024-01-31
    becomes 2024-03-02 rather than being clamped to February's last day.
    Returns None when either input is missing, the period is unknown, or the
    date cannot be read.
    """
    if not current or not period:
        return None
    try:
        period = Recurrence(period)
    except ValueError:
        return None

    try:
        year, month, day = (int(part) for part in current[:10].split("-"))
        normalized = _calendar_date(year, month - 1, day)
        if period is Recurrence.monthly:
            # month is 1-based, so as a 0-based index it already points one month on
            result = _calendar_date(normalized.year, normalized.month, normalized.day)
        else:
            result = normalized + timedelta(days=_DAY_STEPS[period])
    except (ValueError, OverflowError):
        logger.warning("Cannot advance due date %r by %s", current, period.value)
        return None
    return result.isoformat()


def should_spawn(
    old_status: TaskStatus,
    new_status: TaskStatus,
    recurrence: Optional[Recurrence],
) -> bool:
    """A successor is due only on entry into Done while recurrence is set."""
    return (
        new_status == TaskStatus.done
        and old_status != TaskStatus.done
        and recurrence is not None
    )


@dataclass(frozen=True)
class NoOp:
    """The status change has no side effect."""


@dataclass(frozen=True)
class SpawnSuccessor:
    """The status change creates the next occurrence described by ``fields``."""
    fields: dict


Effect = Union[NoOp, SpawnSuccessor]


def successor_fields(source: Task) -> dict:
    """Column values for the task that follows *source* in its series."""
    recurrence = Recurrence(source.recurrence)
    return {
        "title": source.title,
        "description": source.description,
        "status": TaskStatus.backlog,
        "priority": source.priority,
        "assignees": source.assignees,
        "project": source.project,
        "output": "",
        "due_date": next_due_date(source.due_date, recurrence.value),
        "recurrence": recurrence,
    }


def transition(existing: Task, new_status: TaskStatus) -> Effect:
    """Decide the side effect of moving *existing* into *new_status*."""
    if should_spawn(TaskStatus(existing.status), new_status, existing.recurrence):
        return SpawnSuccessor(successor_fields(existing))
    return NoOp()
