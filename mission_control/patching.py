# mission_control/patching.py
"""Partial-update processor.

A :class:`TaskPatch` states, per field, whether the client left it alone
(``UNSET``), set it to a value, or cleared it (``None``, only meaningful for
``due_date`` and ``recurrence``). :func:`apply_partial` turns a patch into the
exact column writes for the stored task plus the recurrence side effect.
"""

from dataclasses import dataclass, fields as dataclass_fields
from enum import Enum
from typing import Optional, Union

from mission_control.models import (
    Recurrence,
    Task,
    TaskPriority,
    TaskStatus,
    encode_assignees,
)
from mission_control.recurrence import Effect, SpawnSuccessor, transition


class Unset(Enum):
    UNSET = "UNSET"


UNSET = Unset.UNSET

# Wire key -> column name
PAYLOAD_KEYS = {
    "title": "title",
    "description": "description",
    "status": "status",
    "priority": "priority",
    "assignees": "assignees",
    "project": "project",
    "output": "output",
    "dueDate": "due_date",
    "recurrence": "recurrence",
}

_TRIMMED = ("title", "description", "project", "output")


@dataclass(frozen=True)
class TaskPatch:
    title: Union[str, Unset] = UNSET
    description: Union[str, Unset] = UNSET
    status: Union[TaskStatus, Unset] = UNSET
    priority: Union[TaskPriority, Unset] = UNSET
    assignees: Union[tuple[str, ...], Unset] = UNSET
    project: Union[str, Unset] = UNSET
    output: Union[str, Unset] = UNSET
    due_date: Union[str, None, Unset] = UNSET
    recurrence: Union[Recurrence, None, Unset] = UNSET

    @classmethod
    def from_payload(cls, payload: dict) -> "TaskPatch":
        """Build a patch from an already validated wire payload.

        Unknown keys are ignored. Text fields are trimmed.
        """
        values = {}
        for key, name in PAYLOAD_KEYS.items():
            if key not in payload:
                continue
            value = payload[key]
            if name in _TRIMMED:
                value = value.strip()
            elif name == "status":
                value = TaskStatus(value)
            elif name == "priority":
                value = TaskPriority(value)
            elif name == "assignees":
                value = tuple(value)
            elif name == "recurrence" and value is not None:
                value = Recurrence(value)
            values[name] = value
        return cls(**values)

    def provided(self) -> dict:
        """Fields the client mentioned, including explicit clears."""
        return {
            f.name: getattr(self, f.name)
            for f in dataclass_fields(self)
            if getattr(self, f.name) is not UNSET
        }


@dataclass(frozen=True)
class WritePlan:
    """Column writes for the source task and the status side effect."""
    fields: dict
    effect: Effect

    @property
    def successor(self) -> Optional[dict]:
        if isinstance(self.effect, SpawnSuccessor):
            return self.effect.fields
        return None


def apply_partial(existing: Task, patch: TaskPatch, now: str) -> WritePlan:
    """Compute the writes that *patch* makes to *existing*.

    Omitted fields are never written. ``updated_at`` is always written, even
    when nothing visible changes. Completing a recurring task also clears its
    recurrence, whatever the patch says about it.
    """
    new_status = existing.status if patch.status is UNSET else patch.status
    effect = transition(existing, TaskStatus(new_status))

    writes = patch.provided()
    if "assignees" in writes:
        writes["assignees"] = encode_assignees(writes["assignees"])
    if isinstance(effect, SpawnSuccessor):
        writes["recurrence"] = None
    writes["updated_at"] = now
    return WritePlan(fields=writes, effect=effect)
