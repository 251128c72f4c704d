# mission_control/models.py
"""Task model and API representations for the task board."""

import json
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import Field, SQLModel


class TaskStatus(str, Enum):
    recurring = "Recurring"
    backlog = "Backlog"
    in_progress = "In Progress"
    in_review = "In Review"
    done = "Done"


class TaskPriority(str, Enum):
    high = "High"
    medium = "Medium"
    low = "Low"


class Recurrence(str, Enum):
    daily = "daily"
    weekly = "weekly"
    biweekly = "biweekly"
    monthly = "monthly"


TITLE_MAX_LENGTH = 500
DESCRIPTION_MAX_LENGTH = 5000


class Task(SQLModel, table=True):
    """Task database table.

    ``assignees`` is stored as a JSON array string. Timestamps are ISO-8601
    UTC strings so that lexical order matches creation order.
    """
    id: str = Field(primary_key=True)
    title: str = Field(max_length=TITLE_MAX_LENGTH)
    description: str = Field(default="")
    status: TaskStatus = Field(default=TaskStatus.backlog)
    priority: TaskPriority = Field(default=TaskPriority.medium)
    assignees: str = Field(default="[]")
    project: str = Field(default="")
    output: str = Field(default="")
    due_date: Optional[str] = Field(default=None)
    recurrence: Optional[Recurrence] = Field(default=None)
    created_at: str = Field(index=True)
    updated_at: str


def encode_assignees(assignees) -> str:
    return json.dumps(list(assignees or []))


def decode_assignees(raw: Optional[str]) -> list[str]:
    return json.loads(raw or "[]")


class TaskRead(BaseModel):
    """Client-facing task with assignees decoded and camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    assignees: list[str]
    project: str
    output: str
    due_date: Optional[str] = None
    recurrence: Optional[Recurrence] = None
    created_at: str
    updated_at: str

    @classmethod
    def from_record(cls, task: Task) -> "TaskRead":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            status=task.status,
            priority=task.priority,
            assignees=decode_assignees(task.assignees),
            project=task.project,
            output=task.output,
            due_date=task.due_date,
            recurrence=task.recurrence,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )

    def to_json(self) -> dict:
        """Dump with camelCase keys and enum values, as sent over the wire."""
        return self.model_dump(by_alias=True, mode="json")
