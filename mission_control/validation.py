# mission_control/validation.py
"""Field rules for task payloads.

Every rule is evaluated so callers can report all problems in one response;
nothing here short-circuits on the first violation.
"""

import re
from typing import Any

from mission_control.errors import ValidationFailed
from mission_control.models import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    Recurrence,
    TaskPriority,
    TaskStatus,
)

# Only the leading YYYY-MM-DD is checked; trailing text is kept as sent.
DUE_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")

STATUS_VALUES = [s.value for s in TaskStatus]
PRIORITY_VALUES = [p.value for p in TaskPriority]
RECURRENCE_VALUES = [r.value for r in Recurrence]


def validate_task_payload(payload: Any, partial: bool) -> list[str]:
    """Return every violation in *payload*, or an empty list.

    With ``partial=False`` the payload must carry a non-blank title; with
    ``partial=True`` only the keys present are checked.
    """
    if not isinstance(payload, dict):
        return ["Request body must be a JSON object"]

    errors: list[str] = []

    if not partial:
        title = payload.get("title")
        if not isinstance(title, str) or not title.strip():
            errors.append("Title is required")

    if "title" in payload:
        title = payload["title"]
        if not isinstance(title, str):
            errors.append("Title must be a string")
        elif partial and not title.strip():
            errors.append("Title cannot be blank")
        elif len(title) > TITLE_MAX_LENGTH:
            errors.append(f"Title must be {TITLE_MAX_LENGTH} characters or less")

    if "description" in payload:
        description = payload["description"]
        if not isinstance(description, str):
            errors.append("Description must be a string")
        elif len(description) > DESCRIPTION_MAX_LENGTH:
            errors.append(
                f"Description must be {DESCRIPTION_MAX_LENGTH} characters or less"
            )

    if "status" in payload and payload["status"] not in STATUS_VALUES:
        errors.append(f"Status must be one of: {', '.join(STATUS_VALUES)}")

    if "priority" in payload and payload["priority"] not in PRIORITY_VALUES:
        errors.append(f"Priority must be one of: {', '.join(PRIORITY_VALUES)}")

    if "assignees" in payload:
        assignees = payload["assignees"]
        if not isinstance(assignees, list):
            errors.append("Assignees must be an array")
        elif not all(isinstance(a, str) for a in assignees):
            errors.append("Each assignee must be a string")

    recurrence = payload.get("recurrence")
    if recurrence is not None and recurrence not in RECURRENCE_VALUES:
        errors.append(f"Recurrence must be one of: {', '.join(RECURRENCE_VALUES)}")

    for field in ("project", "output"):
        if field in payload and not isinstance(payload[field], str):
            errors.append(f"{field.capitalize()} must be a string")

    due_date = payload.get("dueDate")
    if due_date is not None and (
        not isinstance(due_date, str) or not DUE_DATE_PATTERN.match(due_date)
    ):
        errors.append("Due date must be in YYYY-MM-DD format")

    return errors


def ensure_valid(payload: Any, partial: bool) -> None:
    """Raise :class:`ValidationFailed` carrying every violation in *payload*."""
    errors = validate_task_payload(payload, partial)
    if errors:
        raise ValidationFailed(errors)
