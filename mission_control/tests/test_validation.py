"""Tests for task payload validation."""

from mission_control.errors import ValidationFailed
from mission_control.validation import ensure_valid, validate_task_payload

import pytest


class TestFullPayload:
    def test_minimal_payload_is_valid(self):
        assert validate_task_payload({"title": "Write report"}, partial=False) == []

    def test_title_required(self):
        assert validate_task_payload({}, partial=False) == ["Title is required"]

    def test_blank_title_rejected(self):
        errors = validate_task_payload({"title": "   "}, partial=False)
        assert errors == ["Title is required"]

    def test_non_string_title_reports_both_rules(self):
        errors = validate_task_payload({"title": 42}, partial=False)
        assert "Title is required" in errors
        assert "Title must be a string" in errors

    def test_every_violation_is_reported(self):
        payload = {
            "title": "",
            "description": "x" * 5001,
            "status": "Archived",
            "priority": "Urgent",
            "assignees": "alice",
            "recurrence": "yearly",
            "project": 7,
            "output": ["done"],
            "dueDate": "next friday",
        }
        errors = validate_task_payload(payload, partial=False)
        assert len(errors) == 9
        assert errors[0] == "Title is required"

    def test_body_must_be_object(self):
        assert validate_task_payload(["title"], partial=False) == [
            "Request body must be a JSON object"
        ]


class TestPartialPayload:
    def test_empty_change_set_is_valid(self):
        assert validate_task_payload({}, partial=True) == []

    def test_title_length_still_checked(self):
        errors = validate_task_payload({"title": "x" * 501}, partial=True)
        assert errors == ["Title must be 500 characters or less"]

    def test_title_at_limit_is_valid(self):
        assert validate_task_payload({"title": "x" * 500}, partial=True) == []

    def test_blank_title_rejected(self):
        """A change-set may not trim a title down to nothing."""
        errors = validate_task_payload({"title": "   "}, partial=True)
        assert errors == ["Title cannot be blank"]

    def test_null_clears_are_allowed(self):
        payload = {"dueDate": None, "recurrence": None}
        assert validate_task_payload(payload, partial=True) == []

    def test_null_description_rejected(self):
        errors = validate_task_payload({"description": None}, partial=True)
        assert errors == ["Description must be a string"]

    def test_assignees_elements_must_be_strings(self):
        errors = validate_task_payload({"assignees": ["alice", 3]}, partial=True)
        assert errors == ["Each assignee must be a string"]

    def test_due_date_trailing_text_accepted(self):
        payload = {"dueDate": "2024-01-01T09:00:00Z"}
        assert validate_task_payload(payload, partial=True) == []

    def test_due_date_must_start_with_calendar_date(self):
        errors = validate_task_payload({"dueDate": "01/02/2024"}, partial=True)
        assert errors == ["Due date must be in YYYY-MM-DD format"]

    def test_all_statuses_accepted(self):
        for status in ("Recurring", "Backlog", "In Progress", "In Review", "Done"):
            assert validate_task_payload({"status": status}, partial=True) == []


def test_ensure_valid_raises_with_details():
    with pytest.raises(ValidationFailed) as excinfo:
        ensure_valid({"title": "", "priority": "Urgent"}, partial=False)
    assert excinfo.value.details == [
        "Title is required",
        "Priority must be one of: High, Medium, Low",
    ]
