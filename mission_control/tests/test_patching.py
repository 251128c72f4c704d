"""Tests for the partial-update processor and its typed patch."""

from mission_control.models import Recurrence, Task, TaskPriority, TaskStatus
from mission_control.patching import UNSET, TaskPatch, apply_partial
from mission_control.recurrence import NoOp, SpawnSuccessor

NOW = "2024-02-01T12:00:00+00:00"


def _task(**overrides) -> Task:
    fields = {
        "id": "1",
        "title": "Water plants",
        "description": "",
        "status": TaskStatus.backlog,
        "priority": TaskPriority.medium,
        "assignees": "[]",
        "project": "Home",
        "output": "",
        "due_date": "2024-01-31",
        "recurrence": Recurrence.monthly,
        "created_at": "2024-01-01T00:00:00+00:00",
        "updated_at": "2024-01-01T00:00:00+00:00",
    }
    fields.update(overrides)
    return Task(**fields)


class TestTaskPatch:
    def test_omitted_fields_are_unset(self):
        patch = TaskPatch.from_payload({"title": "x"})
        assert patch.description is UNSET
        assert patch.due_date is UNSET
        assert patch.provided() == {"title": "x"}

    def test_explicit_null_is_a_clear(self):
        patch = TaskPatch.from_payload({"dueDate": None, "recurrence": None})
        assert patch.due_date is None
        assert patch.recurrence is None
        assert patch.provided() == {"due_date": None, "recurrence": None}

    def test_text_fields_trimmed(self):
        patch = TaskPatch.from_payload(
            {"title": "  Report ", "description": " d ", "project": " P ", "output": " o "}
        )
        assert patch.provided() == {
            "title": "Report",
            "description": "d",
            "project": "P",
            "output": "o",
        }

    def test_enums_and_assignees_converted(self):
        patch = TaskPatch.from_payload(
            {"status": "In Progress", "priority": "Low", "assignees": ["a", "a"], "recurrence": "daily"}
        )
        assert patch.status is TaskStatus.in_progress
        assert patch.priority is TaskPriority.low
        assert patch.assignees == ("a", "a")
        assert patch.recurrence is Recurrence.daily

    def test_unknown_keys_ignored(self):
        patch = TaskPatch.from_payload({"id": "999", "createdAt": "x"})
        assert patch.provided() == {}


class TestApplyPartial:
    def test_only_named_fields_and_timestamp_written(self):
        plan = apply_partial(_task(), TaskPatch.from_payload({"title": "Feed cat"}), NOW)
        assert plan.fields == {"title": "Feed cat", "updated_at": NOW}
        assert plan.effect == NoOp()
        assert plan.successor is None

    def test_empty_patch_still_touches_updated_at(self):
        plan = apply_partial(_task(), TaskPatch(), NOW)
        assert plan.fields == {"updated_at": NOW}

    def test_assignees_serialized(self):
        plan = apply_partial(_task(), TaskPatch.from_payload({"assignees": ["b", "a"]}), NOW)
        assert plan.fields["assignees"] == '["b", "a"]'

    def test_completion_spawns_and_clears_recurrence(self):
        plan = apply_partial(_task(), TaskPatch.from_payload({"status": "Done"}), NOW)
        assert isinstance(plan.effect, SpawnSuccessor)
        assert plan.fields == {"status": TaskStatus.done, "recurrence": None, "updated_at": NOW}
        assert plan.successor["due_date"] == "2024-03-02"
        assert plan.successor["status"] is TaskStatus.backlog

    def test_clear_overrides_requested_recurrence_on_spawn(self):
        patch = TaskPatch.from_payload({"status": "Done", "recurrence": "daily"})
        plan = apply_partial(_task(), patch, NOW)
        assert plan.fields["recurrence"] is None
        # The successor follows the recurrence the task had before the update
        assert plan.successor["recurrence"] is Recurrence.monthly

    def test_resaving_done_task_does_not_spawn(self):
        task = _task(status=TaskStatus.done)
        plan = apply_partial(task, TaskPatch.from_payload({"status": "Done"}), NOW)
        assert plan.effect == NoOp()
        assert "recurrence" not in plan.fields

    def test_status_omitted_keeps_existing_status_for_decision(self):
        task = _task(status=TaskStatus.done)
        plan = apply_partial(task, TaskPatch.from_payload({"output": "ok"}), NOW)
        assert plan.effect == NoOp()
