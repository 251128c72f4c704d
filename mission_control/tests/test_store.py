"""Tests for the task repository, id generation and seeding."""

import json

from mission_control.models import Recurrence, TaskStatus
from mission_control.store import TaskStore, new_task_id


def test_ids_strictly_increase():
    """Ids keep growing even within one millisecond."""
    ids = [int(new_task_id()) for _ in range(50)]
    assert ids == sorted(set(ids))


def test_create_assigns_id_and_timestamps(store: TaskStore):
    """Create fills in id, timestamps and defaults."""
    task = store.create({"title": "First"})
    assert task.id
    assert task.created_at == task.updated_at
    assert task.status is TaskStatus.backlog
    assert store.count() == 1


def test_update_commits_successor_with_source(store: TaskStore):
    """Source update and spawned successor land together."""
    task = store.create({"title": "Series", "recurrence": Recurrence.daily})
    updated, spawned = store.update(
        task,
        {"status": TaskStatus.done, "recurrence": None},
        successor={"title": "Series", "recurrence": Recurrence.daily, "due_date": None},
    )
    assert updated.recurrence is None
    assert spawned is not None
    assert spawned.id != updated.id
    assert store.get(spawned.id).recurrence is Recurrence.daily
    assert store.count() == 2


def test_delete(store: TaskStore):
    """Deleted tasks can no longer be fetched."""
    task = store.create({"title": "Gone"})
    store.delete(task)
    assert store.get(task.id) is None


class TestSeedFromFile:
    def test_seeds_empty_store(self, store: TaskStore, tmp_path):
        """Seed rows are inserted with defaults for missing fields."""
        seed = tmp_path / "tasks.json"
        seed.write_text(json.dumps({
            "tasks": [
                {
                    "id": "1",
                    "title": "Seeded",
                    "status": "In Review",
                    "priority": "High",
                    "assignees": ["alice"],
                    "createdAt": "2024-01-01T00:00:00.000Z",
                },
                {"id": "2", "title": "Bare", "status": "Backlog", "priority": "Low"},
            ]
        }))
        assert store.seed_from_file(seed) == 2
        task = store.get("1")
        assert task.status is TaskStatus.in_review
        assert task.assignees == '["alice"]'
        assert task.description == ""
        assert store.get("2").created_at

    def test_skips_non_empty_store(self, store: TaskStore, tmp_path):
        """An existing board is never reseeded."""
        store.create({"title": "Existing"})
        seed = tmp_path / "tasks.json"
        seed.write_text(json.dumps({"tasks": [{"id": "1", "title": "Seeded"}]}))
        assert store.seed_from_file(seed) == 0
        assert store.count() == 1

    def test_missing_file(self, store: TaskStore, tmp_path):
        """No seed file means nothing to load."""
        assert store.seed_from_file(tmp_path / "absent.json") == 0

    def test_unreadable_file_is_skipped(self, store: TaskStore, tmp_path):
        """Broken seed JSON is logged and ignored."""
        seed = tmp_path / "tasks.json"
        seed.write_text("{broken")
        assert store.seed_from_file(seed) == 0
        assert store.count() == 0
