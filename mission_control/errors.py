# mission_control/errors.py
"""Exception hierarchy shared by the API and the sync client."""


class TaskBoardError(Exception):
    """Base exception for the task board."""
    pass


class ValidationFailed(TaskBoardError):
    """A task payload broke one or more field rules.

    ``details`` holds every violation found, never just the first one.
    """

    def __init__(self, details: list[str]) -> None:
        super().__init__("Validation failed")
        self.details = list(details)


class TaskNotFound(TaskBoardError):
    """No task exists with the requested id."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class PersistenceFailure(TaskBoardError):
    """The storage layer failed; the message is safe to show to clients."""
    pass


class SyncFailure(TaskBoardError):
    """A client-side request to the API failed or returned an error status."""
    pass
