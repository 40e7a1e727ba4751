# src/clinic_workflow/tasks/task_errors.py

from __future__ import annotations


class TaskError(Exception):
    """Base class for every failure raised by the task lifecycle core."""

    code = "TASK_ERROR"


class RecordNotFound(TaskError):
    """No row for the given id in one (or both) of the stores."""

    code = "NOT_FOUND"

    def __init__(self, task_id: int, store: str | None = None) -> None:
        where = f" in {store} store" if store else ""
        super().__init__(f"task {task_id} not found{where}")
        self.task_id = task_id
        self.store = store


class DuplicateIdentity(TaskError):
    """An allocated id already exists in a store (allocator/store disagreement)."""

    code = "DUPLICATE_IDENTITY"

    def __init__(self, task_id: int, store: str | None = None) -> None:
        where = f" in {store} store" if store else ""
        super().__init__(f"task id {task_id} already exists{where}")
        self.task_id = task_id
        self.store = store


class StorageUnavailable(TaskError):
    """Underlying SQLite connection or query failure."""

    code = "STORAGE_UNAVAILABLE"


class MalformedInput(TaskError):
    """A submission is missing a required field or carries an invalid value."""

    code = "MALFORMED_INPUT"


class InvalidTransition(TaskError):
    """Operation is not allowed from the task's current stage."""

    code = "INVALID_TRANSITION"

    def __init__(self, task_id: int, operation: str, stage: str) -> None:
        super().__init__(f"cannot {operation} task {task_id} at stage {stage}")
        self.task_id = task_id
        self.operation = operation
        self.stage = stage


class IdentityExhausted(TaskError):
    """The 32-bit signed id space has no values left."""

    code = "IDENTITY_EXHAUSTED"
