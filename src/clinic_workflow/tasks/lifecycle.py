# src/clinic_workflow/tasks/lifecycle.py

from __future__ import annotations

"""
Task lifecycle controller.

Owns the four-stage workflow

    created -> intake-posted -> intake-confirmed -> completion-posted -> completion-confirmed

and writes every mutation through to both stores. Every operation reads the
current record by id, writes only the fields of its own stage and leaves the
rest untouched.

Concurrency: one coarse lock covers the whole manager (stores and allocator)
for the duration of each operation. Store calls are blocking; a stalled store
stalls every request.
"""

import logging
import threading
from collections.abc import Mapping

from ..core.ports import TaskRepo
from .identity import IdentityAllocator
from .inspection import validate_check_state
from .task_errors import InvalidTransition, MalformedInput, TaskError
from .task_models import ABSENT, CompletionReport, IntakeReport, Stage, TaskRecord

logger = logging.getLogger(__name__)

# Each operation may run from the stage before it, or again from its own stage.
ALLOWED_FROM: dict[str, tuple[Stage, ...]] = {
    "submit_intake": (Stage.CREATED, Stage.INTAKE_POSTED),
    "confirm_intake": (Stage.INTAKE_POSTED, Stage.INTAKE_CONFIRMED),
    "submit_completion": (Stage.INTAKE_CONFIRMED, Stage.COMPLETION_POSTED),
    "confirm_completion": (Stage.COMPLETION_POSTED, Stage.COMPLETION_CONFIRMED),
}


def _require_text(name: str, value: object) -> str:
    if value is None:
        raise MalformedInput(f"missing required field: {name}")
    if not isinstance(value, str):
        raise MalformedInput(f"field {name} must be a string")
    if ABSENT in value:
        raise MalformedInput(f"field {name} contains a NUL character")
    return value


def _optional_text(name: str, value: object) -> str | None:
    if value is None:
        return None
    return _require_text(name, value)


def _validate_intake(report: IntakeReport) -> None:
    for name in ("location", "staff", "customer", "check_state", "remedy", "post_time"):
        _require_text(name, getattr(report, name))
    validate_check_state(report.check_state)


def _validate_completion(report: CompletionReport) -> None:
    _require_text("check_state", report.check_state)
    _require_text("post_time", report.post_time)
    _optional_text("additional", report.additional)
    validate_check_state(report.check_state)


class LifecycleController:
    """
    Coordinates the Basic and Detail stores as one logical task record.

    With `enforce_order=False` stage ordering is advisory only, which is how
    the first version of the service behaved: any confirmation may be written
    at any time.
    """

    def __init__(
        self,
        store: TaskRepo,
        allocator: IdentityAllocator,
        *,
        enforce_order: bool = True,
    ) -> None:
        self._store = store
        self._allocator = allocator
        self._enforce_order = enforce_order
        self._lock = threading.RLock()

    @property
    def enforce_order(self) -> bool:
        return self._enforce_order

    # ---- helpers ----

    def _check_transition(self, record: TaskRecord, operation: str) -> None:
        if not self._enforce_order:
            return
        stage = record.stage
        if stage not in ALLOWED_FROM[operation]:
            raise InvalidTransition(record.id, operation, stage.value)

    def _write(
        self,
        record: TaskRecord,
        operation: str,
        basic: Mapping[str, str | None],
        detail: Mapping[str, str | None],
    ) -> TaskRecord:
        before = record.stage
        try:
            self._store.update(record.id, basic=basic, detail=detail)
        except TaskError:
            logger.error("%s failed for task id=%s; record may be partially written", operation, record.id)
            raise
        for name, value in {**basic, **detail}.items():
            setattr(record, name, value)
        logger.info("Task id=%s %s: %s -> %s", record.id, operation, before.value, record.stage.value)
        return record

    # ---- public API ----

    def create(self) -> TaskRecord:
        """
        Allocate an id and insert an empty row in both stores.

        If only one insert succeeds the split row is left in place and the
        error propagates; the id is burnt and the next create gets a fresh one.
        """
        with self._lock:
            task_id = self._allocator.next_id()
            try:
                record = self._store.create(task_id)
            except TaskError:
                logger.error("Task creation failed id=%s; id discarded", task_id)
                raise
            logger.info("Task created id=%s", task_id)
            return record

    def create_with_intake(self, report: IntakeReport) -> TaskRecord:
        """Create a task and submit its intake report under one hold of the lock."""
        _validate_intake(report)
        with self._lock:
            record = self.create()
            return self.submit_intake(record.id, report)

    def fetch(self, task_id: int) -> TaskRecord:
        with self._lock:
            return self._store.load(task_id)

    def submit_intake(self, task_id: int, report: IntakeReport) -> TaskRecord:
        _validate_intake(report)
        with self._lock:
            record = self._store.load(task_id)
            self._check_transition(record, "submit_intake")
            return self._write(
                record, "submit_intake", report.basic_fields(), report.detail_fields()
            )

    def confirm_intake(self, task_id: int, confirm_time: str) -> TaskRecord:
        confirm_time = _require_text("confirm_time", confirm_time)
        with self._lock:
            record = self._store.load(task_id)
            self._check_transition(record, "confirm_intake")
            return self._write(record, "confirm_intake", {"initial_confirm": confirm_time}, {})

    def submit_completion(self, task_id: int, report: CompletionReport) -> TaskRecord:
        _validate_completion(report)
        with self._lock:
            record = self._store.load(task_id)
            self._check_transition(record, "submit_completion")
            return self._write(
                record, "submit_completion", report.basic_fields(), report.detail_fields()
            )

    def confirm_completion(self, task_id: int, confirm_time: str) -> TaskRecord:
        confirm_time = _require_text("confirm_time", confirm_time)
        with self._lock:
            record = self._store.load(task_id)
            self._check_transition(record, "confirm_completion")
            return self._write(record, "confirm_completion", {"final_confirm": confirm_time}, {})
