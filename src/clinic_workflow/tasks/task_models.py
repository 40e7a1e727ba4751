# src/clinic_workflow/tasks/task_models.py

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any

# Stored in place of a missing value. Submitted text may never contain NUL,
# so this cannot collide with a real field (the empty string stays a real value).
ABSENT = "\x00"

BASIC_FIELDS: tuple[str, ...] = (
    "location",
    "staff",
    "customer",
    "initial_post",
    "initial_confirm",
    "final_post",
    "final_confirm",
)

# The check state is a string of digits: the first digit is the format version,
# each following digit is 1 (pass) or 0 (fail) for one inspection item.
# See tasks/inspection.py for the per-version item order.
DETAIL_FIELDS: tuple[str, ...] = (
    "initial_check_state",
    "remedy",
    "final_check_state",
    "additional",
)


class Stage(StrEnum):
    """
    Task lifecycle stage.

    The stage is never stored: it is derived from which fields are present.
    """

    CREATED = "created"
    INTAKE_POSTED = "intake-posted"
    INTAKE_CONFIRMED = "intake-confirmed"
    COMPLETION_POSTED = "completion-posted"
    COMPLETION_CONFIRMED = "completion-confirmed"


@dataclass(slots=True)
class TaskRecord:
    """In-memory aggregate of one task, merged from the Basic and Detail stores."""

    id: int

    # Basic store
    location: str | None = None
    staff: str | None = None
    customer: str | None = None
    initial_post: str | None = None
    initial_confirm: str | None = None
    final_post: str | None = None
    final_confirm: str | None = None

    # Detail store
    initial_check_state: str | None = None
    remedy: str | None = None
    final_check_state: str | None = None
    additional: str | None = None

    @property
    def stage(self) -> Stage:
        if self.final_confirm is not None:
            return Stage.COMPLETION_CONFIRMED
        if self.final_post is not None:
            return Stage.COMPLETION_POSTED
        if self.initial_confirm is not None:
            return Stage.INTAKE_CONFIRMED
        if self.initial_post is not None:
            return Stage.INTAKE_POSTED
        return Stage.CREATED

    @classmethod
    def from_parts(
        cls, task_id: int, basic: dict[str, str | None], detail: dict[str, str | None]
    ) -> TaskRecord:
        return cls(id=task_id, **basic, **detail)

    def basic_fields(self) -> dict[str, str | None]:
        return {name: getattr(self, name) for name in BASIC_FIELDS}

    def detail_fields(self) -> dict[str, str | None]:
        return {name: getattr(self, name) for name in DETAIL_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["stage"] = self.stage.value
        return out


@dataclass(frozen=True, slots=True)
class IntakeReport:
    """What staff submit when a device is handed in."""

    location: str
    staff: str
    customer: str
    check_state: str
    remedy: str
    post_time: str

    def basic_fields(self) -> dict[str, str | None]:
        return {
            "location": self.location,
            "staff": self.staff,
            "customer": self.customer,
            "initial_post": self.post_time,
        }

    def detail_fields(self) -> dict[str, str | None]:
        return {
            "initial_check_state": self.check_state,
            "remedy": self.remedy,
        }


@dataclass(frozen=True, slots=True)
class CompletionReport:
    """What staff submit when the repair is finished. `additional` is optional."""

    check_state: str
    post_time: str
    additional: str | None = None

    def basic_fields(self) -> dict[str, str | None]:
        return {"final_post": self.post_time}

    def detail_fields(self) -> dict[str, str | None]:
        return {
            "final_check_state": self.check_state,
            "additional": self.additional,
        }
