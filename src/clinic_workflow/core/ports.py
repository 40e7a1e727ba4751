# src/clinic_workflow/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The lifecycle controller depends on Protocols instead of the SQLite classes.
This keeps storage swappable and lets tests inject in-memory or failing stores.
"""

from collections.abc import Mapping
from typing import Any, Protocol


class FieldTable(Protocol):
    """One physical store (Basic or Detail): a key-value table keyed by task id."""

    name: str

    def ensure_schema(self) -> None: ...
    def max_id(self) -> int | None: ...
    def insert_identity(self, task_id: int) -> None: ...
    def write_fields(self, task_id: int, values: Mapping[str, str | None]) -> None: ...
    def read_fields(self, task_id: int) -> dict[str, str | None]: ...


class TaskRepo(Protocol):
    """Whole-record task storage; hides how many physical tables back it."""

    def max_id(self) -> int | None: ...
    def create(self, task_id: int) -> Any: ...  # TaskRecord (Any to avoid import coupling)
    def update(
            self,
            task_id: int,
            *,
            basic: Mapping[str, str | None] | None = None,
            detail: Mapping[str, str | None] | None = None,
    ) -> None: ...
    def load(self, task_id: int) -> Any: ...


class IdSource(Protocol):
    """Where the identity allocator reads its starting point from."""

    def max_id(self) -> int | None: ...
