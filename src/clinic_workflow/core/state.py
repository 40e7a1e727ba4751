# src/clinic_workflow/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..tasks.lifecycle import LifecycleController
from ..tasks.task_store import TaskStore
from ..tasks.tokens import TokenGenerator


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules.
    settings: object

    task_store: TaskStore
    controller: LifecycleController
    tokens: TokenGenerator
