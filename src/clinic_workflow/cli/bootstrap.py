# src/clinic_workflow/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist, including the image backup dir,
- wires the stores, the id allocator and the lifecycle controller into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..tasks.identity import IdentityAllocator
from ..tasks.lifecycle import LifecycleController
from ..tasks.task_store import TaskStore
from ..tasks.tokens import TokenGenerator

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.basic_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.detail_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.image_backup_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    task_store = TaskStore.open(settings.basic_db_path, settings.detail_db_path)
    # The allocator reads only the Basic store; it is seeded on the first create.
    allocator = IdentityAllocator(task_store)
    controller = LifecycleController(
        task_store,
        allocator,
        enforce_order=bool(getattr(settings, "enforce_stage_order", True)),
    )
    logger.info(
        "Task manager ready basic=%s detail=%s enforce_stage_order=%s",
        settings.basic_db_path,
        settings.detail_db_path,
        controller.enforce_order,
    )
    return AppState(
        settings=settings,
        task_store=task_store,
        controller=controller,
        tokens=TokenGenerator(),
    )
