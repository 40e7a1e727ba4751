# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from clinic_workflow.cli.bootstrap import create_initial_state
from clinic_workflow.core.state import AppState
from clinic_workflow.tasks.identity import IdentityAllocator
from clinic_workflow.tasks.lifecycle import LifecycleController
from clinic_workflow.tasks.task_store import TaskStore


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap and the web app.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the developer's environment and .env.
    """
    data_dir = tmp_path / "data"
    return SimpleNamespace(
        app_name="clinic-test",
        data_dir=data_dir,
        basic_db_path=data_dir / "clinic_test.db",
        detail_db_path=data_dir / "clinic_test_detail.db",
        image_backup_dir=data_dir / "images",
        enforce_stage_order=True,
        cors_origins=["*"],
    )


@pytest.fixture()
def task_store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore.open(settings.basic_db_path, settings.detail_db_path)


@pytest.fixture()
def controller(task_store: TaskStore) -> LifecycleController:
    return LifecycleController(task_store, IdentityAllocator(task_store))


@pytest.fixture()
def state(settings: SimpleNamespace) -> AppState:
    """
    AppState wired exactly like production.

    NOTE: We keep real SQLite stores here because split-store behaviour is
    part of what we want to test.
    """
    return create_initial_state(settings=settings)
