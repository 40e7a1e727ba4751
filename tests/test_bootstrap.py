# tests/test_bootstrap.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from clinic_workflow.cli.bootstrap import create_initial_state
from clinic_workflow.config import Settings


def test_create_initial_state_prepares_directories(settings: SimpleNamespace) -> None:
    state = create_initial_state(settings=settings)

    assert settings.image_backup_dir.is_dir()
    assert settings.basic_db_path.exists()
    assert settings.detail_db_path.exists()
    assert state.controller.enforce_order is True
    assert state.controller.create().id == 1


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CLINIC_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("CLINIC_PORT", "9090")
    monkeypatch.setenv("CLINIC_CORS_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("CLINIC_ENFORCE_STAGE_ORDER", "false")
    monkeypatch.delenv("CLINIC_DEBUG", raising=False)
    monkeypatch.delenv("CLINIC_BASIC_DB_PATH", raising=False)
    monkeypatch.delenv("CLINIC_DETAIL_DB_PATH", raising=False)
    monkeypatch.delenv("CLINIC_IMAGE_BACKUP_DIR", raising=False)

    s = Settings.from_env()

    assert s.port == 9090
    assert s.cors_origins == ["http://a.test", "http://b.test"]
    assert s.enforce_stage_order is False
    assert s.basic_db_path == tmp_path / "clinic_basic.db"
    assert s.detail_db_path == tmp_path / "clinic_detail.db"
    assert s.image_backup_dir == tmp_path / "images"


def test_debug_settings_use_test_databases(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CLINIC_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("CLINIC_DEBUG", "1")
    monkeypatch.setenv("CLINIC_PORT", "not-a-number")
    monkeypatch.delenv("CLINIC_BASIC_DB_PATH", raising=False)
    monkeypatch.delenv("CLINIC_DETAIL_DB_PATH", raising=False)

    s = Settings.from_env()

    assert s.port == 8080
    assert s.basic_db_path == tmp_path / "clinic_test.db"
    assert s.detail_db_path == tmp_path / "clinic_test_detail.db"
