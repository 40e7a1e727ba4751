# src/clinic_workflow/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing is read from disk or network at import time except the optional .env.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotenv import load_dotenv

ENV_PREFIX = "CLINIC"

# Real environment variables win over .env entries.
load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    debug: bool

    # ---- HTTP ----
    host: str
    port: int
    cors_origins: List[str]

    # ---- Workflow ----
    enforce_stage_order: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    basic_db_path: Path
    detail_db_path: Path
    image_backup_dir: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "clinic-workflow") or "clinic-workflow"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        debug = _env_bool(_k("DEBUG"), False)

        host = _env(_k("HOST"), "127.0.0.1")
        port = _env_int(_k("PORT"), 8080)
        # "*" keeps the permissive CORS policy the front-end was written against.
        cors_origins = _env_list(_k("CORS_ORIGINS"), ["*"])

        enforce_stage_order = _env_bool(_k("ENFORCE_STAGE_ORDER"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/clinic"))
        # Debug builds use separate test databases so they never touch real tickets.
        basic_name, detail_name = (
            ("clinic_test.db", "clinic_test_detail.db")
            if debug
            else ("clinic_basic.db", "clinic_detail.db")
        )
        basic_db_path = _env_path(_k("BASIC_DB_PATH"), data_dir / basic_name)
        detail_db_path = _env_path(_k("DETAIL_DB_PATH"), data_dir / detail_name)
        image_backup_dir = _env_path(_k("IMAGE_BACKUP_DIR"), data_dir / "images")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            debug=debug,
            host=host,
            port=port,
            cors_origins=cors_origins,
            enforce_stage_order=enforce_stage_order,
            data_dir=data_dir,
            basic_db_path=basic_db_path,
            detail_db_path=detail_db_path,
            image_backup_dir=image_backup_dir,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
