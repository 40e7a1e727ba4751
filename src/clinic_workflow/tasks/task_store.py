# src/clinic_workflow/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Iterator, Mapping
from pathlib import Path

from ..core.ports import FieldTable
from .task_errors import DuplicateIdentity, RecordNotFound, StorageUnavailable
from .task_models import ABSENT, BASIC_FIELDS, DETAIL_FIELDS, TaskRecord

logger = logging.getLogger(__name__)

TABLE_NAME = "clinic_task"


class SqliteFieldTable:
    """
    One physical store: a single `clinic_task` table in its own SQLite file,
    keyed by integer id and owning a fixed subset of task columns.

    The schema is created when missing and never altered afterwards. If an
    existing table lacks one of our columns we refuse to start instead of
    migrating it.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path, columns: tuple[str, ...], *, name: str) -> None:
        self._db_path = Path(db_path)
        self._columns = tuple(columns)
        self.name = name

    @property
    def columns(self) -> tuple[str, ...]:
        return self._columns

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        return conn

    @contextlib.contextmanager
    def _session(self, action: str) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success and turn sqlite errors into StorageUnavailable."""
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            logger.exception("Cannot open %s store db=%s", self.name, self._db_path)
            raise StorageUnavailable(f"cannot open {self.name} store: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            logger.exception("%s failed on %s store db=%s", action, self.name, self._db_path)
            raise StorageUnavailable(f"{action} failed on {self.name} store: {e}") from e
        finally:
            conn.close()

    def _check_columns(self, names: Mapping[str, object] | tuple[str, ...]) -> None:
        unknown = [n for n in names if n not in self._columns]
        if unknown:
            raise ValueError(f"{self.name} store has no field(s): {', '.join(unknown)}")

    @staticmethod
    def _to_db(value: str | None) -> str:
        return ABSENT if value is None else value

    @staticmethod
    def _from_db(value: str | None) -> str | None:
        if value is None or value == ABSENT:
            return None
        return value

    # ---- public API ----

    def ensure_schema(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        # Column names come from our own constants, never from callers.
        # char(0) is ABSENT; sqlite3 refuses NUL inside the statement text itself.
        cols = ",\n".join(f"{c} TEXT NOT NULL DEFAULT (char(0))" for c in self._columns)
        with self._session("ensure_schema") as conn:
            cur = conn.cursor()
            cur.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                    id INTEGER PRIMARY KEY,
                    {cols}
                )
                """
            )
            cur.execute(f"PRAGMA table_info({TABLE_NAME})")
            present = {row["name"] for row in cur.fetchall()}

        missing = [c for c in self._columns if c not in present]
        if missing:
            raise StorageUnavailable(
                f"{self.name} store at {self._db_path} is missing column(s): {', '.join(missing)}"
            )
        logger.info("%s store ready db=%s rows=%s", self.name, self._db_path, self.count_rows())

    def count_rows(self) -> int:
        with self._session("count_rows") as conn:
            (n,) = conn.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}").fetchone()
            return int(n)

    def max_id(self) -> int | None:
        """Largest id in the table, or None when the table is empty."""
        with self._session("max_id") as conn:
            (value,) = conn.execute(f"SELECT MAX(id) FROM {TABLE_NAME}").fetchone()
            return None if value is None else int(value)

    def insert_identity(self, task_id: int) -> None:
        with self._session("insert_identity") as conn:
            try:
                conn.execute(f"INSERT INTO {TABLE_NAME} (id) VALUES (?)", (int(task_id),))
            except sqlite3.IntegrityError as e:
                raise DuplicateIdentity(task_id, self.name) from e
        logger.debug("%s store: inserted id=%s", self.name, task_id)

    def write_fields(self, task_id: int, values: Mapping[str, str | None]) -> None:
        """Overwrite the named fields only; None is stored as the absent sentinel."""
        self._check_columns(values)
        if not values:
            if not self.has_identity(task_id):
                raise RecordNotFound(task_id, self.name)
            return

        assignments = ", ".join(f"{name} = ?" for name in values)
        params = [self._to_db(v) for v in values.values()]
        params.append(int(task_id))

        with self._session("write_fields") as conn:
            cur = conn.execute(f"UPDATE {TABLE_NAME} SET {assignments} WHERE id = ?", params)
            updated = cur.rowcount
        if updated == 0:
            raise RecordNotFound(task_id, self.name)
        logger.debug("%s store: wrote id=%s fields=%s", self.name, task_id, list(values))

    def read_fields(self, task_id: int) -> dict[str, str | None]:
        select = ", ".join(self._columns)
        with self._session("read_fields") as conn:
            row = conn.execute(
                f"SELECT {select} FROM {TABLE_NAME} WHERE id = ?", (int(task_id),)
            ).fetchone()
        if row is None:
            raise RecordNotFound(task_id, self.name)
        return {c: self._from_db(row[c]) for c in self._columns}

    def has_identity(self, task_id: int) -> bool:
        with self._session("has_identity") as conn:
            row = conn.execute(
                f"SELECT 1 FROM {TABLE_NAME} WHERE id = ?", (int(task_id),)
            ).fetchone()
            return row is not None


class TaskStore:
    """
    One logical task table backed by two physical stores.

    Basic holds the summary fields, Detail holds inspection and remedy fields.
    Callers only see whole-record operations, so merging the two tables later
    does not change this interface.

    There is no transaction spanning both files: a failure between the Basic
    and Detail writes leaves a split row, and the error is propagated.
    """

    def __init__(self, basic: FieldTable, detail: FieldTable) -> None:
        self._basic = basic
        self._detail = detail

    @classmethod
    def open(cls, basic_db_path: str | Path, detail_db_path: str | Path) -> TaskStore:
        store = cls(
            SqliteFieldTable(basic_db_path, BASIC_FIELDS, name="basic"),
            SqliteFieldTable(detail_db_path, DETAIL_FIELDS, name="detail"),
        )
        store.ensure_schema()
        return store

    @property
    def basic(self) -> FieldTable:
        return self._basic

    @property
    def detail(self) -> FieldTable:
        return self._detail

    def close(self) -> None:
        """Shutdown hook (every call opens and closes its own connection)."""
        return

    def ensure_schema(self) -> None:
        self._basic.ensure_schema()
        self._detail.ensure_schema()

    def max_id(self) -> int | None:
        return self._basic.max_id()

    def create(self, task_id: int) -> TaskRecord:
        self._basic.insert_identity(task_id)
        self._detail.insert_identity(task_id)
        return TaskRecord(id=task_id)

    def update(
        self,
        task_id: int,
        *,
        basic: Mapping[str, str | None] | None = None,
        detail: Mapping[str, str | None] | None = None,
    ) -> None:
        if basic:
            self._basic.write_fields(task_id, basic)
        if detail:
            self._detail.write_fields(task_id, detail)

    def load(self, task_id: int) -> TaskRecord:
        basic = self._basic.read_fields(task_id)
        detail = self._detail.read_fields(task_id)
        return TaskRecord.from_parts(task_id, basic, detail)
