"""SQLite-backed persistent client state store.

Persists small JSON values (such as the last selected location under
``savedLocation``) to a SQLite database on disk so a client session can
restore them on the next start.  Uses sync ``sqlite3``; each operation
touches a single row.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any

import structlog

from eventfinder.interfaces.state_store import IStateStore
from eventfinder.utils.logging import get_logger

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS {table} (
    key        TEXT PRIMARY KEY,
    value_json TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_UPSERT_SQL = """\
INSERT INTO {table} (key, value_json)
VALUES (?, ?)
ON CONFLICT(key)
DO UPDATE SET value_json = excluded.value_json,
              updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_SELECT_SQL = "SELECT value_json FROM {table} WHERE key = ?;"

_DELETE_SQL = "DELETE FROM {table} WHERE key = ?;"


class SQLiteStateStore(IStateStore):
    """Key/value store backed by a single SQLite table.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Parent directories are created
        on :meth:`initialize`.
    table_name:
        Table to use, so several stores can share one database.
    """

    def __init__(self, db_path: str | Path, table_name: str = "client_state") -> None:
        self._db_path = Path(db_path)
        self._table = table_name
        self._initialized = False
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Create the table if needed.  Safe to call more than once."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._connect()
        try:
            conn.execute(_CREATE_TABLE_SQL.format(table=self._table))
            conn.commit()
        finally:
            conn.close()
        self._initialized = True
        self._logger.info(
            "state_store_initialized", db_path=str(self._db_path), table=self._table
        )

    # ------------------------------------------------------------------
    # IStateStore
    # ------------------------------------------------------------------

    def get(self, key: str) -> Any | None:
        raw = self.get_raw(key)
        if raw is None:
            return None
        return json.loads(raw)

    def get_raw(self, key: str) -> str | None:
        """Return the stored JSON text for *key* without decoding it."""
        self._ensure_initialized()
        conn = self._connect()
        try:
            row = conn.execute(_SELECT_SQL.format(table=self._table), (key,)).fetchone()
        finally:
            conn.close()
        return row[0] if row else None

    def set(self, key: str, value: Any) -> None:
        self.set_raw(key, json.dumps(value))

    def set_raw(self, key: str, raw: str) -> None:
        """Store an already-encoded string as-is (no validation)."""
        self._ensure_initialized()
        conn = self._connect()
        try:
            conn.execute(_UPSERT_SQL.format(table=self._table), (key, raw))
            conn.commit()
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        self._ensure_initialized()
        conn = self._connect()
        try:
            conn.execute(_DELETE_SQL.format(table=self._table), (key,))
            conn.commit()
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self.initialize()

    def _connect(self) -> sqlite3.Connection:
        """Open a new SQLite connection with WAL mode for concurrency."""
        conn = sqlite3.connect(str(self._db_path))
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def get_provider_name(self) -> str:
        return f"sqlite_state_store:{self._table}"
