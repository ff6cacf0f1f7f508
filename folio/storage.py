"""KeyValueStore: durable string values keyed by string, via libsql.

The connection target comes from settings:

- **Hosted**: ``TURSO_DATABASE_URL`` + ``TURSO_AUTH_TOKEN`` → remote Turso
- **Local**: no Turso env vars → SQLite file at ``database_path``

The libsql driver is synchronous. Each ``get``/``put`` opens a connection,
runs its statement and closes, all inside one ``asyncio.to_thread()`` call.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

import libsql

from folio.config import settings

logger = logging.getLogger(__name__)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS kv_store (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL
)
"""

_SELECT = "SELECT value FROM kv_store WHERE key = ?"

_UPSERT = """
INSERT INTO kv_store (key, value) VALUES (?, ?)
ON CONFLICT(key) DO UPDATE SET value = excluded.value
"""


def _open(db_path: Path | None) -> Any:
    """Open a libsql connection: explicit path, then Turso, then local file."""
    if db_path is None and settings.turso_database_url:
        return libsql.connect(
            database=settings.turso_database_url,
            auth_token=settings.turso_auth_token,
        )
    path = db_path or settings.database_path
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = libsql.connect(str(path))
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    return conn


class KeyValueStore:
    """Durable ``get``/``put`` storage backing session history.

    Singleton accessed via ``KeyValueStore.get_instance()``.  Pass an explicit
    *db_path* for test isolation (e.g. ``tmp_path / "test.db"``).  Each
    ``put`` is a single-row upsert committed on its own, so readers only ever
    see a complete value.
    """

    _instance: KeyValueStore | None = None

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path
        self._initialised = False

    @classmethod
    def get_instance(cls) -> KeyValueStore:
        """Return the shared KeyValueStore instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    def _connect(self) -> Any:
        conn = _open(self._db_path)
        if not self._initialised:
            conn.execute(_CREATE_TABLE)
            conn.commit()
            self._initialised = True
        return conn

    def _get_sync(self, key: str) -> str | None:
        conn = self._connect()
        try:
            row = conn.execute(_SELECT, (key,)).fetchone()
            return row[0] if row else None
        finally:
            conn.close()

    def _put_sync(self, key: str, value: str) -> None:
        conn = self._connect()
        try:
            conn.execute(_UPSERT, (key, value))
            conn.commit()
        finally:
            conn.close()

    async def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key was never written."""
        return await asyncio.to_thread(self._get_sync, key)

    async def put(self, key: str, value: str) -> None:
        """Insert or replace the value stored under *key*."""
        await asyncio.to_thread(self._put_sync, key, value)
        logger.debug("Stored %d bytes under %s", len(value), key)
