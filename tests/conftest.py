"""Shared test fixtures."""

from pathlib import Path

import pytest

from folio.chat.session import SessionStore
from folio.storage import KeyValueStore


@pytest.fixture(autouse=False)
def _no_turso(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure tests use local file, not remote Turso."""
    monkeypatch.setattr("folio.config.settings.turso_database_url", "")


@pytest.fixture
def kv(tmp_path: Path, _no_turso: None) -> KeyValueStore:
    """A KeyValueStore backed by a temp database."""
    return KeyValueStore(db_path=tmp_path / "test.db")


@pytest.fixture
def sessions(kv: KeyValueStore) -> SessionStore:
    """A SessionStore with the default 50-message window."""
    return SessionStore(kv=kv, max_messages=50)
