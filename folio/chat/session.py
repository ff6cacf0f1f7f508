"""Durable conversation sessions with a bounded FIFO window.

Each session key owns one JSON-encoded message log in the key/value store.
Mutations for a key are serialized by a per-key ``asyncio.Lock`` so two
requests against the same session (e.g. two browser tabs) cannot lose each
other's appends. Different keys never contend.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
import weakref
from typing import TYPE_CHECKING

from folio.config import settings
from folio.models import ChatMessage, Role
from folio.storage import KeyValueStore

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

_KEY_PREFIX = "session:"


def _now_ms() -> int:
    return int(time.time() * 1000)


class ChatSession:
    """Conversation history for a single session key."""

    def __init__(
        self,
        session_id: str,
        kv: KeyValueStore,
        lock: asyncio.Lock,
        max_messages: int,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.session_id = session_id
        self._kv = kv
        self._lock = lock
        self._max_messages = max_messages
        self._clock = clock

    @property
    def _storage_key(self) -> str:
        return f"{_KEY_PREFIX}{self.session_id}"

    async def _load(self) -> list[ChatMessage]:
        raw = await self._kv.get(self._storage_key)
        if not raw:
            return []
        return [ChatMessage.model_validate(m) for m in json.loads(raw)]

    async def _save(self, messages: list[ChatMessage]) -> None:
        payload = json.dumps([m.model_dump() for m in messages])
        await self._kv.put(self._storage_key, payload)

    async def get_history(self) -> list[ChatMessage]:
        """Full stored log, oldest first."""
        return await self._load()

    async def get_recent_context(self, n: int | None = None) -> list[ChatMessage]:
        """Last *n* messages in stored order, for prompt assembly."""
        n = settings.recent_context_size if n is None else n
        if n <= 0:
            return []
        return (await self._load())[-n:]

    async def append(self, role: Role, content: str) -> ChatMessage:
        """Timestamp, append and trim to the window, then persist the whole log."""
        (message,) = await self.append_many([(role, content)])
        return message

    async def append_many(self, entries: list[tuple[Role, str]]) -> list[ChatMessage]:
        """Append several messages under one lock with a single save.

        Either every entry is persisted or, if the save fails, none is.
        """
        async with self._lock:
            messages = await self._load()
            added = [
                ChatMessage(role=role, content=content, timestamp=self._clock())
                for role, content in entries
            ]
            messages.extend(added)
            if len(messages) > self._max_messages:
                messages = messages[len(messages) - self._max_messages :]
            await self._save(messages)
        return added

    async def clear(self) -> None:
        """Replace the log with an empty one."""
        async with self._lock:
            await self._save([])
        logger.info("Cleared session %s", self.session_id)


class SessionStore:
    """Registry of sessions keyed by opaque session ID.

    Singleton accessed via ``SessionStore.get()``.  Locks are held weakly, so
    a key's lock lives only while some coroutine is using that session.
    """

    _instance: SessionStore | None = None

    def __init__(
        self,
        kv: KeyValueStore | None = None,
        max_messages: int | None = None,
    ) -> None:
        self._kv = kv or KeyValueStore.get_instance()
        if max_messages is None:
            max_messages = settings.session_max_messages
        self._max_messages = max_messages
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @classmethod
    def get(cls) -> SessionStore:
        """Return the shared SessionStore instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset the singleton (for testing)."""
        cls._instance = None

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def session(self, session_id: str) -> ChatSession:
        """Return a handle for *session_id*. Storage is created lazily on first append."""
        return ChatSession(
            session_id,
            kv=self._kv,
            lock=self._lock_for(session_id),
            max_messages=self._max_messages,
        )
