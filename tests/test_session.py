"""Tests for durable conversation sessions."""

import asyncio

import pytest

from folio.chat.session import ChatSession, SessionStore
from folio.storage import KeyValueStore


async def test_append_and_history(sessions: SessionStore) -> None:
    session = sessions.session("s1")
    await session.append("user", "hello")
    await session.append("assistant", "hi there")

    history = await session.get_history()
    assert [(m.role, m.content) for m in history] == [
        ("user", "hello"),
        ("assistant", "hi there"),
    ]


async def test_new_session_is_empty(sessions: SessionStore) -> None:
    assert await sessions.session("fresh").get_history() == []
    assert await sessions.session("fresh").get_recent_context(10) == []


async def test_append_assigns_timestamp(sessions: SessionStore) -> None:
    session = sessions.session("s1")
    first = await session.append("user", "a")
    second = await session.append("user", "b")
    assert first.timestamp > 0
    assert second.timestamp >= first.timestamp


async def test_timestamp_comes_from_clock(kv: KeyValueStore) -> None:
    session = ChatSession("s1", kv=kv, lock=asyncio.Lock(), max_messages=50, clock=lambda: 1234)
    message = await session.append("user", "hello")
    assert message.timestamp == 1234
    assert (await session.get_history())[0].timestamp == 1234


async def test_fifo_eviction(sessions: SessionStore) -> None:
    """After N appends the log holds the last min(N, 50) messages in order."""
    session = sessions.session("s1")
    for i in range(57):
        await session.append("user", f"msg {i}")

    history = await session.get_history()
    assert len(history) == 50
    assert [m.content for m in history] == [f"msg {i}" for i in range(7, 57)]


async def test_small_window(kv: KeyValueStore) -> None:
    session = SessionStore(kv=kv, max_messages=3).session("s1")
    for i in range(5):
        await session.append("user", f"msg {i}")

    assert [m.content for m in await session.get_history()] == ["msg 2", "msg 3", "msg 4"]


async def test_zero_window_keeps_nothing(kv: KeyValueStore) -> None:
    session = SessionStore(kv=kv, max_messages=0).session("s1")
    await session.append("user", "hello")
    assert await session.get_history() == []


async def test_append_many_saves_once_in_order(sessions: SessionStore, kv: KeyValueStore) -> None:
    session = sessions.session("s1")
    real_put = kv.put
    puts = 0

    async def _counting_put(key: str, value: str) -> None:
        nonlocal puts
        puts += 1
        await real_put(key, value)

    kv.put = _counting_put
    added = await session.append_many([("user", "q"), ("assistant", "a")])

    assert puts == 1
    assert [m.role for m in added] == ["user", "assistant"]
    assert [m.content for m in await session.get_history()] == ["q", "a"]


async def test_append_many_timestamps_each_message(kv: KeyValueStore) -> None:
    ticks = iter([100, 200])
    session = ChatSession(
        "s1", kv=kv, lock=asyncio.Lock(), max_messages=50, clock=lambda: next(ticks)
    )
    added = await session.append_many([("user", "q"), ("assistant", "a")])
    assert [m.timestamp for m in added] == [100, 200]


async def test_append_many_failed_save_leaves_log_untouched(
    sessions: SessionStore, kv: KeyValueStore
) -> None:
    session = sessions.session("s1")
    await session.append("user", "before")

    async def _failing_put(key: str, value: str) -> None:
        raise RuntimeError("disk full")

    kv.put = _failing_put
    with pytest.raises(RuntimeError):
        await session.append_many([("user", "q"), ("assistant", "a")])

    assert [m.content for m in await session.get_history()] == ["before"]


async def test_append_many_trims_once(kv: KeyValueStore) -> None:
    session = SessionStore(kv=kv, max_messages=3).session("s1")
    await session.append_many([("user", "a"), ("assistant", "b")])
    await session.append_many([("user", "c"), ("assistant", "d")])
    assert [m.content for m in await session.get_history()] == ["b", "c", "d"]


async def test_recent_context_is_suffix(sessions: SessionStore) -> None:
    session = sessions.session("s1")
    for i in range(14):
        await session.append("assistant" if i % 2 else "user", f"msg {i}")

    history = await session.get_history()
    recent = await session.get_recent_context(10)
    assert len(recent) == 10
    assert recent == history[-10:]


async def test_recent_context_shorter_than_window(sessions: SessionStore) -> None:
    session = sessions.session("s1")
    await session.append("user", "only")
    recent = await session.get_recent_context(10)
    assert [m.content for m in recent] == ["only"]


async def test_roles_are_not_sequenced(sessions: SessionStore) -> None:
    session = sessions.session("s1")
    await session.append("assistant", "a")
    await session.append("assistant", "b")
    await session.append("system", "c")
    assert [m.role for m in await session.get_history()] == ["assistant", "assistant", "system"]


async def test_sessions_are_isolated(sessions: SessionStore) -> None:
    await sessions.session("a").append("user", "for a")
    await sessions.session("b").append("user", "for b")

    assert [m.content for m in await sessions.session("a").get_history()] == ["for a"]
    assert [m.content for m in await sessions.session("b").get_history()] == ["for b"]


async def test_clear(sessions: SessionStore) -> None:
    session = sessions.session("s1")
    await session.append("user", "hello")
    await session.clear()
    assert await session.get_history() == []


async def test_clear_leaves_other_sessions(sessions: SessionStore) -> None:
    await sessions.session("a").append("user", "keep")
    await sessions.session("b").append("user", "drop")
    await sessions.session("b").clear()
    assert len(await sessions.session("a").get_history()) == 1


async def test_history_persists_across_handles(sessions: SessionStore) -> None:
    await sessions.session("s1").append("user", "hello")
    assert len(await sessions.session("s1").get_history()) == 1


async def test_concurrent_appends_same_key(sessions: SessionStore) -> None:
    """Concurrent appends to one session must not overwrite each other."""
    await asyncio.gather(
        *(sessions.session("s1").append("user", f"msg {i}") for i in range(20))
    )
    history = await sessions.session("s1").get_history()
    assert sorted(m.content for m in history) == sorted(f"msg {i}" for i in range(20))


async def test_same_key_shares_lock(sessions: SessionStore) -> None:
    a = sessions.session("s1")
    b = sessions.session("s1")
    c = sessions.session("s2")
    assert a._lock is b._lock
    assert a._lock is not c._lock


def test_get_is_singleton() -> None:
    SessionStore._reset()
    try:
        assert SessionStore.get() is SessionStore.get()
    finally:
        SessionStore._reset()
