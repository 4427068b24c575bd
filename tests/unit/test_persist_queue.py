# tests/unit/test_persist_queue.py
import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from chatpulse.core.constants import Platform
from chatpulse.core.errors import PersistenceFailure, PersistenceTimeout
from chatpulse.core.events import SessionRecord
from chatpulse.core.history import MemoryHistoryStore, PersistQueue, append_with_timeout


def _record(name: str, second: int = 0) -> SessionRecord:
    return SessionRecord(
        channel_name=name,
        avatar_url=None,
        avg_mpm=1,
        avg_mps=0.1,
        duration_ms=1000,
        avg_viewers=0,
        total_messages=1,
        unique_chatters=1,
        platform=Platform.TWITCH,
        timestamp=datetime(2026, 1, 1, 0, 0, second, tzinfo=timezone.utc),
    )


async def test_memory_store_keeps_newest_up_to_limit():
    store = MemoryHistoryStore(limit=2)
    for i, name in enumerate(("a", "b", "c")):
        await store.append(_record(name, i))
    assert [r.channel_name for r in await store.load_all()] == ["c", "b"]


async def test_append_with_timeout_raises_on_hang():
    store = AsyncMock()

    async def hang(record):
        await asyncio.sleep(10)

    store.append.side_effect = hang
    with pytest.raises(PersistenceTimeout):
        await append_with_timeout(store, _record("a"), 0.01)


async def test_append_with_timeout_raises_on_rejection():
    store = AsyncMock()
    store.append.return_value = False
    with pytest.raises(PersistenceFailure):
        await append_with_timeout(store, _record("a"), 1)


async def test_queue_writes_in_submission_order():
    store = MemoryHistoryStore()
    queue = PersistQueue(store)
    for i, name in enumerate(("a", "b", "c")):
        queue.submit(_record(name, i))

    await queue.drain()

    assert queue.written == 3
    assert [r.channel_name for r in store._records] == ["a", "b", "c"]
    await queue.close()


async def test_queue_writes_never_overlap():
    active = 0
    peak = 0
    store = AsyncMock()

    async def slow_append(record):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return True

    store.append.side_effect = slow_append
    queue = PersistQueue(store)
    queue.submit(_record("a"))
    queue.submit(_record("b"))
    await queue.drain()

    assert peak == 1
    assert queue.written == 2
    await queue.close()


async def test_failed_write_is_dropped_and_queue_keeps_going():
    store = AsyncMock()
    store.append.side_effect = [Exception("disk full"), True]
    queue = PersistQueue(store)

    queue.submit(_record("a"))
    queue.submit(_record("b"))
    await queue.drain()

    assert queue.dropped == 1
    assert queue.written == 1
    assert store.append.await_count == 2
    await queue.close()


async def test_drain_without_submissions_returns():
    queue = PersistQueue(MemoryHistoryStore())
    await queue.drain()
    await queue.close()
