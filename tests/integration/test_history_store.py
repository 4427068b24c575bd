# tests/integration/test_history_store.py
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from chatpulse.core.constants import Platform
from chatpulse.core.events import SessionRecord
from chatpulse.core.history import SqlHistoryStore
from chatpulse.core.models import ChatSessionRecord

_T0 = datetime(2026, 3, 1, 20, 0, 0, tzinfo=timezone.utc)


def _record(name: str, minutes: int = 0, platform: Platform = Platform.TWITCH) -> SessionRecord:
    return SessionRecord(
        channel_name=name,
        avatar_url=f"https://cdn.test/{name}.png",
        avg_mpm=30,
        avg_mps=0.55,
        duration_ms=600_000,
        avg_viewers=1200,
        total_messages=300,
        unique_chatters=85,
        platform=platform,
        timestamp=_T0 + timedelta(minutes=minutes),
    )


@pytest.fixture
def store(get_session_fn):
    return SqlHistoryStore(get_session_fn, limit=3)


async def test_append_then_load_round_trips_fields(store):
    original = _record("Shroud", platform=Platform.YOUTUBE)
    assert await store.append(original) is True

    loaded = await store.load_all()
    assert loaded == [original]


async def test_load_all_is_newest_first(store):
    await store.append(_record("early", 0))
    await store.append(_record("late", 10))
    await store.append(_record("middle", 5))

    assert [r.channel_name for r in await store.load_all()] == ["late", "middle", "early"]


async def test_append_prunes_beyond_limit(store, db_session_count):
    for i in range(5):
        await store.append(_record(f"ch{i}", i))

    names = [r.channel_name for r in await store.load_all()]
    assert names == ["ch4", "ch3", "ch2"]
    assert await db_session_count() == 3


async def test_clear_removes_everything(store):
    await store.append(_record("Shroud"))
    await store.clear()
    assert await store.load_all() == []


async def test_append_reports_failure_instead_of_raising():
    def broken_scope():
        raise RuntimeError("database is locked")

    store = SqlHistoryStore(broken_scope)
    assert await store.append(_record("Shroud")) is False


@pytest.fixture
def db_session_count(get_session_fn):
    async def _count() -> int:
        async with get_session_fn() as db:
            result = await db.execute(select(func.count()).select_from(ChatSessionRecord))
            return result.scalar_one()

    return _count
