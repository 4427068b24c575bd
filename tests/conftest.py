# tests/conftest.py
#
# The env override runs during collection, before any test file imports
# chatpulse modules, so the module-level engine never points at a real file.
import os
from contextlib import asynccontextmanager

os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from chatpulse.core.db import Base  # noqa: E402
from chatpulse.core.history import MemoryHistoryStore  # noqa: E402
import chatpulse.core.models  # noqa: E402,F401  registers tables on Base.metadata
from chatpulse.platforms.base import ListenerSource, PageSnapshot  # noqa: E402


class FakeClock:
    """Stands in for time.time; tests move it by hand."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store():
    return MemoryHistoryStore()


def _twitch_page(channel: str, elements: dict | None = None) -> PageSnapshot:
    return PageSnapshot(url=f"https://www.twitch.tv/{channel}", elements=elements or {})


@pytest.fixture
def twitch_page():
    return _twitch_page


@pytest.fixture
def source():
    return ListenerSource("test-chat")


# ── SQLite in-memory DB fixtures (integration tests) ─────────────────────────

@pytest.fixture
async def db_engine():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def get_session_fn(db_engine):
    """Returns a get_session replacement that uses the test SQLite engine."""
    factory = async_sessionmaker(db_engine, expire_on_commit=False, class_=AsyncSession)

    @asynccontextmanager
    async def _get_session():
        async with factory() as session:
            yield session

    return _get_session
