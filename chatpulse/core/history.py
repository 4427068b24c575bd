# chatpulse/core/history.py
import asyncio
import logging
from typing import AsyncContextManager, Callable, Protocol

from sqlalchemy import delete, select

from chatpulse.core.constants import HistoryConfig
from chatpulse.core.db import get_session
from chatpulse.core.errors import ChatPulseError, PersistenceFailure, PersistenceTimeout
from chatpulse.core.events import SessionRecord
from chatpulse.core.models import ChatSessionRecord

log = logging.getLogger(__name__)


class HistoryStore(Protocol):
    """Durable, append-only home of finalized session records."""

    async def append(self, record: SessionRecord) -> bool: ...

    async def load_all(self) -> list[SessionRecord]: ...


class MemoryHistoryStore:
    """Keeps records in process; used for dry runs and tests."""

    def __init__(self, limit: int = HistoryConfig.LIMIT):
        self._limit = limit
        self._records: list[SessionRecord] = []

    async def append(self, record: SessionRecord) -> bool:
        self._records.append(record)
        if len(self._records) > self._limit:
            del self._records[: len(self._records) - self._limit]
        return True

    async def load_all(self) -> list[SessionRecord]:
        return sorted(self._records, key=lambda r: r.timestamp, reverse=True)

    async def clear(self) -> None:
        self._records.clear()


class SqlHistoryStore:
    """Session history in the chat_session_records table, capped at `limit` rows."""

    def __init__(
        self,
        session_scope: Callable[[], AsyncContextManager] = get_session,
        limit: int = HistoryConfig.LIMIT,
    ):
        self._session_scope = session_scope
        self._limit = limit

    async def append(self, record: SessionRecord) -> bool:
        try:
            async with self._session_scope() as db:
                db.add(ChatSessionRecord.from_record(record))
                await db.flush()

                stale = await db.execute(
                    select(ChatSessionRecord.id)
                    .order_by(ChatSessionRecord.recorded_at.desc(), ChatSessionRecord.id.desc())
                    .offset(self._limit)
                )
                stale_ids = list(stale.scalars().all())
                if stale_ids:
                    await db.execute(
                        delete(ChatSessionRecord).where(ChatSessionRecord.id.in_(stale_ids))
                    )
                    log.debug("Pruned %d old session records.", len(stale_ids))
                await db.commit()
        except Exception:
            log.error("Failed to store session record for %s", record.channel_name, exc_info=True)
            return False
        return True

    async def load_all(self) -> list[SessionRecord]:
        """All stored records, newest first."""
        async with self._session_scope() as db:
            result = await db.execute(
                select(ChatSessionRecord).order_by(
                    ChatSessionRecord.recorded_at.desc(), ChatSessionRecord.id.desc()
                )
            )
            return [row.to_record() for row in result.scalars().all()]

    async def clear(self) -> None:
        async with self._session_scope() as db:
            await db.execute(delete(ChatSessionRecord))
            await db.commit()
        log.info("Session history cleared.")


async def append_with_timeout(store: HistoryStore, record: SessionRecord, timeout: float) -> None:
    """Raises PersistenceTimeout or PersistenceFailure instead of waiting forever."""
    try:
        stored = await asyncio.wait_for(store.append(record), timeout)
    except asyncio.TimeoutError as e:
        raise PersistenceTimeout(f"Storing {record.channel_name} took longer than {timeout:.1f}s") from e
    except Exception as e:
        raise PersistenceFailure(f"Storing {record.channel_name} raised {e!r}") from e
    if not stored:
        raise PersistenceFailure(f"Store rejected the record for {record.channel_name}")


class PersistQueue:
    """
    Serializes history writes through a single worker task.

    submit() never waits; each write gets a bounded timeout and a write that
    fails or times out is logged and dropped, never retried.
    """

    def __init__(self, store: HistoryStore, timeout: float = HistoryConfig.PERSIST_TIMEOUT_SECONDS):
        self._store = store
        self._timeout = timeout
        self._queue: asyncio.Queue[SessionRecord] = asyncio.Queue()
        self._worker: asyncio.Task | None = None
        self.written = 0
        self.dropped = 0

    def submit(self, record: SessionRecord) -> None:
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._run())
        self._queue.put_nowait(record)

    async def _run(self) -> None:
        while True:
            record = await self._queue.get()
            try:
                await append_with_timeout(self._store, record, self._timeout)
                self.written += 1
                log.info("Session data saved for %s (%s).", record.channel_name, record.platform.value)
            except PersistenceTimeout as e:
                self.dropped += 1
                log.warning("%s; record dropped.", e)
            except ChatPulseError as e:
                self.dropped += 1
                log.warning("%s; record dropped.", e, exc_info=e.__cause__)
            finally:
                self._queue.task_done()

    async def drain(self) -> None:
        """Waits for every submitted record to be written or dropped."""
        if self._worker is not None:
            await self._queue.join()

    async def close(self) -> None:
        await self.drain()
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._worker = None
