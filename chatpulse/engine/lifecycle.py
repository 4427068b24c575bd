# chatpulse/engine/lifecycle.py
import asyncio
import logging
import time
from typing import Callable

from chatpulse.core.constants import HistoryConfig, LifecycleState, SessionConfig
from chatpulse.core.errors import SourceUnavailable
from chatpulse.core.events import ActivitySnapshot, ChatEvent, MonitorSettings, SessionRecord
from chatpulse.core.history import HistoryStore, PersistQueue
from chatpulse.engine.dedup import Deduplicator
from chatpulse.engine.rate import RateCalculator
from chatpulse.engine.session import SessionTracker
from chatpulse.platforms.base import ListenerSource, PlatformAdapter, RawNode

log = logging.getLogger(__name__)


class ChannelLifecycle:
    """
    Decides when a viewing session starts, is reset, or is finalized.

    Driven by discrete signals: navigate() when the page changes, close()
    and reopen() from the user, on_raw_message() from the bound message
    source and sample_tick() from the internal ticker. All of it runs on one
    event loop. navigate() and close() never await, so a tick can never land
    between finalizing the old session and binding the new one.
    """

    def __init__(
        self,
        store: HistoryStore,
        *,
        settings: MonitorSettings | None = None,
        clock: Callable[[], float] = time.time,
        sample_interval: float = SessionConfig.SAMPLE_INTERVAL_SECONDS,
        retry_interval: float = SessionConfig.BIND_RETRY_SECONDS,
        persist_timeout: float = HistoryConfig.PERSIST_TIMEOUT_SECONDS,
    ):
        self.settings = settings or MonitorSettings()
        self._clock = clock
        self._sample_interval = sample_interval
        self._retry_interval = retry_interval

        self.rate = RateCalculator(clock)
        self.dedup = Deduplicator()
        self.tracker = SessionTracker(self.rate, clock)
        self.persist = PersistQueue(store, persist_timeout)

        self.state = LifecycleState.IDLE
        self._adapter: PlatformAdapter | None = None
        self._source: ListenerSource | None = None
        self._pending: PlatformAdapter | None = None
        self._avatar_url: str | None = None
        self._generation = 0  # bumped on every bind/unbind; stale callbacks compare against it
        self._ticker: asyncio.Task | None = None
        self._retry: asyncio.Task | None = None

    # ── Read side ────────────────────────────────────────────────────────────

    @property
    def adapter(self) -> PlatformAdapter | None:
        return self._adapter

    @property
    def channel(self) -> str | None:
        session = self.tracker.session
        return session.channel_id if session and self.state is LifecycleState.MONITORING else None

    def snapshot(self) -> ActivitySnapshot:
        session = self.tracker.session if self.state is LifecycleState.MONITORING else None
        return ActivitySnapshot(
            channel_name=session.channel_id if session else None,
            platform=session.platform if session else None,
            messages_per_minute=self.rate.current_mpm(),
            messages_per_second=self.rate.current_mps(),
            unique_chatters=len(session.unique_participants) if session else 0,
            total_messages=session.total_messages if session else 0,
            elapsed_ms=int((self._clock() - session.start_time) * 1000) if session else 0,
        )

    # ── Navigation signals ───────────────────────────────────────────────────

    async def navigate(self, adapter: PlatformAdapter | None) -> LifecycleState:
        """
        Handles a page change. `adapter` is what the page detection layer
        resolved for the new page, or None if the site is unsupported.
        """
        if self.state is LifecycleState.CLOSED:
            log.debug("Ignoring navigation while closed.")
            return self.state

        self._cancel_retry()
        channel = adapter.detect_and_validate() if adapter else None

        if self.state is LifecycleState.MONITORING:
            if channel is None:
                log.info("Left the live page for %s.", self.channel)
                self._close()
            elif channel == self.channel and adapter.platform is self._adapter.platform:
                log.debug("Navigation stayed on %s; nothing to do.", channel)
            else:
                log.info("Channel changed from %s to %s.", self.channel, channel)
                self.state = LifecycleState.TRANSITIONING
                self._finalize_and_persist()
                self._unbind()
                self._bind_or_wait(adapter, channel)
            return self.state

        if self.state is LifecycleState.TRANSITIONING and channel is None:
            log.info("Navigation left the live page before the new chat was found.")
            self._pending = None
            self._close()
            return self.state

        # IDLE, or TRANSITIONING onto yet another page
        if channel is None:
            self._pending = None
            log.debug("Not a live page; staying %s.", self.state.value)
        else:
            self._bind_or_wait(adapter, channel)
        return self.state

    async def close(self) -> LifecycleState:
        """Explicit close: finalize and persist, then stop everything."""
        if self.state is not LifecycleState.CLOSED:
            self._cancel_retry()
            self._pending = None
            self._close()
        return self.state

    async def reopen(self, adapter: PlatformAdapter | None) -> LifecycleState:
        """Re-enable after close; the current page is validated like a fresh start."""
        if self.state is LifecycleState.CLOSED:
            log.info("Monitor re-enabled.")
            self.state = LifecycleState.IDLE
        return await self.navigate(adapter)

    async def apply_settings(self, settings: MonitorSettings) -> None:
        """
        `enabled=False` pauses counting and sampling but keeps the session,
        so turning it back on carries on where it stopped.
        """
        if settings.enabled != self.settings.enabled:
            log.info("Monitoring %s.", "resumed" if settings.enabled else "suspended")
        self.settings = settings

    async def shutdown(self) -> None:
        """Close and wait for queued history writes."""
        await self.close()
        await self.persist.close()

    # ── Message and tick processing ──────────────────────────────────────────

    def on_raw_message(self, raw: RawNode, generation: int | None = None) -> None:
        if generation is not None and generation != self._generation:
            return
        if self.state is not LifecycleState.MONITORING or not self.settings.enabled:
            return

        now = self._clock()
        if not self.dedup.should_accept(now):
            return

        adapter = self._adapter
        event = adapter.extract_event(raw)
        if event is None:
            # Authorless lines still count toward the rate
            event = ChatEvent(timestamp=now, platform=adapter.platform)
        self.rate.record(now)
        self.tracker.on_event(event.participant_id)

    async def sample_tick(self) -> None:
        if self.state is not LifecycleState.MONITORING or not self.settings.enabled:
            return

        generation = self._generation
        adapter = self._adapter
        viewers = await adapter.probe_viewer_count()

        if self.state is not LifecycleState.MONITORING or generation != self._generation:
            log.debug("Binding changed during the viewer probe; sample dropped.")
            return
        if self._avatar_url is None:
            self._avatar_url = adapter.probe_avatar_url()
        self.tracker.on_sample_tick(viewers)

    async def _run_ticker(self, generation: int) -> None:
        while generation == self._generation:
            await asyncio.sleep(self._sample_interval)
            try:
                await self.sample_tick()
            except Exception:
                log.error("Error in sample tick", exc_info=True)

    async def _run_retry(self) -> None:
        while self._pending is not None:
            await asyncio.sleep(self._retry_interval)
            adapter = self._pending
            if adapter is None:
                return
            channel = adapter.detect_and_validate()
            if channel is None:
                log.info("Page is no longer live; giving up on binding.")
                self._pending = None
                if self.state is LifecycleState.TRANSITIONING:
                    self._close()
                return
            self._bind_or_wait(adapter, channel, schedule_retry=False)

    # ── Transitions ──────────────────────────────────────────────────────────

    def _bind_or_wait(self, adapter: PlatformAdapter, channel: str, schedule_retry: bool = True) -> bool:
        source = adapter.locate_message_source()
        if source is None:
            err = SourceUnavailable(adapter.platform.value, channel)
            log.warning("%s; retrying in %.0fs.", err, self._retry_interval)
            self._pending = adapter
            if schedule_retry:
                self._retry = asyncio.get_running_loop().create_task(self._run_retry())
            return False

        self._pending = None
        self._adapter = adapter
        self._source = source
        self.rate.reset()
        self.dedup.reset()
        self.tracker.reset(adapter.platform, channel)
        self._avatar_url = adapter.probe_avatar_url()
        self._generation += 1
        generation = self._generation

        self.state = LifecycleState.MONITORING
        source.attach(lambda raw: self.on_raw_message(raw, generation))
        self._ticker = asyncio.get_running_loop().create_task(self._run_ticker(generation))
        log.info("Now monitoring %s/%s.", adapter.platform.value, channel)
        return True

    def _finalize_and_persist(self) -> SessionRecord | None:
        record = self.tracker.finalize(avatar_url=self._avatar_url)
        if record is not None:
            log.info(
                "Session for %s finalized: %d msgs, %d chatters, %d avg mpm.",
                record.channel_name,
                record.total_messages,
                record.unique_chatters,
                record.avg_mpm,
            )
            self.persist.submit(record)
        return record

    def _unbind(self) -> None:
        """Stops the ticker and detaches the listener before anything new is bound."""
        self._generation += 1
        if self._ticker is not None and not self._ticker.done():
            self._ticker.cancel()
        self._ticker = None
        if self._source is not None:
            self._source.detach()
        self._source = None
        self._adapter = None
        self._avatar_url = None
        self.rate.reset()
        self.dedup.reset()
        self.tracker.clear()

    def _close(self) -> None:
        if self.state is LifecycleState.MONITORING:
            self._finalize_and_persist()
        self._unbind()
        self.state = LifecycleState.CLOSED
        log.info("Monitor closed.")

    def _cancel_retry(self) -> None:
        if self._retry is not None and not self._retry.done():
            self._retry.cancel()
        self._retry = None
