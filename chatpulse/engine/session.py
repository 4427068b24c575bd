# chatpulse/engine/session.py
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable

from chatpulse.core.constants import Platform
from chatpulse.core.events import SessionRecord
from chatpulse.engine.rate import RateCalculator

log = logging.getLogger(__name__)


def _mean(values: list[float]) -> Decimal:
    if not values:
        return Decimal(0)
    return Decimal(sum(values)) / Decimal(len(values))


def round_half_up(value: Decimal, places: int = 0) -> Decimal:
    """Rounds .5 away from zero, the way chat dashboards display averages."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


@dataclass
class Session:
    platform: Platform
    channel_id: str
    start_time: float
    sampled_mpm: list[int] = field(default_factory=list)
    sampled_mps: list[int] = field(default_factory=list)
    sampled_viewers: list[int] = field(default_factory=list)
    unique_participants: set[str] = field(default_factory=set)
    total_messages: int = 0


class SessionTracker:
    """
    Accumulates per-session samples and turns them into a SessionRecord.

    The tracker never clears itself; ChannelLifecycle calls reset() when a
    new session begins.
    """

    def __init__(
        self,
        rate: RateCalculator,
        clock: Callable[[], float] = time.time,
    ):
        self._rate = rate
        self._clock = clock
        self.session: Session | None = None

    def reset(self, platform: Platform, channel_id: str) -> Session:
        """Start a fresh session for the given channel; previous samples are discarded."""
        self.session = Session(platform=platform, channel_id=channel_id, start_time=self._clock())
        log.debug("Session reset for %s/%s.", platform.value, channel_id)
        return self.session

    def clear(self) -> None:
        self.session = None

    def on_event(self, participant_id: str | None = None) -> None:
        if self.session is None:
            return
        self.session.total_messages += 1
        if participant_id and participant_id.strip():
            self.session.unique_participants.add(participant_id.strip())

    def on_sample_tick(self, viewer_count: int = 0) -> None:
        """Append the current rates; viewer counts are only kept when the probe found one."""
        if self.session is None:
            return
        self.session.sampled_mpm.append(self._rate.current_mpm())
        self.session.sampled_mps.append(self._rate.current_mps())
        if viewer_count > 0:
            self.session.sampled_viewers.append(viewer_count)

    def finalize(self, avatar_url: str | None = None) -> SessionRecord | None:
        """Summarize the current session without clearing it. Returns None if no session is open."""
        session = self.session
        if session is None:
            return None

        now = self._clock()
        return SessionRecord(
            channel_name=session.channel_id,
            avatar_url=avatar_url,
            avg_mpm=int(round_half_up(_mean(session.sampled_mpm))),
            avg_mps=float(round_half_up(_mean(session.sampled_mps), 2)),
            duration_ms=max(0, int((now - session.start_time) * 1000)),
            avg_viewers=int(round_half_up(_mean(session.sampled_viewers))),
            total_messages=session.total_messages,
            unique_chatters=len(session.unique_participants),
            platform=session.platform,
            timestamp=datetime.fromtimestamp(now, timezone.utc),
        )
