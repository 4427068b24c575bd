# chatpulse/engine/dedup.py
import logging

from chatpulse.core.constants import DedupConfig

log = logging.getLogger(__name__)


class Deduplicator:
    """
    Drops deliveries that arrive within 100ms of the last accepted one.

    Page observers can report the same chat line twice in quick succession.
    Matching is by arrival time only, so two distinct messages sent inside
    the gap are also merged into one.
    """

    def __init__(self, min_gap_seconds: float = DedupConfig.MIN_GAP_SECONDS):
        self._min_gap = min_gap_seconds
        self._last_accepted: float | None = None

    def should_accept(self, now: float) -> bool:
        """Returns True and marks `now` as accepted unless it is a near duplicate."""
        # 1e-6 absorbs float error on epoch timestamps; an exact 100ms gap is accepted
        if self._last_accepted is not None and now - self._last_accepted < self._min_gap - 1e-6:
            log.debug("Skipping duplicate delivery %.3fs after the last one.", now - self._last_accepted)
            return False
        self._last_accepted = now
        return True

    def reset(self) -> None:
        self._last_accepted = None
