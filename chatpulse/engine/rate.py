# chatpulse/engine/rate.py
import time
from collections import deque
from typing import Callable

from chatpulse.core.constants import RateWindowConfig


class RateCalculator:
    """Tracks chat message rate over a rolling 60-second window."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._timestamps: deque[float] = deque()

    def record(self, timestamp: float | None = None) -> None:
        """Record a chat message and prune entries outside the window."""
        now = self._clock()
        self._timestamps.append(now if timestamp is None else timestamp)
        self._purge(now)

    def current_mpm(self) -> int:
        """Messages seen in the last 60 seconds."""
        self._purge(self._clock())
        return len(self._timestamps)

    def current_mps(self) -> int:
        """Messages seen in the last second."""
        now = self._clock()
        self._purge(now)
        cutoff = now - RateWindowConfig.MPS_WINDOW_SECONDS
        count = 0
        for ts in reversed(self._timestamps):
            if ts <= cutoff:
                break
            count += 1
        return count

    def reset(self) -> None:
        self._timestamps.clear()

    def _purge(self, now: float) -> None:
        cutoff = now - RateWindowConfig.WINDOW_SECONDS
        while self._timestamps and self._timestamps[0] <= cutoff:
            self._timestamps.popleft()
