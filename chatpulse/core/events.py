# chatpulse/core/events.py
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Mapping

from chatpulse.core.constants import MonitorDefaults, Platform


@dataclass(frozen=True)
class ChatEvent:
    timestamp: float  # arrival time, seconds on the engine clock
    platform: Platform
    participant_id: str | None = None


@dataclass(frozen=True)
class SessionRecord:
    """Archival summary of one monitoring session."""

    channel_name: str
    avatar_url: str | None
    avg_mpm: int
    avg_mps: float
    duration_ms: int
    avg_viewers: int
    total_messages: int
    unique_chatters: int
    platform: Platform
    timestamp: datetime


@dataclass(frozen=True)
class MonitorSettings:
    enabled: bool = True
    position: str = MonitorDefaults.POSITION
    theme: str = MonitorDefaults.THEME
    extras: Mapping[str, Any] = field(default_factory=dict)  # passed through untouched

    @classmethod
    def from_mapping(cls, stored: Mapping[str, Any]) -> "MonitorSettings":
        """Overlay stored values on the defaults; unknown keys ride along in extras."""
        known = {f.name for f in fields(cls)} - {"extras"}
        values = {k: v for k, v in stored.items() if k in known}
        extras = {k: v for k, v in stored.items() if k not in known}
        return cls(**values, extras=extras)

    @classmethod
    def from_settings(cls, settings) -> "MonitorSettings":
        return cls(
            enabled=settings.MONITOR_ENABLED,
            position=settings.OVERLAY_POSITION,
            theme=settings.OVERLAY_THEME,
        )


@dataclass(frozen=True)
class ActivitySnapshot:
    """Live counters for whatever is displaying them."""

    channel_name: str | None
    platform: Platform | None
    messages_per_minute: int
    messages_per_second: int
    unique_chatters: int
    total_messages: int
    elapsed_ms: int
