# chatpulse/core/constants.py
from enum import Enum


class Platform(str, Enum):
    TWITCH = "twitch"
    YOUTUBE = "youtube"
    KICK = "kick"


class LifecycleState(str, Enum):
    IDLE = "idle"
    MONITORING = "monitoring"
    TRANSITIONING = "transitioning"
    CLOSED = "closed"


class RateWindowConfig:
    WINDOW_SECONDS = 60.0  # MPM look-back, also the purge horizon
    MPS_WINDOW_SECONDS = 1.0


class DedupConfig:
    MIN_GAP_SECONDS = 0.1  # deliveries closer than this count once


class SessionConfig:
    SAMPLE_INTERVAL_SECONDS = 10.0
    BIND_RETRY_SECONDS = 3.0  # chat containers can load after the page does


class HistoryConfig:
    LIMIT = 100  # newest N session records are kept
    PERSIST_TIMEOUT_SECONDS = 5.0


class ViewerCountBounds:
    MIN_EXCLUSIVE = 0
    MAX_EXCLUSIVE = 10_000_000


class TwitchConfig:
    BASE_URL = "https://www.twitch.tv/"
    AVATAR_FALLBACK = "https://static-cdn.jtvnw.net/jtv_user_pictures/{channel}-profile_image-70x70.png"
    CHANNEL_PATTERN = r"^https://www\.twitch\.tv/[a-zA-Z0-9_]{1,25}(?:\?.*)?$"


class YouTubeConfig:
    AVATAR_FALLBACK = "https://www.youtube.com/s/desktop/1a6c8b83/img/favicon_144x144.png"
    TITLE_SUFFIX = " - YouTube"


class KickConfig:
    AVATAR_FALLBACK = "https://kick.com/favicon.ico"
    CHANNEL_PATTERN = r"^https://kick\.com/[a-zA-Z0-9_-]+$"


class MonitorDefaults:
    POSITION = "top-right"
    THEME = "dark"
