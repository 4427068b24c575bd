# chatpulse/platforms/detection.py
import logging
from typing import Callable
from urllib.parse import urlsplit

from chatpulse.core.clients.twitch import TwitchClient
from chatpulse.core.constants import Platform
from chatpulse.platforms.base import ListenerSource, PageSnapshot, PlatformAdapter, path_parts
from chatpulse.platforms.kick.adapter import KickAdapter
from chatpulse.platforms.twitch.adapter import TwitchAdapter
from chatpulse.platforms.youtube.adapter import YouTubeAdapter

log = logging.getLogger(__name__)

ADAPTERS: dict[Platform, type[PlatformAdapter]] = {
    Platform.TWITCH: TwitchAdapter,
    Platform.YOUTUBE: YouTubeAdapter,
    Platform.KICK: KickAdapter,
}


def detect_platform(url: str) -> Platform | None:
    """Which supported site a URL belongs to, or None."""
    parts = urlsplit(url)
    if parts.hostname == "www.twitch.tv":
        return Platform.TWITCH
    if parts.hostname == "www.youtube.com":
        return Platform.YOUTUBE if "/watch" in parts.path else None
    if parts.hostname == "kick.com":
        return Platform.KICK if len(path_parts(url)) == 1 else None
    return None


def resolve_adapter(
    snapshot: PageSnapshot,
    source: ListenerSource | None = None,
    clock: Callable[[], float] | None = None,
    twitch_client: TwitchClient | None = None,
) -> PlatformAdapter | None:
    """
    Builds the adapter for the page once, at bind time.
    Returns None for pages on unsupported sites.
    """
    platform = detect_platform(snapshot.url)
    if platform is None:
        log.debug("Unsupported page: %s", snapshot.url)
        return None

    if platform is Platform.TWITCH:
        return TwitchAdapter(snapshot, source, clock, api_client=twitch_client)
    return ADAPTERS[platform](snapshot, source, clock)


def is_valid_livestream_page(snapshot: PageSnapshot) -> bool:
    adapter = resolve_adapter(snapshot)
    return adapter is not None and adapter.detect_and_validate() is not None
