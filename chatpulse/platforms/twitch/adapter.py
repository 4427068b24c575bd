# chatpulse/platforms/twitch/adapter.py
import logging
import re
from typing import Callable

from chatpulse.core.clients.twitch import TwitchClient
from chatpulse.core.constants import Platform, TwitchConfig
from chatpulse.platforms.base import (
    ListenerSource,
    PageSnapshot,
    PlatformAdapter,
    RawNode,
    capitalize_first,
    parse_viewer_count,
    path_parts,
)

log = logging.getLogger(__name__)

_CHANNEL_RE = re.compile(TwitchConfig.CHANNEL_PATTERN)
_ARIA_AUTHOR_RE = re.compile(r"message from ([^\s,]+)")

_AUTHOR_KEYS = (
    "data-a-user",
    ".chat-author__display-name",
    ".message-author",
    ".username",
    ".user-display-name",
    ".chat-message-author",
)

_VIEWER_SELECTORS = (
    '[data-a-target="channel-viewers-count"]',
    '[data-test-selector="stream-info-card-component__viewers-count"]',
    ".live-viewers-count",
    ".viewers-count",
    ".viewer-count",
    ".stream-info-card-component__viewers-count",
)

_AVATAR_SELECTORS = (
    ".channel-header__user-avatar img",
    ".channel-info__avatar img",
    ".stream-avatar img",
    ".live-channel-header__avatar img",
    'img[src*="jtv_user_pictures"][src*="profile_image"]',
)


class TwitchAdapter(PlatformAdapter):
    platform = Platform.TWITCH

    def __init__(
        self,
        snapshot: PageSnapshot,
        source: ListenerSource | None = None,
        clock: Callable[[], float] | None = None,
        api_client: TwitchClient | None = None,
    ):
        super().__init__(snapshot, source, clock)
        self._api_client = api_client

    def detect_and_validate(self) -> str | None:
        if not _CHANNEL_RE.match(self.snapshot.url):
            return None
        return capitalize_first(path_parts(self.snapshot.url)[0])

    def extract_author(self, raw: RawNode) -> str | None:
        for key in _AUTHOR_KEYS:
            value = raw.get(key)
            if value and str(value).strip():
                return str(value)

        aria = raw.get("aria-label") or ""
        match = _ARIA_AUTHOR_RE.search(aria)
        return match.group(1) if match else None

    async def probe_viewer_count(self) -> int:
        if self._api_client is not None:
            login = (path_parts(self.snapshot.url) or [""])[0]
            try:
                count = await self._api_client.get_viewer_count(login)
            except Exception:
                log.warning("Helix viewer probe failed for %s, falling back to the page", login, exc_info=True)
                count = 0
            if count > 0:
                return count
        return await super().probe_viewer_count()

    def scrape_viewer_count(self) -> int:
        for selector in _VIEWER_SELECTORS:
            for text in self.snapshot.texts(selector):
                count = parse_viewer_count(text)
                if count:
                    return count
        return 0

    def scrape_avatar_url(self) -> str | None:
        for selector in _AVATAR_SELECTORS:
            for src in self.snapshot.texts(selector):
                if "jtv_user_pictures" in src and "profile_image" in src:
                    return src

        channel = self.detect_and_validate()
        if not channel:
            return None
        clean = re.sub(r"[^a-z0-9_]", "", channel.lower())
        return TwitchConfig.AVATAR_FALLBACK.format(channel=clean)
