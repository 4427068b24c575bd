# chatpulse/platforms/youtube/adapter.py
import logging
import re

from chatpulse.core.constants import Platform, YouTubeConfig
from chatpulse.platforms.base import (
    PlatformAdapter,
    RawNode,
    capitalize_first,
    count_pattern,
    parse_viewer_count,
)

log = logging.getLogger(__name__)

_CHANNEL_NAME_SELECTORS = (
    ".ytd-channel-name a",
    ".ytd-video-owner-renderer .ytd-channel-name",
    "#channel-name a",
    "#owner #channel-name",
    "#meta #channel-name",
    'a[href*="/channel/"]',
    'a[href*="/c/"]',
    'a[href*="/user/"]',
)
_CHANNEL_URL_PATTERNS = (
    re.compile(r"[?&]channel=([^&]+)"),
    re.compile(r"/channel/([^/?]+)"),
    re.compile(r"/c/([^/?]+)"),
    re.compile(r"/user/([^/?]+)"),
)
_CHANNEL_META_KEYS = ('itemprop="channelId"', 'name="twitter:creator"', 'property="og:video:author"')

_AUTHOR_KEYS = (
    "#author-name",
    ".yt-live-chat-author-chip",
    "author-name",
    "data-author-name",
    ".author-name",
)
_AUTHOR_HREF_RE = re.compile(r"[/@]([^/@?&]+)$")
_TIMESTAMP_RE = re.compile(r"^\d{1,2}:\d{2}")

_VIEWER_SELECTORS = (
    ".view-count",
    'span[aria-label*="watching"]',
    'span[aria-label*="viewers"]',
    ".badge-shape-wiz__text",
    ".ytd-video-view-count-renderer",
)
_VIEWER_PATTERNS = (
    count_pattern(r"{n}\s*watching"),
    count_pattern(r"watching\s*{n}"),
    count_pattern(r"{n}\s*viewers?"),
    count_pattern(r"{n}\s*live"),
    count_pattern(r"{n}\s*views?"),
    count_pattern(r"{n}"),
)

_AVATAR_SELECTORS = (
    "#owner #avatar img",
    "ytd-video-owner-renderer #avatar img",
    "#meta #avatar img",
)


def _plausible_author(name: str) -> bool:
    return (
        0 < len(name) < 50
        and name != "Chat"
        and "message" not in name
        and "from" not in name
        and not _TIMESTAMP_RE.match(name)
    )


class YouTubeAdapter(PlatformAdapter):
    platform = Platform.YOUTUBE

    def detect_and_validate(self) -> str | None:
        if "/watch?v=" not in self.snapshot.url:
            return None
        return self._channel_name()

    def _channel_name(self) -> str:
        for selector in _CHANNEL_NAME_SELECTORS:
            for text in self.snapshot.texts(selector):
                name = text.strip()
                if name and name != "YouTube":
                    return name

        for pattern in _CHANNEL_URL_PATTERNS:
            match = pattern.search(self.snapshot.url)
            if match:
                return capitalize_first(match.group(1))

        for key in _CHANNEL_META_KEYS:
            value = self.snapshot.meta.get(key)
            if value:
                return capitalize_first(value)

        title = self.snapshot.title
        if title and YouTubeConfig.TITLE_SUFFIX in title:
            log.debug("Using stream title as YouTube channel name: %s", title)
            return title.replace(YouTubeConfig.TITLE_SUFFIX, "").strip()

        return "YouTube Channel"

    def extract_author(self, raw: RawNode) -> str | None:
        for key in _AUTHOR_KEYS:
            name = str(raw.get(key) or "").strip()
            if _plausible_author(name):
                return name

        href = raw.get("href") or ""
        match = _AUTHOR_HREF_RE.search(href)
        if match and _plausible_author(match.group(1)):
            return match.group(1)
        return None

    def scrape_viewer_count(self) -> int:
        texts = [t for s in _VIEWER_SELECTORS for t in self.snapshot.texts(s)]
        texts += [
            label
            for label in self.snapshot.texts("[aria-label]")
            if any(word in label for word in ("watching", "viewer", "live"))
        ]
        for text in texts:
            count = parse_viewer_count(text, _VIEWER_PATTERNS)
            if count:
                return count
        return 0

    def scrape_avatar_url(self) -> str | None:
        for selector in _AVATAR_SELECTORS:
            for src in self.snapshot.texts(selector):
                if src and "favicon" not in src:
                    return src
        return YouTubeConfig.AVATAR_FALLBACK
