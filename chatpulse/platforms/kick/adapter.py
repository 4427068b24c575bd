# chatpulse/platforms/kick/adapter.py
import re

from chatpulse.core.constants import KickConfig, Platform
from chatpulse.platforms.base import (
    PlatformAdapter,
    RawNode,
    capitalize_first,
    count_pattern,
    parse_viewer_count,
    path_parts,
)

_CHANNEL_RE = re.compile(KickConfig.CHANNEL_PATTERN)

_AUTHOR_KEYS = (
    "button[title]",
    ".chat-author",
    ".message-author",
    ".username",
    "data-username",
    "data-user",
    ".user-name",
)

_VIEWER_SELECTORS = (
    ".viewers-count",
    ".viewer-count",
    ".live-viewers",
    ".stream-stats",
)
_VIEWER_PATTERNS = (
    count_pattern(r"{n}\s*viewers?"),
    count_pattern(r"{n}\s*watching"),
    count_pattern(r"viewers?\s*{n}"),
    count_pattern(r"watching\s*{n}"),
)

_AVATAR_SELECTORS = (
    ".channel-avatar img",
    'img[alt*="avatar"]',
    'img[src*="files.kick.com"]',
)


class KickAdapter(PlatformAdapter):
    platform = Platform.KICK

    def detect_and_validate(self) -> str | None:
        if not _CHANNEL_RE.match(self.snapshot.url):
            return None
        return capitalize_first(path_parts(self.snapshot.url)[0])

    def extract_author(self, raw: RawNode) -> str | None:
        sender = raw.get("sender")
        if isinstance(sender, dict) and sender.get("username"):
            return sender["username"]

        for key in _AUTHOR_KEYS:
            name = str(raw.get(key) or "").strip().rstrip(":")
            if name and len(name) < 50:
                return name
        return None

    def scrape_viewer_count(self) -> int:
        for selector in _VIEWER_SELECTORS:
            for text in self.snapshot.texts(selector):
                count = parse_viewer_count(text, _VIEWER_PATTERNS)
                if count:
                    return count
        return 0

    def scrape_avatar_url(self) -> str | None:
        for selector in _AVATAR_SELECTORS:
            for src in self.snapshot.texts(selector):
                if "files.kick.com" in src:
                    return src
        return KickConfig.AVATAR_FALLBACK
