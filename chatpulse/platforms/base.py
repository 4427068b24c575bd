# chatpulse/platforms/base.py
import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Sequence
from urllib.parse import urlsplit

from chatpulse.core.constants import Platform, ViewerCountBounds
from chatpulse.core.events import ChatEvent

log = logging.getLogger(__name__)

RawNode = Mapping[str, Any]
Listener = Callable[[RawNode], None]

_COUNT = r"(\d+(?:[.,]\d+)*(?:[kKmM]\b)?)"
_ANY_COUNT_RE = re.compile(_COUNT)
_MULTIPLIERS = {"k": 1_000, "m": 1_000_000}


@dataclass(frozen=True)
class PageSnapshot:
    """
    What the scraping layer saw on the current page.

    `elements` maps a selector to the text (or src, for images) of every
    element it matched, in document order.
    """

    url: str
    title: str = ""
    meta: Mapping[str, str] = field(default_factory=dict)
    elements: Mapping[str, Sequence[str]] = field(default_factory=dict)

    def texts(self, selector: str) -> Sequence[str]:
        return self.elements.get(selector, ())


class ListenerSource:
    """
    A chat message source with at most one listener.

    The scraping layer (or a live relay) marks it ready once the chat
    container exists and calls push() for every raw chat node; nodes pushed
    while nothing is attached are dropped.
    """

    def __init__(self, name: str = "chat", ready: bool = True):
        self.name = name
        self.ready = ready
        self._listener: Listener | None = None

    def mark_ready(self) -> None:
        self.ready = True

    @property
    def attached(self) -> bool:
        return self._listener is not None

    def attach(self, listener: Listener) -> None:
        if self._listener is not None:
            raise RuntimeError(f"Message source '{self.name}' already has a listener")
        self._listener = listener

    def detach(self) -> None:
        self._listener = None

    def push(self, raw: RawNode) -> None:
        if self._listener is not None:
            self._listener(raw)


def count_pattern(template: str) -> re.Pattern:
    """Compiles a viewer-count regex; `{n}` marks where the number sits."""
    return re.compile(template.format(n=_COUNT), re.IGNORECASE)


def parse_viewer_count(text: str, patterns: Sequence[re.Pattern] = ()) -> int:
    """
    Pulls a viewer count out of free text like "1,234 watching" or "12.5K viewers".
    Patterns are tried in order; the first plausible count wins. Returns 0
    when nothing plausible is found.
    """
    for pattern in patterns or (_ANY_COUNT_RE,):
        match = pattern.search(text)
        if not match:
            continue
        count = _to_int(match.group(1))
        if ViewerCountBounds.MIN_EXCLUSIVE < count < ViewerCountBounds.MAX_EXCLUSIVE:
            return count
    return 0


def _to_int(text: str) -> int:
    suffix = text[-1].lower()
    if suffix in _MULTIPLIERS:
        # "1.2K" / "3,4M": the separator is a decimal point
        return int(float(text[:-1].replace(",", ".")) * _MULTIPLIERS[suffix])
    return int(text.replace(",", "").replace(".", ""))


class PlatformAdapter(ABC):
    """
    Capability set for one streaming site.

    Every operation reports "not found" (None or 0) instead of raising, so
    the lifecycle can treat all sites the same way.
    """

    platform: Platform

    def __init__(
        self,
        snapshot: PageSnapshot,
        source: ListenerSource | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.snapshot = snapshot
        self.source = source or ListenerSource(f"{self.platform.value}-chat")
        self._clock = clock or time.time

    @abstractmethod
    def detect_and_validate(self) -> str | None:
        """Channel id of the live page, or None if this is not one."""

    def locate_message_source(self) -> ListenerSource | None:
        if not self.source.ready:
            log.debug("No chat container yet on %s", self.snapshot.url)
            return None
        return self.source

    def extract_event(self, raw: RawNode) -> ChatEvent | None:
        try:
            author = self.extract_author(raw)
        except Exception:
            log.warning("Author extraction failed on %s node", self.platform.value, exc_info=True)
            author = None
        return ChatEvent(
            timestamp=self._clock(),
            platform=self.platform,
            participant_id=author.strip() if author and author.strip() else None,
        )

    @abstractmethod
    def extract_author(self, raw: RawNode) -> str | None:
        ...

    async def probe_viewer_count(self) -> int:
        try:
            return self.scrape_viewer_count()
        except Exception:
            log.warning("Viewer count probe failed on %s", self.platform.value, exc_info=True)
            return 0

    @abstractmethod
    def scrape_viewer_count(self) -> int:
        ...

    def probe_avatar_url(self) -> str | None:
        try:
            return self.scrape_avatar_url()
        except Exception:
            log.warning("Avatar probe failed on %s", self.platform.value, exc_info=True)
            return None

    @abstractmethod
    def scrape_avatar_url(self) -> str | None:
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} url={self.snapshot.url!r}>"


def path_parts(url: str) -> list[str]:
    return [p for p in urlsplit(url).path.split("/") if p]


def capitalize_first(name: str) -> str:
    return name[:1].upper() + name[1:]
