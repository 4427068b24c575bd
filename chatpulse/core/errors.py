# chatpulse/core/errors.py


class ChatPulseError(Exception):
    """Base class for everything the monitor raises on purpose."""


class SourceUnavailable(ChatPulseError):
    """The bound adapter could not locate a chat message source."""

    def __init__(self, platform: str, channel: str | None):
        super().__init__(f"No chat message source on {platform} page for {channel or 'unknown channel'}")
        self.platform = platform
        self.channel = channel


class PersistenceTimeout(ChatPulseError):
    """A history write did not finish inside its time budget."""


class PersistenceFailure(ChatPulseError):
    """A history write was rejected by the store."""
