# chatpulse/core/export.py
import csv
from typing import IO, Iterable

from chatpulse.core.constants import Platform
from chatpulse.core.events import SessionRecord

EXPORT_COLUMNS = (
    "channel_name",
    "avg_mpm",
    "avg_mps",
    "unique_chatters",
    "platform",
    "duration",
    "avg_viewers",
    "timestamp",
)

_PLATFORM_NAMES = {
    Platform.TWITCH: "Twitch",
    Platform.YOUTUBE: "YouTube",
    Platform.KICK: "Kick",
}


def format_duration(milliseconds: int) -> str:
    """Elapsed time as HH:MM:SS, truncated to whole seconds."""
    total_seconds = max(0, int(milliseconds) // 1000)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02}:{minutes:02}:{seconds:02}"


def format_platform_name(platform: Platform | str | None) -> str:
    try:
        return _PLATFORM_NAMES[Platform(platform)]
    except ValueError:
        return "Unknown"


def format_message_rate(rate: float, kind: str = "mpm") -> str:
    """MPS shows whole numbers; MPM keeps two decimals below 1."""
    if kind == "mps":
        return str(int(rate + 0.5))
    return f"{rate:.2f}" if rate < 1 else str(int(rate + 0.5))


def export_row(record: SessionRecord) -> dict[str, str | int | float]:
    return {
        "channel_name": record.channel_name,
        "avg_mpm": record.avg_mpm,
        "avg_mps": record.avg_mps,
        "unique_chatters": record.unique_chatters,
        "platform": format_platform_name(record.platform),
        "duration": format_duration(record.duration_ms),
        "avg_viewers": record.avg_viewers,
        "timestamp": record.timestamp.isoformat(),
    }


def write_csv(records: Iterable[SessionRecord], fp: IO[str]) -> int:
    """Writes a header and one row per record. Returns the number of rows written."""
    writer = csv.DictWriter(fp, fieldnames=EXPORT_COLUMNS)
    writer.writeheader()
    count = 0
    for record in records:
        writer.writerow(export_row(record))
        count += 1
    return count
