# tests/unit/test_export.py
import csv
import io
from datetime import datetime, timezone

import pytest

from chatpulse.core.constants import Platform
from chatpulse.core.events import SessionRecord
from chatpulse.core.export import (
    EXPORT_COLUMNS,
    export_row,
    format_duration,
    format_message_rate,
    format_platform_name,
    write_csv,
)


def _record(**overrides) -> SessionRecord:
    values = dict(
        channel_name="Shroud",
        avatar_url=None,
        avg_mpm=42,
        avg_mps=0.7,
        duration_ms=3_723_999,
        avg_viewers=15000,
        total_messages=2500,
        unique_chatters=640,
        platform=Platform.TWITCH,
        timestamp=datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return SessionRecord(**values)


@pytest.mark.parametrize(
    "ms, expected",
    [(0, "00:00:00"), (999, "00:00:00"), (61_000, "00:01:01"), (3_723_999, "01:02:03"), (-5, "00:00:00")],
)
def test_format_duration(ms, expected):
    assert format_duration(ms) == expected


def test_format_platform_name():
    assert format_platform_name(Platform.YOUTUBE) == "YouTube"
    assert format_platform_name("kick") == "Kick"
    assert format_platform_name("myspace") == "Unknown"
    assert format_platform_name(None) == "Unknown"


def test_format_message_rate():
    assert format_message_rate(0.456, "mpm") == "0.46"
    assert format_message_rate(12.5, "mpm") == "13"
    assert format_message_rate(1.4, "mps") == "1"


def test_export_row_columns_and_values():
    row = export_row(_record())
    assert tuple(row) == EXPORT_COLUMNS
    assert row["duration"] == "01:02:03"
    assert row["platform"] == "Twitch"
    assert row["timestamp"] == "2026-01-02T03:04:05+00:00"


def test_write_csv_header_and_rows():
    buf = io.StringIO()
    count = write_csv([_record(), _record(channel_name="Xqc", platform=Platform.KICK)], buf)

    rows = list(csv.DictReader(io.StringIO(buf.getvalue())))
    assert count == 2
    assert [r["channel_name"] for r in rows] == ["Shroud", "Xqc"]
    assert rows[1]["platform"] == "Kick"
    assert rows[0]["avg_mps"] == "0.7"
