# tests/unit/test_session_tracker.py
from datetime import datetime, timezone

import pytest

from chatpulse.core.constants import Platform
from chatpulse.engine.rate import RateCalculator
from chatpulse.engine.session import SessionTracker


@pytest.fixture
def rate(clock):
    return RateCalculator(clock)


@pytest.fixture
def tracker(rate, clock):
    t = SessionTracker(rate, clock)
    t.reset(Platform.TWITCH, "Shroud")
    return t


def test_finalize_without_session_returns_none(rate, clock):
    assert SessionTracker(rate, clock).finalize() is None


def test_empty_session_averages_are_zero(tracker):
    record = tracker.finalize()
    assert record.avg_mpm == 0
    assert record.avg_mps == 0
    assert record.avg_viewers == 0
    assert record.unique_chatters == 0
    assert record.total_messages == 0


def test_mpm_average_of_samples(tracker):
    tracker.session.sampled_mpm.extend([10, 20, 30])
    assert tracker.finalize().avg_mpm == 20


def test_averages_round_half_up(tracker):
    tracker.session.sampled_mpm.extend([1, 2])  # 1.5
    tracker.session.sampled_mps.extend([0, 0, 1])  # 0.333..
    tracker.session.sampled_viewers.extend([100, 101])  # 100.5
    record = tracker.finalize()
    assert record.avg_mpm == 2
    assert record.avg_mps == 0.33
    assert record.avg_viewers == 101


def test_unique_participants_counted_once(tracker):
    for who in ("alice", "alice", "bob"):
        tracker.on_event(who)
    record = tracker.finalize()
    assert record.unique_chatters == 2
    assert record.total_messages == 3


def test_events_without_author_still_count_as_messages(tracker):
    tracker.on_event(None)
    tracker.on_event("   ")
    tracker.on_event(" carol ")
    record = tracker.finalize()
    assert record.total_messages == 3
    assert record.unique_chatters == 1
    assert tracker.session.unique_participants == {"carol"}


def test_sample_tick_reads_rates_and_skips_unknown_viewers(tracker, rate, clock):
    rate.record()
    rate.record()
    clock.advance(0.5)

    tracker.on_sample_tick(viewer_count=0)
    tracker.on_sample_tick(viewer_count=1500)

    assert tracker.session.sampled_mpm == [2, 2]
    assert tracker.session.sampled_mps == [2, 2]
    assert tracker.session.sampled_viewers == [1500]


def test_duration_and_timestamp_follow_clock(tracker, clock):
    clock.advance(125.25)
    record = tracker.finalize()
    assert record.duration_ms == 125_250
    assert record.timestamp == datetime.fromtimestamp(clock.now, timezone.utc)
    assert record.channel_name == "Shroud"
    assert record.platform is Platform.TWITCH


def test_finalize_is_repeatable_and_keeps_state(tracker):
    tracker.on_event("alice")
    tracker.session.sampled_mpm.append(12)

    first = tracker.finalize(avatar_url="https://example.test/a.png")
    second = tracker.finalize(avatar_url="https://example.test/a.png")

    assert first == second
    assert tracker.session.total_messages == 1
    assert tracker.session.unique_participants == {"alice"}


def test_reset_clears_accumulators_and_restarts_clock(tracker, clock):
    tracker.on_event("alice")
    tracker.session.sampled_mpm.append(5)
    clock.advance(30)

    tracker.reset(Platform.KICK, "xqc")
    record = tracker.finalize()

    assert record.total_messages == 0
    assert record.unique_chatters == 0
    assert record.avg_mpm == 0
    assert record.duration_ms == 0
    assert record.channel_name == "xqc"


def test_end_to_end_one_message_per_second(tracker, rate, clock):
    for _ in range(60):
        clock.advance(1.0)
        rate.record()
        tracker.on_event(None)

    assert rate.current_mpm() == 60

    tracker.on_sample_tick(viewer_count=0)
    assert tracker.session.sampled_mpm == [60]
    assert tracker.session.sampled_viewers == []
