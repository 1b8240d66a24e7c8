"""Tests for aumai_apichaos.stats — StatsTracker."""

from __future__ import annotations

import threading

import pytest
from pydantic import ValidationError

from aumai_apichaos.models import (
    CustomOutcome,
    DelayOutcome,
    ErrorOutcome,
    GibberishKind,
    GibberishOutcome,
    NoChaos,
)
from aumai_apichaos.stats import StatsTracker


def _delay(ms: int) -> DelayOutcome:
    return DelayOutcome(correlation_id="d", milliseconds=ms)


@pytest.fixture()
def tracker() -> StatsTracker:
    return StatsTracker()


class TestRecord:
    def test_starts_empty(self, tracker: StatsTracker) -> None:
        stats = tracker.snapshot()
        assert stats.total_requests == 0
        assert stats.average_delay == 0.0
        assert stats.chaos_rate == 0.0

    def test_counts_by_kind(self, tracker: StatsTracker) -> None:
        tracker.record(NoChaos())
        tracker.record(_delay(100))
        tracker.record(ErrorOutcome(correlation_id="e", status_code=500, message="x"))
        tracker.record(
            GibberishOutcome(
                correlation_id="g",
                content_kind=GibberishKind.plain_text,
                content_type="text/plain",
                body="OOGA",
            )
        )
        tracker.record(CustomOutcome(correlation_id="c", name="n"))
        stats = tracker.snapshot()
        assert stats.total_requests == 5
        assert stats.delayed_requests == 1
        assert stats.error_requests == 1
        assert stats.gibberish_requests == 1
        assert stats.custom_requests == 1
        assert stats.chaos_rate == pytest.approx(0.8)

    def test_running_mean_delay(self, tracker: StatsTracker) -> None:
        for ms in (100, 200, 300):
            tracker.record(_delay(ms))
        assert tracker.snapshot().average_delay == pytest.approx(200.0)

    def test_mean_ignores_non_delay_outcomes(self, tracker: StatsTracker) -> None:
        tracker.record(_delay(400))
        tracker.record(NoChaos())
        tracker.record(ErrorOutcome(correlation_id="e", status_code=503, message="x"))
        assert tracker.snapshot().average_delay == pytest.approx(400.0)

    def test_mean_stable_over_many_updates(self, tracker: StatsTracker) -> None:
        for _ in range(100_000):
            tracker.record(_delay(15_000))
        assert tracker.snapshot().average_delay == pytest.approx(15_000.0)


class TestSnapshot:
    def test_snapshot_is_immutable(self, tracker: StatsTracker) -> None:
        stats = tracker.snapshot()
        with pytest.raises(ValidationError):
            stats.total_requests = 99  # type: ignore[misc]

    def test_snapshot_is_a_copy(self, tracker: StatsTracker) -> None:
        before = tracker.snapshot()
        tracker.record(NoChaos())
        assert before.total_requests == 0
        assert tracker.snapshot().total_requests == 1

    def test_uptime_non_negative(self, tracker: StatsTracker) -> None:
        assert tracker.snapshot().uptime_seconds >= 0.0


class TestReset:
    def test_reset_zeroes_counters(self, tracker: StatsTracker) -> None:
        tracker.record(_delay(10))
        tracker.record(NoChaos())
        tracker.reset()
        stats = tracker.snapshot()
        assert stats.total_requests == 0
        assert stats.delayed_requests == 0
        assert stats.average_delay == 0.0

    def test_reset_restarts_clock(self, tracker: StatsTracker) -> None:
        started = tracker.snapshot().started_at
        tracker.reset()
        assert tracker.snapshot().started_at >= started

    def test_records_after_reset_count_from_zero(self, tracker: StatsTracker) -> None:
        tracker.record(_delay(1000))
        tracker.reset()
        tracker.record(_delay(10))
        assert tracker.snapshot().average_delay == pytest.approx(10.0)


class TestThreadSafety:
    def test_concurrent_records_not_lost(self, tracker: StatsTracker) -> None:
        def worker() -> None:
            for _ in range(2000):
                tracker.record(_delay(50))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        stats = tracker.snapshot()
        assert stats.total_requests == 16_000
        assert stats.delayed_requests == 16_000
        assert stats.average_delay == pytest.approx(50.0)
