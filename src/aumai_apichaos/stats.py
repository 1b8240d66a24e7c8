"""Running statistics for chaos decisions."""

from __future__ import annotations

import threading
import time
from datetime import UTC, datetime

from aumai_apichaos.models import (
    ChaosStats,
    CustomOutcome,
    DelayOutcome,
    ErrorOutcome,
    GibberishOutcome,
    Outcome,
)


class StatsTracker:
    """Count decisions by outcome kind and keep a running mean delay.

    Every mutation and snapshot happens under a :class:`threading.Lock`, so
    a single tracker can be shared by coroutines on one loop as well as by
    threads.  The mean delay is updated incrementally
    (``mean += (x - mean) / n``) rather than from a running sum.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reset_locked()

    def _reset_locked(self) -> None:
        self._total = 0
        self._delayed = 0
        self._errors = 0
        self._gibberish = 0
        self._custom = 0
        self._average_delay = 0.0
        self._started_at = datetime.now(tz=UTC)
        self._started_monotonic = time.monotonic()

    def record(self, outcome: Outcome) -> None:
        """Account for one completed decision."""
        with self._lock:
            self._total += 1
            if isinstance(outcome, DelayOutcome):
                self._delayed += 1
                self._average_delay += (
                    outcome.milliseconds - self._average_delay
                ) / self._delayed
            elif isinstance(outcome, ErrorOutcome):
                self._errors += 1
            elif isinstance(outcome, GibberishOutcome):
                self._gibberish += 1
            elif isinstance(outcome, CustomOutcome):
                self._custom += 1

    def snapshot(self) -> ChaosStats:
        """Return an immutable copy of the current counters."""
        with self._lock:
            return ChaosStats(
                total_requests=self._total,
                delayed_requests=self._delayed,
                error_requests=self._errors,
                gibberish_requests=self._gibberish,
                custom_requests=self._custom,
                average_delay=self._average_delay,
                started_at=self._started_at,
                uptime_seconds=time.monotonic() - self._started_monotonic,
            )

    def reset(self) -> None:
        """Zero every counter and restart the uptime clock."""
        with self._lock:
            self._reset_locked()


__all__ = ["StatsTracker"]
