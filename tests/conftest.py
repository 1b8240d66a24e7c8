"""Shared pytest fixtures for aumai-apichaos test suite."""

from __future__ import annotations

import random
from collections.abc import Callable
from datetime import datetime
from typing import Any

import pytest

from aumai_apichaos.core import ChaosEngine
from aumai_apichaos.models import RequestDescriptor
from aumai_apichaos.observer import DecisionRecorder

NOON = datetime(2026, 3, 14, 12, 30)


class RecordingSleep:
    """Async sleep stand-in that returns immediately and remembers each call."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class ScriptedRandom(random.Random):
    """Random whose ``random()`` replays a fixed script of values."""

    def __init__(self, values: list[float]) -> None:
        super().__init__(0)
        self._values = list(values)

    def random(self) -> float:
        return self._values.pop(0)


# ---------------------------------------------------------------------------
# Capability fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_sleep() -> RecordingSleep:
    """A sleep function that never actually waits."""
    return RecordingSleep()


@pytest.fixture()
def rng() -> random.Random:
    """A seeded random source."""
    return random.Random(1234)


@pytest.fixture()
def clock() -> Callable[[], datetime]:
    """A clock frozen at 12:30 local time."""
    return lambda: NOON


@pytest.fixture()
def scripted_rng() -> Callable[[list[float]], random.Random]:
    """Factory for random sources replaying a fixed list of draws."""
    return ScriptedRandom


@pytest.fixture()
def recorder() -> DecisionRecorder:
    return DecisionRecorder()


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_engine(
    rng: random.Random,
    fake_sleep: RecordingSleep,
    clock: Callable[[], datetime],
) -> Callable[..., ChaosEngine]:
    """Factory building deterministic engines from configuration options."""

    def _make(**options: Any) -> ChaosEngine:
        options.setdefault("rng", rng)
        options.setdefault("sleep", fake_sleep)
        options.setdefault("clock", clock)
        return ChaosEngine.from_options(**options)

    return _make


@pytest.fixture()
def delay_engine(make_engine: Callable[..., ChaosEngine]) -> ChaosEngine:
    """Engine that always injects a delay of 10-20 ms."""
    return make_engine(
        probability=1.0,
        delay_range=(10, 20),
        outcome_weights={"delay": 100, "error": 0, "gibberish": 0},
    )


@pytest.fixture()
def error_engine(make_engine: Callable[..., ChaosEngine]) -> ChaosEngine:
    """Engine that always injects a 503."""
    return make_engine(
        probability=1.0,
        error_codes=[503],
        outcome_weights={"delay": 0, "error": 100, "gibberish": 0},
    )


@pytest.fixture()
def gibberish_engine(make_engine: Callable[..., ChaosEngine]) -> ChaosEngine:
    """Engine that always serves gibberish."""
    return make_engine(
        probability=1.0,
        outcome_weights={"delay": 0, "error": 0, "gibberish": 100},
    )


@pytest.fixture()
def request_descriptor() -> RequestDescriptor:
    return RequestDescriptor(
        path="/api/users",
        method="GET",
        headers={"accept": "application/json"},
        query={"page": "1"},
    )
