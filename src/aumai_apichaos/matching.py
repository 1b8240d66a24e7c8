"""Pure gate and selection helpers used by the decision engine."""

from __future__ import annotations

import random
import re
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import TypeVar

from aumai_apichaos.models import RouteMatcher, TimeWindow

T = TypeVar("T")


def matches_route(path: str, matchers: Iterable[RouteMatcher]) -> bool:
    """Return True if *path* matches any of *matchers*.

    String matchers match on equality or prefix; compiled patterns are
    searched anywhere in the path (anchor them to pin a prefix).  Matchers
    are tried in order and the first hit short-circuits.
    """
    for matcher in matchers:
        if isinstance(matcher, re.Pattern):
            if matcher.search(path):
                return True
        elif path == matcher or path.startswith(matcher):
            return True
    return False


def in_time_window(now: datetime, windows: Iterable[TimeWindow]) -> bool:
    """Return True if *now* falls inside at least one window (inclusive)."""
    current = now.hour * 60 + now.minute
    return any(w.start_minute <= current <= w.end_minute for w in windows)


def weighted_choice(rng: random.Random, options: Sequence[tuple[T, int | float]]) -> T:
    """Pick one item from ``(item, weight)`` pairs proportionally to weight.

    A single uniform draw in ``[0, total)`` is partitioned by cumulative
    weight in the order given, so a seeded *rng* always yields the same
    choice for the same draw.

    Raises:
        ValueError: if *options* is empty or every weight is zero.
    """
    total = sum(weight for _, weight in options)
    if total <= 0:
        raise ValueError("weighted_choice requires at least one positive weight")

    roll = rng.random() * total
    cumulative = 0.0
    for item, weight in options:
        cumulative += weight
        if roll < cumulative:
            return item
    # Floating point slack: fall back to the last option that can be chosen.
    return next(item for item, weight in reversed(options) if weight > 0)


__all__ = ["in_time_window", "matches_route", "weighted_choice"]
