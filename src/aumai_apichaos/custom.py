"""Custom chaos generators and the registry the engine resolves them from.

A custom generator is a named object implementing :meth:`CustomChaos.produce`.
Generators are registered by name in a :class:`CustomChaosRegistry`, and a
:class:`~aumai_apichaos.models.ChaosConfig` refers to them by that name::

    registry = default_registry()
    registry.register(MyGenerator())
    engine = ChaosEngine(
        build_config(probability=1.0, custom_chaos=["my-generator"]),
        registry=registry,
    )

Resource-consuming generators (``memory-pressure``, ``cpu-spike``) are
bounded in size and duration and release what they hold when cancelled.
Body generators (``corrupt-body``, ``inflate-body``) only describe the
rewrite; sink adapters apply it to the real response with
:func:`transform_body`.
"""

from __future__ import annotations

import random
import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, ClassVar

from aumai_apichaos.models import RequestDescriptor

SleepFunc = Callable[[float], Awaitable[Any]]
ClockFunc = Callable[[], datetime]


@dataclass(frozen=True)
class GeneratorContext:
    """Capabilities lent by the engine to a generator for one decision."""

    rng: random.Random
    sleep: SleepFunc
    clock: ClockFunc


class CustomChaos(ABC):
    """Base class for named outcome generators.

    Subclasses set :attr:`name` and implement :meth:`produce`, returning a
    payload dict for an intervention or ``None`` to let the request through.
    """

    name: ClassVar[str]
    weight: int = 1

    @abstractmethod
    async def produce(
        self, request: RequestDescriptor, context: GeneratorContext
    ) -> dict[str, Any] | None:
        """Produce a payload for *request*, or ``None`` for no intervention."""


# ---------------------------------------------------------------------------
# Built-in generators
# ---------------------------------------------------------------------------


class NetworkJitter(CustomChaos):
    """Several short waits in a row, like a flaky network link."""

    name = "network-jitter"

    async def produce(
        self, request: RequestDescriptor, context: GeneratorContext
    ) -> dict[str, Any] | None:
        jitters = [context.rng.randint(10, 110) for _ in range(context.rng.randint(2, 6))]
        for delay_ms in jitters:
            await context.sleep(delay_ms / 1000.0)
        return {
            "jitter_count": len(jitters),
            "total_ms": sum(jitters),
            "message": f"Added {len(jitters)} network jitters",
        }


class IntermittentFailure(CustomChaos):
    """Fail on a fixed pattern keyed off the current millisecond."""

    name = "intermittent-failure"
    pattern: tuple[bool, ...] = (True, False, True, True, False)

    async def produce(
        self, request: RequestDescriptor, context: GeneratorContext
    ) -> dict[str, Any] | None:
        millis = round(context.clock().timestamp() * 1000)
        if not self.pattern[millis % len(self.pattern)]:
            return None
        return {
            "status_code": 503,
            "message": "Intermittent failure - the monkey is moody",
        }


class CorruptBody(CustomChaos):
    """Replace roughly ``rate`` of the characters of the response body.

    The payload carries the rate and a seed; adapters apply it to the
    downstream response with :func:`transform_body`.
    """

    name = "corrupt-body"

    def __init__(self, rate: float = 0.1) -> None:
        self.rate = rate

    async def produce(
        self, request: RequestDescriptor, context: GeneratorContext
    ) -> dict[str, Any] | None:
        return {
            "corrupt_rate": self.rate,
            "corrupt_seed": context.rng.getrandbits(32),
            "message": "Corrupted payload data",
        }


class InflateBody(CustomChaos):
    """Append 10-100 KB of filler to the response body."""

    name = "inflate-body"

    def __init__(self, min_bytes: int = 10_000, max_bytes: int = 100_000) -> None:
        self.min_bytes = min_bytes
        self.max_bytes = max_bytes

    async def produce(
        self, request: RequestDescriptor, context: GeneratorContext
    ) -> dict[str, Any] | None:
        size = context.rng.randint(self.min_bytes, self.max_bytes)
        return {
            "padding_bytes": size,
            "message": f"Inflated response by {size / 1000:.1f}KB",
        }


class MemoryPressure(CustomChaos):
    """Hold a bounded allocation for a bounded time, then release it."""

    name = "memory-pressure"

    def __init__(
        self,
        min_bytes: int = 100_000,
        max_bytes: int = 1_000_000,
        hold_ms: int = 250,
    ) -> None:
        self.min_bytes = min_bytes
        self.max_bytes = max_bytes
        self.hold_ms = hold_ms

    async def produce(
        self, request: RequestDescriptor, context: GeneratorContext
    ) -> dict[str, Any] | None:
        size = context.rng.randint(self.min_bytes, self.max_bytes)
        block = bytearray(size)
        try:
            await context.sleep(self.hold_ms / 1000.0)
        finally:
            del block
        return {
            "allocated_bytes": size,
            "held_ms": self.hold_ms,
            "message": f"Held {size / 1000:.1f}KB of memory",
        }


class CpuSpike(CustomChaos):
    """Burn CPU for a bounded time in slices that yield to the event loop."""

    name = "cpu-spike"

    def __init__(self, min_ms: int = 50, max_ms: int = 500, slice_ms: int = 10) -> None:
        self.min_ms = min_ms
        self.max_ms = max_ms
        self.slice_ms = slice_ms

    async def produce(
        self, request: RequestDescriptor, context: GeneratorContext
    ) -> dict[str, Any] | None:
        budget_ms = context.rng.randint(self.min_ms, self.max_ms)
        deadline = time.perf_counter() + budget_ms / 1000.0
        while True:
            now = time.perf_counter()
            if now >= deadline:
                break
            slice_end = min(deadline, now + self.slice_ms / 1000.0)
            while time.perf_counter() < slice_end:
                pass
            await context.sleep(0)
        return {"duration_ms": budget_ms, "message": f"Caused {budget_ms}ms CPU spike"}


# ---------------------------------------------------------------------------
# Response body transforms
# ---------------------------------------------------------------------------

PADDING_FILLER = "CHAOS_MONKEY_PADDING_"


def corrupt_text(text: str, rate: float, rng: random.Random) -> str:
    """Replace each character of *text* with printable junk with probability *rate*."""
    return "".join(
        chr(rng.randint(33, 126)) if rng.random() < rate else char for char in text
    )


def pad_text(text: str, size: int) -> str:
    """Append *size* characters of filler to *text*."""
    padding = (PADDING_FILLER * (size // len(PADDING_FILLER) + 1))[:size]
    return f"{text}\n\n{padding}" if text else padding


def transforms_body(payload: dict[str, Any]) -> bool:
    """Return True if *payload* rewrites the downstream response body."""
    return "corrupt_seed" in payload or "padding_bytes" in payload


def transform_body(payload: dict[str, Any], body: str) -> str | None:
    """Apply a body-rewriting *payload* to *body*.

    Returns None when the payload does not rewrite bodies.
    """
    if "corrupt_seed" in payload:
        rng = random.Random(payload["corrupt_seed"])
        return corrupt_text(body, float(payload.get("corrupt_rate", 0.1)), rng)
    if "padding_bytes" in payload:
        return pad_text(body, int(payload["padding_bytes"]))
    return None


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class UnknownChaosError(KeyError):
    """Raised when a custom chaos name is not registered."""


class CustomChaosRegistry:
    """Name-to-generator lookup table."""

    def __init__(self, generators: list[CustomChaos] | None = None) -> None:
        self._generators: dict[str, CustomChaos] = {}
        for generator in generators or []:
            self.register(generator)

    def register(self, generator: CustomChaos, *, replace: bool = False) -> None:
        """Add *generator* under its :attr:`~CustomChaos.name`.

        Raises:
            ValueError: if the name is taken and *replace* is False.
        """
        if generator.name in self._generators and not replace:
            raise ValueError(f"custom chaos '{generator.name}' is already registered")
        self._generators[generator.name] = generator

    def get(self, name: str) -> CustomChaos:
        try:
            return self._generators[name]
        except KeyError:
            raise UnknownChaosError(name) from None

    def names(self) -> list[str]:
        return sorted(self._generators)

    def __contains__(self, name: object) -> bool:
        return name in self._generators


def default_registry() -> CustomChaosRegistry:
    """Return a fresh registry holding the built-in generators."""
    return CustomChaosRegistry(
        [
            NetworkJitter(),
            IntermittentFailure(),
            CorruptBody(),
            InflateBody(),
            MemoryPressure(),
            CpuSpike(),
        ]
    )


__all__ = [
    "PADDING_FILLER",
    "CorruptBody",
    "CpuSpike",
    "CustomChaos",
    "CustomChaosRegistry",
    "GeneratorContext",
    "InflateBody",
    "IntermittentFailure",
    "MemoryPressure",
    "NetworkJitter",
    "UnknownChaosError",
    "corrupt_text",
    "default_registry",
    "pad_text",
    "transform_body",
    "transforms_body",
]
