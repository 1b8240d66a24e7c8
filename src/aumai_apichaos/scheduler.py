"""Time-of-day scheduling of chaos presets for aumai-apichaos."""

from __future__ import annotations

import asyncio
import random
import threading
from collections.abc import Sequence
from datetime import datetime

from aumai_apichaos.core import ChaosEngine
from aumai_apichaos.custom import ClockFunc, CustomChaosRegistry, SleepFunc
from aumai_apichaos.models import (
    ConfigurationError,
    NoChaos,
    Outcome,
    RequestDescriptor,
    ScheduleEntry,
)
from aumai_apichaos.observer import EventHook
from aumai_apichaos.presets import PRESETS, build_config


class ChaosScheduler:
    """Switch between presets according to a daily schedule.

    Each :class:`~aumai_apichaos.models.ScheduleEntry` activates a preset
    for ``duration_seconds`` from its start time.  Slots are same-day: a
    slot running past midnight is cut off at midnight.  When slots overlap
    the one that started latest wins.  Outside every slot requests pass
    through untouched.

    Engines are built lazily, one per preset, and share the scheduler's
    random source, clock, sleep function and hooks.  Each engine keeps its
    own statistics; see :meth:`engine_for`.
    """

    def __init__(
        self,
        entries: Sequence[ScheduleEntry] = (),
        *,
        rng: random.Random | None = None,
        clock: ClockFunc | None = None,
        sleep: SleepFunc | None = None,
        hooks: Sequence[EventHook] = (),
        registry: CustomChaosRegistry | None = None,
    ) -> None:
        self._entries: list[ScheduleEntry] = []
        self._engines: dict[str, ChaosEngine] = {}
        self._lock = threading.Lock()
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock if clock is not None else datetime.now
        self._sleep = sleep if sleep is not None else asyncio.sleep
        self._hooks = list(hooks)
        self._registry = registry
        for entry in entries:
            self.schedule(entry)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def schedule(self, entry: ScheduleEntry) -> None:
        """Add *entry* to the schedule.

        Raises:
            ConfigurationError: if the entry names an unknown preset.
        """
        if entry.preset not in PRESETS:
            raise ConfigurationError(
                f"Unknown preset '{entry.preset}'. Available: {', '.join(PRESETS)}"
            )
        with self._lock:
            self._entries.append(entry)
            self._entries.sort(key=lambda e: e.start_second)

    def entries(self) -> list[ScheduleEntry]:
        """Return the schedule sorted by start time."""
        with self._lock:
            return list(self._entries)

    def active_entry(self, now: datetime | None = None) -> ScheduleEntry | None:
        """Return the entry whose slot contains *now*, or None."""
        now = now if now is not None else self._clock()
        second = now.hour * 3600 + now.minute * 60 + now.second
        active: ScheduleEntry | None = None
        for entry in self.entries():
            if entry.start_second <= second < entry.start_second + entry.duration_seconds:
                active = entry
        return active

    def engine_for(self, preset: str) -> ChaosEngine:
        """Return the (lazily built) engine for *preset*."""
        with self._lock:
            engine = self._engines.get(preset)
            if engine is None:
                engine = ChaosEngine(
                    build_config(preset),
                    rng=self._rng,
                    clock=self._clock,
                    sleep=self._sleep,
                    hooks=self._hooks,
                    registry=self._registry,
                )
                self._engines[preset] = engine
            return engine

    async def decide(self, request: RequestDescriptor) -> Outcome:
        """Decide *request* with the engine of the currently active preset."""
        entry = self.active_entry()
        if entry is None:
            return NoChaos()
        return await self.engine_for(entry.preset).decide(request)


__all__ = ["ChaosScheduler"]
