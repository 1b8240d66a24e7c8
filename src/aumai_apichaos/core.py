"""Core chaos decision engine for aumai-apichaos."""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from aumai_apichaos.content import pick_error_message, render_gibberish
from aumai_apichaos.custom import (
    ClockFunc,
    CustomChaos,
    CustomChaosRegistry,
    GeneratorContext,
    SleepFunc,
    UnknownChaosError,
    default_registry,
)
from aumai_apichaos.matching import in_time_window, matches_route, weighted_choice
from aumai_apichaos.models import (
    ChaosConfig,
    ChaosEvent,
    ChaosStats,
    ConfigurationError,
    CustomOutcome,
    DecisionEvent,
    DelayOutcome,
    ErrorOutcome,
    GibberishKind,
    GibberishOutcome,
    NoChaos,
    Outcome,
    OutcomeKind,
    RequestDescriptor,
)
from aumai_apichaos.observer import EventHook, log_event
from aumai_apichaos.presets import build_config
from aumai_apichaos.stats import StatsTracker

logger = logging.getLogger("aumai_apichaos")

_GIBBERISH_KINDS: tuple[GibberishKind, ...] = tuple(GibberishKind)


class ChaosEngine:
    """Decide, per request, whether and how to inject chaos.

    The engine runs three gates in order (probability, route, time window)
    and short-circuits to :class:`~aumai_apichaos.models.NoChaos` on the
    first one that fails.  When every gate passes it chooses an
    intervention by weighted selection and builds the matching outcome.
    Delays are waited out inside :meth:`decide`, so a returned
    :class:`~aumai_apichaos.models.DelayOutcome` has already elapsed.

    Randomness, wall-clock time and sleeping are injectable so tests can
    run deterministically::

        engine = ChaosEngine(
            build_config(probability=1.0),
            rng=random.Random(42),
            sleep=fake_sleep,
        )

    Args:
        config:   A validated configuration; defaults to :func:`build_config`.
        rng:      Random source; a fresh unseeded :class:`random.Random` if omitted.
        clock:    Returns the current *local* time for the time-window gate.
        sleep:    Coroutine function taking seconds; :func:`asyncio.sleep`.
        hooks:    Callables receiving each :class:`DecisionEvent` synchronously.
        registry: Lookup table for ``config.custom_chaos`` names.

    Raises:
        ConfigurationError: if *config* is not a :class:`ChaosConfig` or names
            an unregistered custom generator.
    """

    def __init__(
        self,
        config: ChaosConfig | None = None,
        *,
        rng: random.Random | None = None,
        clock: ClockFunc | None = None,
        sleep: SleepFunc | None = None,
        hooks: Sequence[EventHook] = (),
        registry: CustomChaosRegistry | None = None,
    ) -> None:
        if config is None:
            config = build_config()
        if not isinstance(config, ChaosConfig):
            raise ConfigurationError(
                f"Expected a ChaosConfig, got {type(config).__name__}; "
                "use build_config() or ChaosEngine.from_options()"
            )

        registry = registry if registry is not None else default_registry()
        try:
            custom = [registry.get(name) for name in config.custom_chaos]
        except UnknownChaosError as exc:
            raise ConfigurationError(
                f"Unknown custom chaos {exc.args[0]!r}. "
                f"Registered: {', '.join(registry.names()) or 'none'}"
            ) from None

        self._config = config
        self._custom: list[CustomChaos] = custom
        self._rng = rng if rng is not None else random.Random()
        self._clock = clock if clock is not None else datetime.now
        self._sleep = sleep if sleep is not None else asyncio.sleep
        self._hooks: list[EventHook] = list(hooks)
        if config.log_events and log_event not in self._hooks:
            self._hooks.append(log_event)
        self._stats = StatsTracker()

    @classmethod
    def from_options(cls, preset: str | None = None, **options: Any) -> ChaosEngine:
        """Build a config from *preset* and configuration *options*, then an engine.

        Keyword arguments that are engine capabilities (``rng``, ``clock``,
        ``sleep``, ``hooks``, ``registry``) are passed to the constructor;
        everything else is treated as a configuration field.
        """
        capabilities = {
            key: options.pop(key)
            for key in ("rng", "clock", "sleep", "hooks", "registry")
            if key in options
        }
        return cls(build_config(preset, **options), **capabilities)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def config(self) -> ChaosConfig:
        return self._config

    @property
    def stats_tracker(self) -> StatsTracker:
        return self._stats

    def stats(self) -> ChaosStats:
        """Return an immutable snapshot of the running statistics."""
        return self._stats.snapshot()

    def reset_stats(self) -> None:
        self._stats.reset()

    async def decide(self, request: RequestDescriptor) -> Outcome:
        """Decide the chaos outcome for *request*.

        Statistics are recorded once the outcome is final.  If the call is
        cancelled while a delay or custom generator is suspended, the
        cancellation propagates and nothing is recorded.
        """
        self._emit(
            ChaosEvent.decision_started,
            None,
            {"path": request.path, "method": request.method},
        )

        reason = self._failed_gate(request)
        if reason is not None:
            outcome: Outcome = NoChaos()
            self._emit(ChaosEvent.decision_skipped, None, {"reason": reason})
        else:
            outcome = await self._intervene(request)

        self._stats.record(outcome)
        self._emit(
            ChaosEvent.decision_completed,
            outcome.correlation_id,
            {"kind": outcome.kind.value},
        )
        return outcome

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def _failed_gate(self, request: RequestDescriptor) -> str | None:
        """Return the name of the first failing gate, or None if all pass."""
        config = self._config

        if self._rng.random() >= config.probability:
            return "probability"

        if config.enabled_routes is not None and not matches_route(
            request.path, config.enabled_routes
        ):
            return "route_not_enabled"
        if config.disabled_routes is not None and matches_route(
            request.path, config.disabled_routes
        ):
            return "route_disabled"

        if config.time_windows is not None and not in_time_window(
            self._clock(), config.time_windows
        ):
            return "time_window"

        return None

    # ------------------------------------------------------------------
    # Outcome construction
    # ------------------------------------------------------------------

    async def _intervene(self, request: RequestDescriptor) -> Outcome:
        if self._custom and self._rng.random() < self._config.custom_share:
            return await self._run_custom(request)

        weights = self._config.outcome_weights
        kind = weighted_choice(
            self._rng,
            [
                (OutcomeKind.delay, weights.delay),
                (OutcomeKind.error, weights.error),
                (OutcomeKind.gibberish, weights.gibberish),
            ],
        )
        if kind is OutcomeKind.delay:
            return await self._delay()
        if kind is OutcomeKind.error:
            return self._error()
        return self._gibberish()

    async def _delay(self) -> DelayOutcome:
        low, high = self._config.delay_range
        milliseconds = self._rng.randint(low, high)
        correlation_id = self._new_id()
        self._emit(ChaosEvent.delay_chosen, correlation_id, {"milliseconds": milliseconds})
        await self._sleep(milliseconds / 1000.0)
        return DelayOutcome(correlation_id=correlation_id, milliseconds=milliseconds)

    def _error(self) -> ErrorOutcome:
        status_code = self._rng.choice(self._config.error_codes)
        message = pick_error_message(self._rng, status_code)
        correlation_id = self._new_id()
        self._emit(
            ChaosEvent.error_chosen,
            correlation_id,
            {"status_code": status_code, "message": message},
        )
        return ErrorOutcome(
            correlation_id=correlation_id, status_code=status_code, message=message
        )

    def _gibberish(self) -> GibberishOutcome:
        content_kind = self._rng.choice(_GIBBERISH_KINDS)
        content_type, body = render_gibberish(self._rng, content_kind, self._clock())
        correlation_id = self._new_id()
        self._emit(
            ChaosEvent.gibberish_chosen,
            correlation_id,
            {"content_kind": content_kind.value, "content_type": content_type},
        )
        return GibberishOutcome(
            correlation_id=correlation_id,
            content_kind=content_kind,
            content_type=content_type,
            body=body,
        )

    async def _run_custom(self, request: RequestDescriptor) -> Outcome:
        generator = weighted_choice(
            self._rng, [(g, g.weight) for g in self._custom]
        )
        context = GeneratorContext(rng=self._rng, sleep=self._sleep, clock=self._clock)
        payload = await generator.produce(request, context)
        if payload is None:
            self._emit(
                ChaosEvent.decision_skipped, None, {"reason": f"custom:{generator.name}"}
            )
            return NoChaos()

        correlation_id = self._new_id()
        self._emit(ChaosEvent.custom_chosen, correlation_id, {"name": generator.name})
        return CustomOutcome(
            correlation_id=correlation_id, name=generator.name, payload=payload
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _new_id(self) -> str:
        return uuid.UUID(int=self._rng.getrandbits(128), version=4).hex

    def _emit(
        self,
        event: ChaosEvent,
        correlation_id: str | None,
        details: dict[str, object],
    ) -> None:
        if not self._hooks:
            return
        point = DecisionEvent(
            timestamp=self._clock(),
            event=event,
            correlation_id=correlation_id,
            details=details,
        )
        for hook in self._hooks:
            try:
                hook(point)
            except Exception:
                logger.exception("Chaos event hook %r failed on %s", hook, event.value)


__all__ = ["ChaosEngine", "ConfigurationError"]
