"""aumai-apichaos quickstart — short demonstrations of the main features.

Run this file directly to verify your installation:

    python examples/quickstart.py

Delays are skipped with a no-op sleep so the whole file runs in well under
a second.
"""

from __future__ import annotations

import asyncio
import random
import re

from aumai_apichaos import (
    ChaosEngine,
    ChaosEvent,
    ChaosScheduler,
    DecisionRecorder,
    InjectedHTTPError,
    RequestDescriptor,
    ScheduleEntry,
    build_config,
    chaos_monkey,
    list_presets,
)


async def _no_sleep(seconds: float) -> None:
    """Skip injected delays."""


# ---------------------------------------------------------------------------
# Demo 1 — Single decisions
# ---------------------------------------------------------------------------

async def demo_single_decisions() -> None:
    """Decide a handful of requests and print each outcome."""

    print("\n=== Demo 1: Single Decisions ===")

    engine = ChaosEngine(
        build_config(probability=1.0, error_codes=[503, 429]),
        rng=random.Random(7),
        sleep=_no_sleep,
    )
    for _ in range(5):
        outcome = await engine.decide(RequestDescriptor(path="/api/users"))
        print(f"  {outcome.kind.value:<10} {outcome.correlation_id}")

    assert engine.stats().total_requests == 5
    print("  Demo 1 passed.")


# ---------------------------------------------------------------------------
# Demo 2 — Route and probability gates
# ---------------------------------------------------------------------------

async def demo_gates() -> None:
    """Show that disabled routes are never touched."""

    print("\n=== Demo 2: Route Gates ===")

    engine = ChaosEngine.from_options(
        probability=1.0,
        enabled_routes=["/api"],
        disabled_routes=[re.compile(r"/health$")],
        sleep=_no_sleep,
    )
    for path in ("/api/orders", "/api/health", "/static/app.js"):
        outcome = await engine.decide(RequestDescriptor(path=path))
        print(f"  {path:<15} -> {outcome.kind.value}")

    stats = engine.stats()
    assert stats.total_requests == 3
    assert stats.chaos_rate == 1 / 3
    print("  Demo 2 passed.")


# ---------------------------------------------------------------------------
# Demo 3 — Decorating a client call
# ---------------------------------------------------------------------------

async def demo_decorator() -> None:
    """Wrap an async client function with @chaos_monkey."""

    print("\n=== Demo 3: @chaos_monkey Decorator ===")

    engine = ChaosEngine.from_options(
        "extreme", rng=random.Random(3), sleep=_no_sleep, log_events=False
    )

    @chaos_monkey(engine, path="/inventory")
    async def fetch_inventory(sku: str) -> dict[str, int]:
        return {sku: 12}

    failures = 0
    for _ in range(20):
        try:
            await fetch_inventory(sku="ABC-1")
        except InjectedHTTPError as exc:
            failures += 1
            assert 400 <= exc.status_code < 600

    print(f"  {failures}/20 calls raised an injected HTTP error")
    print("  Demo 3 passed.")


# ---------------------------------------------------------------------------
# Demo 4 — Observing decisions
# ---------------------------------------------------------------------------

async def demo_recorder() -> None:
    """Capture the decision event stream with a DecisionRecorder."""

    print("\n=== Demo 4: DecisionRecorder ===")

    recorder = DecisionRecorder()
    engine = ChaosEngine.from_options(probability=0.5, hooks=[recorder], sleep=_no_sleep)
    await asyncio.gather(*(engine.decide(RequestDescriptor(path="/")) for _ in range(50)))

    completed = recorder.get_events(ChaosEvent.decision_completed)
    assert len(completed) == 50
    print(f"  Recorded {len(recorder.get_events())} events for 50 decisions")
    print(f"  Summary: {engine.stats().summary()}")
    print("  Demo 4 passed.")


# ---------------------------------------------------------------------------
# Demo 5 — Scheduling presets
# ---------------------------------------------------------------------------

async def demo_scheduler() -> None:
    """Run the 'wild' preset during one slot of the day."""

    print("\n=== Demo 5: ChaosScheduler ===")
    print(f"  Available presets: {', '.join(list_presets())}")

    scheduler = ChaosScheduler(
        [ScheduleEntry(start="00:00", preset="wild", duration_seconds=86_399)],
        sleep=_no_sleep,
    )
    active = scheduler.active_entry()
    print(f"  Active preset: {active.preset if active else 'none'}")
    outcome = await scheduler.decide(RequestDescriptor(path="/checkout"))
    print(f"  Outcome: {outcome.kind.value}")
    print("  Demo 5 passed.")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

async def _run_all() -> None:
    await demo_single_decisions()
    await demo_gates()
    await demo_decorator()
    await demo_recorder()
    await demo_scheduler()


def main() -> None:
    """Run all quickstart demos in sequence."""
    print("aumai-apichaos quickstart demos")
    print("=" * 45)

    asyncio.run(_run_all())

    print("\n" + "=" * 45)
    print("All demos completed successfully.")


if __name__ == "__main__":
    main()
