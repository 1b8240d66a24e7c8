"""CLI entry point for aumai-apichaos."""

from __future__ import annotations

import asyncio
import json
import random
import sys
from typing import Any

import click

from aumai_apichaos import __version__
from aumai_apichaos.core import ChaosEngine
from aumai_apichaos.models import ChaosConfig, ConfigurationError, RequestDescriptor
from aumai_apichaos.presets import PRESETS, build_config, load_config


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _resolve_config(
    preset: str | None, config_path: str | None, overrides: dict[str, Any]
) -> ChaosConfig:
    """Build a config from a file or preset, applying non-None *overrides*."""
    overrides = {key: value for key, value in overrides.items() if value is not None}
    try:
        if config_path is not None:
            return load_config(config_path, **overrides)
        return build_config(preset, **overrides)
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


async def _no_sleep(seconds: float) -> None:
    """Stand-in sleep used by ``simulate --no-sleep``."""


def _build_engine(config: ChaosConfig, seed: int | None, no_sleep: bool = False) -> ChaosEngine:
    return ChaosEngine(
        config,
        rng=random.Random(seed),
        sleep=_no_sleep if no_sleep else None,
    )


_config_options = [
    click.option(
        "--preset",
        type=click.Choice(list(PRESETS), case_sensitive=False),
        default=None,
        help="Named preset to start from.",
    ),
    click.option(
        "--config",
        "config_path",
        default=None,
        metavar="PATH",
        help="Configuration file (YAML or JSON).",
    ),
    click.option("--probability", type=float, default=None, help="Override the chaos probability."),
    click.option("--seed", type=int, default=None, help="Seed for reproducible decisions."),
]


def _with_config_options(func: Any) -> Any:
    for option in reversed(_config_options):
        func = option(func)
    return func


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(__version__)
def main() -> None:
    """AumAI API Chaos — inject latency, errors and gibberish into HTTP APIs."""


@main.command("presets")
@click.option("--json-output", is_flag=True, help="Emit presets as JSON.")
def presets_command(json_output: bool) -> None:
    """List the shipped presets and their parameters."""
    configs = {name: build_config(name) for name in PRESETS}

    if json_output:
        click.echo(
            json.dumps(
                {name: config.model_dump(mode="json") for name, config in configs.items()},
                indent=2,
            )
        )
        return

    for name, config in configs.items():
        weights = config.outcome_weights
        low, high = config.delay_range
        click.echo(f"{name}")
        click.echo(f"  probability : {config.probability}")
        click.echo(f"  delay_range : {low}-{high} ms")
        click.echo(f"  error_codes : {', '.join(str(c) for c in config.error_codes)}")
        click.echo(
            f"  weights     : delay={weights.delay} error={weights.error} "
            f"gibberish={weights.gibberish}"
        )


@main.command("decide")
@click.option("--path", required=True, help="Request path to decide for.")
@click.option("--method", default="GET", show_default=True, help="Request method.")
@click.option("--no-sleep", is_flag=True, help="Do not wait out injected delays.")
@click.option("--json-output", is_flag=True, help="Emit the outcome as JSON.")
@_with_config_options
def decide_command(
    path: str,
    method: str,
    no_sleep: bool,
    json_output: bool,
    preset: str | None,
    config_path: str | None,
    probability: float | None,
    seed: int | None,
) -> None:
    """Make a single chaos decision for a request."""
    config = _resolve_config(preset, config_path, {"probability": probability})
    engine = _build_engine(config, seed, no_sleep)
    outcome = asyncio.run(engine.decide(RequestDescriptor(path=path, method=method.upper())))

    if json_output:
        click.echo(outcome.model_dump_json(indent=2))
        return

    click.echo(f"Outcome   : {outcome.kind.value}")
    if outcome.correlation_id:
        click.echo(f"Id        : {outcome.correlation_id}")
    for key, value in outcome.model_dump(mode="json", exclude={"kind", "correlation_id"}).items():
        click.echo(f"{key:<10}: {value}")


@main.command("simulate")
@click.option("--requests", "request_count", default=100, show_default=True, type=click.IntRange(min=1), help="Number of decisions to make.")
@click.option("--path", default="/", show_default=True, help="Request path to decide for.")
@click.option("--method", default="GET", show_default=True, help="Request method.")
@click.option("--no-sleep", is_flag=True, help="Do not wait out injected delays.")
@click.option("--json-output", is_flag=True, help="Emit statistics as JSON.")
@_with_config_options
def simulate_command(
    request_count: int,
    path: str,
    method: str,
    no_sleep: bool,
    json_output: bool,
    preset: str | None,
    config_path: str | None,
    probability: float | None,
    seed: int | None,
) -> None:
    """Run many decisions concurrently and report the statistics."""
    config = _resolve_config(preset, config_path, {"probability": probability})
    engine = _build_engine(config, seed, no_sleep)
    request = RequestDescriptor(path=path, method=method.upper())

    async def _run() -> None:
        await asyncio.gather(*(engine.decide(request) for _ in range(request_count)))

    asyncio.run(_run())
    summary = engine.stats().summary()

    if json_output:
        click.echo(json.dumps(summary, indent=2))
        return

    click.echo(f"Requests  : {summary['total_requests']}")
    click.echo(f"Delayed   : {summary['delayed_requests']} (avg {summary['average_delay_ms']} ms)")
    click.echo(f"Errors    : {summary['error_requests']}")
    click.echo(f"Gibberish : {summary['gibberish_requests']}")
    click.echo(f"Custom    : {summary['custom_requests']}")
    click.echo(f"Chaos rate: {summary['chaos_rate_percent']}")


if __name__ == "__main__":
    main()
