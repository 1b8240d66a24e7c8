"""Named configuration presets and configuration loading."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from aumai_apichaos.models import ChaosConfig, ConfigurationError

DEFAULT_OPTIONS: dict[str, Any] = {
    "probability": 0.2,
    "delay_range": (100, 2000),
    "error_codes": (500, 503),
    "outcome_weights": {"delay": 60, "error": 25, "gibberish": 15},
    "enabled_routes": None,
    "disabled_routes": None,
    "time_windows": None,
    "log_events": False,
}

PRESETS: dict[str, dict[str, Any]] = {
    # Gentle chaos for local development.
    "mild": {
        "probability": 0.1,
        "delay_range": (100, 1000),
        "error_codes": (500,),
        "outcome_weights": {"delay": 70, "error": 20, "gibberish": 10},
        "log_events": True,
    },
    "wild": {
        "probability": 0.3,
        "delay_range": (500, 3000),
        "error_codes": (500, 503, 502),
        "outcome_weights": {"delay": 50, "error": 30, "gibberish": 20},
        "log_events": True,
    },
    # Stress testing.
    "extreme": {
        "probability": 0.7,
        "delay_range": (1000, 10000),
        "error_codes": (500, 503, 502, 429, 404),
        "outcome_weights": {"delay": 40, "error": 40, "gibberish": 20},
        "log_events": True,
    },
    # Full-day window; narrow time_windows to confine chaos to office hours.
    "scheduled": {
        "probability": 0.5,
        "delay_range": (2000, 8000),
        "error_codes": (503, 502),
        "outcome_weights": {"delay": 30, "error": 50, "gibberish": 20},
        "time_windows": ({"start": "00:00", "end": "23:59"},),
        "log_events": True,
    },
    # Starting point for hand-tuned configurations.
    "custom": {
        "probability": 0.2,
        "delay_range": (200, 2000),
        "error_codes": (500, 503),
        "outcome_weights": {"delay": 60, "error": 25, "gibberish": 15},
        "log_events": False,
    },
    "network-like": {
        "probability": 0.4,
        "delay_range": (3000, 15000),
        "error_codes": (502, 503, 504),
        "outcome_weights": {"delay": 60, "error": 35, "gibberish": 5},
        "log_events": True,
    },
}


def list_presets() -> list[str]:
    """Return the names of the shipped presets."""
    return list(PRESETS)


def build_config(preset: str | None = None, **overrides: Any) -> ChaosConfig:
    """Merge *preset* (or the defaults) with *overrides* and validate.

    Args:
        preset:    Optional preset name from :data:`PRESETS`.
        overrides: Any :class:`~aumai_apichaos.models.ChaosConfig` field.

    Raises:
        ConfigurationError: if the preset is unknown or the merged options
            do not validate.
    """
    if preset is None:
        base = DEFAULT_OPTIONS
    else:
        try:
            base = {**DEFAULT_OPTIONS, **PRESETS[preset]}
        except KeyError:
            raise ConfigurationError(
                f"Unknown preset '{preset}'. Available: {', '.join(PRESETS)}"
            ) from None

    return ChaosConfig(**{**base, **overrides})


def load_config(path: str | Path, **overrides: Any) -> ChaosConfig:
    """Load a configuration from a YAML or JSON file.

    The file holds a mapping of :class:`ChaosConfig` fields and may name a
    ``preset`` to start from.  Keyword *overrides* take precedence over the
    file.
    """
    file_path = Path(path)
    try:
        raw = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read configuration {file_path}: {exc}") from exc

    try:
        if file_path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(raw)
        else:
            data = json.loads(raw)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Cannot parse configuration {file_path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration {file_path} must hold a mapping")
    if not all(isinstance(key, str) for key in data):
        raise ConfigurationError(f"Configuration {file_path} keys must be option names")

    options = {**data, **overrides}
    preset = options.pop("preset", None)
    return build_config(preset, **options)


__all__ = ["DEFAULT_OPTIONS", "PRESETS", "build_config", "list_presets", "load_config"]
