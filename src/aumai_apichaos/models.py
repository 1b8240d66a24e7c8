"""Pydantic models for aumai-apichaos."""

from __future__ import annotations

import logging
import re
from datetime import datetime, time
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)

logger = logging.getLogger("aumai_apichaos")

# Status codes the built-in message pools were written for.  Anything else
# in the HTTP range is accepted but flagged.
KNOWN_ERROR_CODES: frozenset[int] = frozenset(
    {400, 401, 403, 404, 429, 500, 502, 503, 504}
)


class ConfigurationError(ValueError):
    """Raised when a chaos configuration is rejected at construction time."""


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class OutcomeKind(str, Enum):
    """Tags of the decision outcome variant."""

    none = "none"
    delay = "delay"
    error = "error"
    gibberish = "gibberish"
    custom = "custom"


class GibberishKind(str, Enum):
    """Content families a gibberish body can be synthesised as."""

    structured_data = "structured-data"
    markup_document = "markup-document"
    plain_text = "plain-text"


class ChaosEvent(str, Enum):
    """Fixed set of extension points emitted by the engine."""

    decision_started = "decision_started"
    decision_skipped = "decision_skipped"
    delay_chosen = "delay_chosen"
    error_chosen = "error_chosen"
    gibberish_chosen = "gibberish_chosen"
    custom_chosen = "custom_chosen"
    decision_completed = "decision_completed"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

RouteMatcher = Union[str, re.Pattern[str]]


class _ConfigModel(BaseModel):
    """Configuration model whose validation failures raise ConfigurationError."""

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc


def _clock_value(value: Any) -> Any:
    # YAML 1.1 reads unquoted 17:30 as the base-60 integer 1050.
    if isinstance(value, (str, time)):
        return value
    raise ValueError(f"expected an 'HH:MM' string, got {value!r}")


class OutcomeWeights(_ConfigModel):
    """Relative weights of the three built-in intervention kinds."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    delay: int = Field(default=60, ge=0)
    error: int = Field(default=25, ge=0)
    gibberish: int = Field(default=15, ge=0)

    @property
    def total(self) -> int:
        return self.delay + self.error + self.gibberish


class TimeWindow(_ConfigModel):
    """Same-day wall-clock window; both ends inclusive.

    Windows crossing midnight are not supported: ``start`` must not be
    later than ``end``.  Use two windows to cover a span around midnight.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    start: time
    end: time

    @field_validator("start", "end", mode="before")
    @classmethod
    def _require_clock_string(cls, value: Any) -> Any:
        return _clock_value(value)

    @model_validator(mode="after")
    def _check_order(self) -> TimeWindow:
        if self.start_minute > self.end_minute:
            raise ValueError(
                f"time window start {self.start:%H:%M} is after end "
                f"{self.end:%H:%M}; windows crossing midnight are not supported"
            )
        return self

    @property
    def start_minute(self) -> int:
        return self.start.hour * 60 + self.start.minute

    @property
    def end_minute(self) -> int:
        return self.end.hour * 60 + self.end.minute


class ChaosConfig(_ConfigModel):
    """Immutable configuration for a :class:`~aumai_apichaos.core.ChaosEngine`.

    Invalid values raise :class:`ConfigurationError`.  Use
    :func:`~aumai_apichaos.presets.build_config` to start from a preset.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    probability: float = Field(default=0.2, ge=0.0, le=1.0)
    delay_range: tuple[int, int] = (100, 2000)
    error_codes: tuple[int, ...] = (500, 503)
    outcome_weights: OutcomeWeights = Field(default_factory=OutcomeWeights)
    enabled_routes: tuple[RouteMatcher, ...] | None = None
    disabled_routes: tuple[RouteMatcher, ...] | None = None
    time_windows: tuple[TimeWindow, ...] | None = None
    custom_chaos: tuple[str, ...] = ()
    custom_share: float = Field(default=0.25, ge=0.0, le=1.0)
    log_events: bool = False

    @field_validator("delay_range")
    @classmethod
    def _check_delay_range(cls, value: tuple[int, int]) -> tuple[int, int]:
        low, high = value
        if low < 0 or high < 0:
            raise ValueError("delay_range bounds must be non-negative")
        if low > high:
            raise ValueError(f"delay_range min ({low}) must not exceed max ({high})")
        return value

    @field_validator("error_codes")
    @classmethod
    def _check_error_codes(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if not value:
            raise ValueError("error_codes must be a non-empty collection")
        invalid = [code for code in value if not 100 <= code <= 599]
        if invalid:
            raise ValueError(f"error_codes are not HTTP status codes: {invalid}")
        unusual = sorted(set(value) - KNOWN_ERROR_CODES)
        if unusual:
            logger.warning("Unusual error codes configured: %s", unusual)
        return value

    @field_validator("outcome_weights")
    @classmethod
    def _default_zero_weights(cls, value: OutcomeWeights) -> OutcomeWeights:
        if value.total == 0:
            logger.warning("All outcome weights are zero; using default weights")
            return OutcomeWeights()
        return value

    @field_validator("enabled_routes", "disabled_routes", mode="before")
    @classmethod
    def _coerce_routes(cls, value: Any) -> Any:
        if value is None:
            return None
        if isinstance(value, (str, re.Pattern)):
            value = [value]
        coerced: list[Any] = []
        for item in value:
            if isinstance(item, dict) and "pattern" in item:
                coerced.append(re.compile(item["pattern"]))
            else:
                coerced.append(item)
        return coerced


class ScheduleEntry(_ConfigModel):
    """A preset that is active for *duration_seconds* from *start* each day."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    start: time
    preset: str
    duration_seconds: int = Field(default=3600, gt=0)

    @field_validator("start", mode="before")
    @classmethod
    def _require_clock_string(cls, value: Any) -> Any:
        return _clock_value(value)

    @property
    def start_second(self) -> int:
        return self.start.hour * 3600 + self.start.minute * 60 + self.start.second


# ---------------------------------------------------------------------------
# Request descriptor
# ---------------------------------------------------------------------------


class RequestDescriptor(BaseModel):
    """Read-only snapshot of an inbound request handed to the engine."""

    model_config = ConfigDict(frozen=True)

    path: str
    method: str = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    query: dict[str, Any] = Field(default_factory=dict)
    body: Any = None


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------


class _OutcomeBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def is_intervention(self) -> bool:
        return self.kind is not OutcomeKind.none  # type: ignore[attr-defined]


class NoChaos(_OutcomeBase):
    """The request passes through untouched."""

    kind: Literal[OutcomeKind.none] = OutcomeKind.none
    correlation_id: None = None


class DelayOutcome(_OutcomeBase):
    """Latency that has already elapsed by the time the outcome is returned."""

    kind: Literal[OutcomeKind.delay] = OutcomeKind.delay
    correlation_id: str
    milliseconds: int = Field(ge=0)


class ErrorOutcome(_OutcomeBase):
    kind: Literal[OutcomeKind.error] = OutcomeKind.error
    correlation_id: str
    status_code: int
    message: str


class GibberishOutcome(_OutcomeBase):
    kind: Literal[OutcomeKind.gibberish] = OutcomeKind.gibberish
    correlation_id: str
    content_kind: GibberishKind
    content_type: str
    body: str


class CustomOutcome(_OutcomeBase):
    """Outcome produced by a registered custom chaos generator."""

    kind: Literal[OutcomeKind.custom] = OutcomeKind.custom
    correlation_id: str
    name: str
    payload: dict[str, Any] = Field(default_factory=dict)


Outcome = Annotated[
    Union[NoChaos, DelayOutcome, ErrorOutcome, GibberishOutcome, CustomOutcome],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Statistics and events
# ---------------------------------------------------------------------------


class ChaosStats(BaseModel):
    """Immutable snapshot of the engine's running statistics."""

    model_config = ConfigDict(frozen=True)

    total_requests: int = 0
    delayed_requests: int = 0
    error_requests: int = 0
    gibberish_requests: int = 0
    custom_requests: int = 0
    average_delay: float = 0.0
    started_at: datetime
    uptime_seconds: float = 0.0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def chaos_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        interventions = (
            self.delayed_requests
            + self.error_requests
            + self.gibberish_requests
            + self.custom_requests
        )
        return interventions / self.total_requests

    def summary(self) -> dict[str, object]:
        """Return the snapshot plus human-friendly display fields."""
        data: dict[str, object] = self.model_dump(mode="json")
        data["chaos_rate_percent"] = f"{self.chaos_rate * 100:.1f}%"
        data["uptime_seconds"] = int(self.uptime_seconds)
        data["average_delay_ms"] = round(self.average_delay)
        return data


class DecisionEvent(BaseModel):
    """A single timestamped event emitted while deciding a request."""

    timestamp: datetime
    event: ChaosEvent
    correlation_id: str | None = None
    details: dict[str, object] = Field(default_factory=dict)


__all__ = [
    "KNOWN_ERROR_CODES",
    "ChaosConfig",
    "ChaosEvent",
    "ChaosStats",
    "ConfigurationError",
    "CustomOutcome",
    "DecisionEvent",
    "DelayOutcome",
    "ErrorOutcome",
    "GibberishKind",
    "GibberishOutcome",
    "NoChaos",
    "Outcome",
    "OutcomeKind",
    "OutcomeWeights",
    "RequestDescriptor",
    "RouteMatcher",
    "ScheduleEntry",
    "TimeWindow",
]
