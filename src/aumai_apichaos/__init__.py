"""aumai-apichaos: Chaos decision engine for testing HTTP API resilience."""

from aumai_apichaos.core import ChaosEngine
from aumai_apichaos.custom import (
    CustomChaos,
    CustomChaosRegistry,
    GeneratorContext,
    default_registry,
)
from aumai_apichaos.decorators import InjectedHTTPError, chaos_monkey
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
    OutcomeWeights,
    RequestDescriptor,
    ScheduleEntry,
    TimeWindow,
)
from aumai_apichaos.observer import DecisionRecorder, log_event
from aumai_apichaos.presets import build_config, list_presets, load_config
from aumai_apichaos.scheduler import ChaosScheduler
from aumai_apichaos.stats import StatsTracker

__version__ = "0.1.0"

__all__ = [
    "ChaosConfig",
    "ChaosEngine",
    "ChaosEvent",
    "ChaosScheduler",
    "ChaosStats",
    "ConfigurationError",
    "CustomChaos",
    "CustomChaosRegistry",
    "CustomOutcome",
    "DecisionEvent",
    "DecisionRecorder",
    "DelayOutcome",
    "ErrorOutcome",
    "GeneratorContext",
    "GibberishKind",
    "GibberishOutcome",
    "InjectedHTTPError",
    "NoChaos",
    "Outcome",
    "OutcomeKind",
    "OutcomeWeights",
    "RequestDescriptor",
    "ScheduleEntry",
    "StatsTracker",
    "TimeWindow",
    "build_config",
    "chaos_monkey",
    "default_registry",
    "list_presets",
    "load_config",
    "log_event",
]
