"""Decision event hooks: logging and in-memory capture."""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable

from aumai_apichaos.models import ChaosEvent, DecisionEvent

logger = logging.getLogger("aumai_apichaos")

EventHook = Callable[[DecisionEvent], None]

_LOG_LEVELS: dict[ChaosEvent, int] = {
    ChaosEvent.decision_started: logging.DEBUG,
    ChaosEvent.decision_skipped: logging.DEBUG,
    ChaosEvent.delay_chosen: logging.INFO,
    ChaosEvent.error_chosen: logging.WARNING,
    ChaosEvent.gibberish_chosen: logging.INFO,
    ChaosEvent.custom_chosen: logging.INFO,
    ChaosEvent.decision_completed: logging.DEBUG,
}


def log_event(event: DecisionEvent) -> None:
    """Hook that writes *event* to the ``aumai_apichaos`` logger."""
    level = _LOG_LEVELS.get(event.event, logging.INFO)
    if not logger.isEnabledFor(level):
        return
    details = " ".join(f"{key}={value}" for key, value in event.details.items())
    logger.log(
        level,
        "chaos %s [%s] %s",
        event.event.value,
        event.correlation_id or "-",
        details,
    )


class DecisionRecorder:
    """Collect decision events emitted by one or more engines.

    Pass an instance as a hook; every call appends the event.  With
    *maxlen* set only the most recent *maxlen* events are kept.  Appends and
    snapshot reads are guarded by a :class:`threading.Lock`.
    """

    def __init__(self, maxlen: int | None = None) -> None:
        if maxlen is not None and maxlen < 1:
            raise ValueError(f"maxlen must be positive, got {maxlen}")
        self._events: deque[DecisionEvent] = deque(maxlen=maxlen)
        self._lock: threading.Lock = threading.Lock()

    def __call__(self, event: DecisionEvent) -> None:
        with self._lock:
            self._events.append(event)

    def get_events(self, kind: ChaosEvent | None = None) -> list[DecisionEvent]:
        """Return a copy of recorded events, optionally filtered by *kind*."""
        with self._lock:
            if kind is None:
                return list(self._events)
            return [e for e in self._events if e.event is kind]

    def clear(self) -> None:
        """Discard all recorded events."""
        with self._lock:
            self._events.clear()


__all__ = ["DecisionRecorder", "EventHook", "log_event"]
