"""Decorator sink adapter for injecting chaos into async callables."""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from aumai_apichaos.core import ChaosEngine
from aumai_apichaos.custom import transform_body
from aumai_apichaos.models import (
    CustomOutcome,
    ErrorOutcome,
    GibberishOutcome,
    RequestDescriptor,
)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


class InjectedHTTPError(RuntimeError):
    """Simulated HTTP error raised by :func:`chaos_monkey`."""

    def __init__(self, status_code: int, message: str, correlation_id: str) -> None:
        super().__init__(f"[{status_code}] {message}")
        self.status_code = status_code
        self.message = message
        self.correlation_id = correlation_id


def chaos_monkey(
    engine: ChaosEngine,
    *,
    path: str | None = None,
    method: str = "CALL",
) -> Callable[[F], F]:
    """Decorator that consults *engine* before every call of an async function.

    Args:
        engine: The engine deciding each call.
        path:   Route reported to the engine; defaults to ``/<qualname>``
                so route filters can target individual functions.
        method: Method reported to the engine.

    An error outcome raises :class:`InjectedHTTPError`; a gibberish outcome
    is returned in place of the function's result; delays have already
    elapsed when the function runs.  Body-rewriting custom outcomes are
    applied to string results.

    Example::

        @chaos_monkey(engine, path="/inventory")
        async def fetch_inventory(sku: str) -> dict:
            ...
    """

    def decorator(func: F) -> F:
        route = path or f"/{func.__qualname__}"

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            outcome = await engine.decide(
                RequestDescriptor(path=route, method=method, query=dict(kwargs))
            )
            if isinstance(outcome, ErrorOutcome):
                raise InjectedHTTPError(
                    outcome.status_code, outcome.message, outcome.correlation_id
                )
            if isinstance(outcome, GibberishOutcome):
                return outcome.body
            if isinstance(outcome, CustomOutcome):
                payload = outcome.payload
                if "status_code" in payload:
                    raise InjectedHTTPError(
                        int(payload["status_code"]),
                        str(payload.get("message", outcome.name)),
                        outcome.correlation_id,
                    )
                if "content" in payload:
                    return payload["content"]

            result = await func(*args, **kwargs)
            if isinstance(outcome, CustomOutcome) and isinstance(result, str):
                rewritten = transform_body(outcome.payload, result)
                if rewritten is not None:
                    return rewritten
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = ["InjectedHTTPError", "chaos_monkey"]
