"""Starlette / ASGI sink adapter for the chaos engine."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.types import ASGIApp

from aumai_apichaos.core import ChaosEngine
from aumai_apichaos.custom import transform_body, transforms_body
from aumai_apichaos.models import (
    CustomOutcome,
    ErrorOutcome,
    GibberishOutcome,
    Outcome,
    RequestDescriptor,
)

logger = logging.getLogger("aumai_apichaos")


def error_body(
    message: str, correlation_id: str, now: datetime | None = None
) -> dict[str, Any]:
    """JSON body written for injected error responses."""
    timestamp = now if now is not None else datetime.now(tz=UTC)
    return {
        "error": True,
        "message": message,
        "correlationId": correlation_id,
        "timestamp": timestamp.isoformat(),
    }


def outcome_response(outcome: Outcome) -> Response | None:
    """Translate *outcome* into a response, or None to call the next handler.

    ``NoChaos`` and ``DelayOutcome`` pass through (a delay has already
    elapsed).  Custom payloads carrying ``status_code`` become error
    responses; payloads carrying ``content`` replace the body.
    """
    if isinstance(outcome, ErrorOutcome):
        return JSONResponse(
            error_body(outcome.message, outcome.correlation_id),
            status_code=outcome.status_code,
        )

    if isinstance(outcome, GibberishOutcome):
        return Response(content=outcome.body, media_type=outcome.content_type)

    if isinstance(outcome, CustomOutcome):
        payload = outcome.payload
        if "status_code" in payload:
            message = str(payload.get("message", f"Custom chaos '{outcome.name}'"))
            return JSONResponse(
                error_body(message, outcome.correlation_id),
                status_code=int(payload["status_code"]),
            )
        if "content" in payload:
            return PlainTextResponse(str(payload["content"]))

    return None


async def rewrite_body(response: Response, payload: dict[str, Any]) -> Response:
    """Read *response* and return a copy whose body *payload* has rewritten.

    Status, headers and background tasks are kept; ``content-length`` is
    recomputed.  Bodies that are not UTF-8 text, or payloads that cannot be
    applied, leave the body unchanged.
    """
    body_iterator = getattr(response, "body_iterator", None)
    if body_iterator is None:
        raw = bytes(response.body)
    else:
        chunks = [
            chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)
            async for chunk in body_iterator
        ]
        raw = b"".join(chunks)

    body = raw
    try:
        rewritten = transform_body(payload, raw.decode("utf-8"))
    except (TypeError, ValueError):
        logger.exception("Could not rewrite response body; leaving it unchanged")
    else:
        if rewritten is not None:
            body = rewritten.encode("utf-8")

    new_response = Response(
        content=body,
        status_code=response.status_code,
        background=getattr(response, "background", None),
    )
    new_response.raw_headers = [
        (key, value) for key, value in response.raw_headers if key != b"content-length"
    ] + [(b"content-length", str(len(body)).encode("latin-1"))]
    return new_response


async def describe_request(request: Request) -> RequestDescriptor:
    """Snapshot a Starlette request.  The body is left unread."""
    return RequestDescriptor(
        path=request.url.path,
        method=request.method,
        headers=dict(request.headers),
        query=dict(request.query_params),
    )


class ChaosMiddleware(BaseHTTPMiddleware):
    """Inject chaos into every request passing through a Starlette app.

    Example::

        app.add_middleware(ChaosMiddleware, engine=ChaosEngine.from_options("mild"))

    When *engine* is omitted one is built from *options* via
    :meth:`ChaosEngine.from_options`.

    Custom outcomes that rewrite bodies (``corrupt-body``, ``inflate-body``)
    let the request through and rewrite the downstream response.
    """

    def __init__(
        self, app: ASGIApp, engine: ChaosEngine | None = None, **options: Any
    ) -> None:
        super().__init__(app)
        self.engine = engine if engine is not None else ChaosEngine.from_options(**options)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        outcome = await self.engine.decide(await describe_request(request))
        try:
            response = outcome_response(outcome)
        except Exception:
            logger.exception(
                "Could not apply chaos outcome %s (%s)", outcome.kind.value, outcome.correlation_id
            )
            response = None
        if response is not None:
            return response

        response = await call_next(request)
        if isinstance(outcome, CustomOutcome) and transforms_body(outcome.payload):
            response = await rewrite_body(response, outcome.payload)
        return response


__all__ = [
    "ChaosMiddleware",
    "describe_request",
    "error_body",
    "outcome_response",
    "rewrite_body",
]
