"""Message pools and gibberish body synthesis for injected responses."""

from __future__ import annotations

import json
import random
from datetime import datetime

from aumai_apichaos.models import GibberishKind

ERROR_MESSAGES: dict[int, tuple[str, ...]] = {
    400: (
        "Bad Request - the monkey scribbled over your payload",
        "Request rejected after a chaotic review",
    ),
    401: (
        "Unauthorized - the monkey misplaced your credentials",
        "Token eaten by the chaos monkey",
    ),
    403: (
        "Forbidden - the monkey is guarding this door",
        "Access revoked for no good reason",
    ),
    404: (
        "Not Found - the monkey hid this resource",
        "Resource wandered off into the jungle",
    ),
    429: (
        "Too Many Requests - the monkey needs a nap",
        "Rate limit exceeded by monkey business",
        "Slow down, the monkey cannot keep up",
    ),
    500: (
        "Internal Server Error - the monkey broke something",
        "Server meltdown courtesy of the chaos monkey",
        "The monkey pressed the wrong button",
    ),
    502: (
        "Bad Gateway - the monkey chewed through the cable",
        "Upstream answered in monkey language",
        "Gateway got monkey-slapped",
    ),
    503: (
        "Service Unavailable - the monkey is on a banana break",
        "The monkeys are on strike",
        "Service temporarily monkeyed with",
    ),
    504: (
        "Gateway Timeout - the monkey forgot to answer",
        "Upstream is still swinging between trees",
    ),
}

GENERIC_MESSAGES: tuple[str, ...] = (
    "Unknown chaos error",
    "Something went bananas",
)

NONSENSE_WORDS: tuple[str, ...] = (
    "OOGA",
    "BOOGA",
    "BANANA",
    "CHAOS",
    "MONKEY",
    "MAYHEM",
    "HAVOC",
    "PANDEMONIUM",
)

CONTENT_TYPES: dict[GibberishKind, str] = {
    GibberishKind.structured_data: "application/json",
    GibberishKind.markup_document: "text/html",
    GibberishKind.plain_text: "text/plain",
}


def messages_for(status_code: int) -> tuple[str, ...]:
    """Return the message pool for *status_code* (generic pool if unknown)."""
    return ERROR_MESSAGES.get(status_code, GENERIC_MESSAGES)


def pick_error_message(rng: random.Random, status_code: int) -> str:
    return rng.choice(messages_for(status_code))


def _words(rng: random.Random, count: int) -> list[str]:
    return [rng.choice(NONSENSE_WORDS) for _ in range(count)]


def render_gibberish(
    rng: random.Random, kind: GibberishKind, now: datetime
) -> tuple[str, str]:
    """Synthesise a ``(content_type, body)`` pair for *kind*.

    Structured data is a small JSON document with randomised field values,
    markup is a minimal HTML page and plain text is a line of nonsense.
    """
    content_type = CONTENT_TYPES[kind]

    if kind is GibberishKind.structured_data:
        document = {
            "chaos": True,
            "message": " ".join(_words(rng, 2)),
            "monkey_level": rng.randint(0, 99),
            "bananas": _words(rng, rng.randint(1, 5)),
            "timestamp": now.isoformat(),
            "warning": "This response has been monkey-fied",
        }
        return content_type, json.dumps(document, indent=2)

    if kind is GibberishKind.markup_document:
        heading = " ".join(_words(rng, 2))
        level = rng.randint(0, 99)
        body = (
            "<!DOCTYPE html>\n"
            "<html><head><title>Chaos Monkey Strike!</title></head>\n"
            "<body>\n"
            f"  <h1>{heading}!</h1>\n"
            "  <p>Your request has been monkey-fied!</p>\n"
            f"  <p>Chaos Level: {level}%</p>\n"
            "</body></html>"
        )
        return content_type, body

    return content_type, f"{' '.join(_words(rng, 2))}! The Chaos Monkey has struck!"


__all__ = [
    "CONTENT_TYPES",
    "ERROR_MESSAGES",
    "GENERIC_MESSAGES",
    "NONSENSE_WORDS",
    "messages_for",
    "pick_error_message",
    "render_gibberish",
]
