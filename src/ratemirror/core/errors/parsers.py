"""Helpers for turning raw exceptions into classifier input.

The fetch layer usually has an exception in hand rather than a kind. This
module infers the kind and context from it so the caller can hand both to
ErrorClassifier.classify().

This module provides:
- parse_retry_after(): Parse a Retry-After header value
- describe_error(): Best-effort technical message for any failure value
- infer_failure(): Map an exception to (kind, context)
"""

from __future__ import annotations

import math
import re
import socket
from email.utils import parsedate_to_datetime
from typing import Any, NamedTuple

import httpx

from ratemirror.core.constants import UNKNOWN_ERROR_MESSAGE
from ratemirror.utils.time import now_ms

from .codes import CacheLoadPhase, ErrorKind
from .models import ClassificationContext

# Message patterns in priority order; the phrases mirror what the price API
# client raises for each HTTP failure.
_AUTH_PATTERNS = [
    r"authentication failed",
    r"invalid.?api.?key",
    r"unauthori[sz]ed",
]

_RATE_LIMIT_PATTERNS = [
    r"rate.?limit",
    r"too many requests",
]

_NETWORK_PATTERNS = [
    r"network error",
    r"unable to connect",
    r"connection.?(refused|reset|aborted)",
    r"name.?resolution",
    r"getaddrinfo",
    r"timed? ?out",
]

_STATUS_IN_MESSAGE = re.compile(r"\bHTTP (\d{3})\b")

_NETWORK_EXCEPTIONS: tuple[type[BaseException], ...] = (
    httpx.TimeoutException,
    httpx.TransportError,
    ConnectionError,
    TimeoutError,
    socket.gaierror,
)


def _compile(patterns: list[str]) -> re.Pattern[str]:
    return re.compile("|".join(f"(?:{p})" for p in patterns), re.IGNORECASE)


_AUTH_RE = _compile(_AUTH_PATTERNS)
_RATE_LIMIT_RE = _compile(_RATE_LIMIT_PATTERNS)
_NETWORK_RE = _compile(_NETWORK_PATTERNS)


class InferredFailure(NamedTuple):
    """Result of infer_failure(): the kind to classify under and its context."""

    kind: ErrorKind
    context: ClassificationContext


def parse_retry_after(value: str | int | float | None, now: int | None = None) -> int | None:
    """Parse a Retry-After header value into whole seconds.

    Accepts delta-seconds ("120") or an HTTP-date
    ("Wed, 21 Oct 2026 07:28:00 GMT"). Dates in the past yield 0.

    Args:
        value: Raw header value.
        now: Current time in epoch milliseconds (defaults to the wall clock).

    Returns:
        Seconds to wait, or None if the value is missing or unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if not math.isfinite(value) or value < 0:
            return None
        return math.ceil(value)

    text = value.strip()
    if not text:
        return None
    # str.isdigit() also accepts non-ASCII digits such as "²"
    if text.isascii() and text.isdigit():
        try:
            return int(text)
        except ValueError:
            # Beyond the interpreter's integer string conversion limit
            return None

    try:
        when = parsedate_to_datetime(text)
    except (TypeError, ValueError, OverflowError):
        return None
    if when.tzinfo is None:
        return None
    current = now if now is not None else now_ms()
    delta_ms = when.timestamp() * 1000 - current
    return max(0, math.ceil(delta_ms / 1000))


def describe_error(error: Any) -> str:
    """Best-effort technical message for any failure value.

    Never raises. Exceptions without text fall back to their class name;
    missing values fall back to a fixed placeholder.
    """
    if error is None:
        return UNKNOWN_ERROR_MESSAGE
    if isinstance(error, str):
        return error or UNKNOWN_ERROR_MESSAGE
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    try:
        text = str(error)
    except Exception:
        text = ""
    if text:
        return text
    if isinstance(error, BaseException):
        return type(error).__name__
    return UNKNOWN_ERROR_MESSAGE


def infer_failure(
    error: Any,
    *,
    has_cache: bool = False,
    phase: CacheLoadPhase | str | None = None,
    api_key: str | None = None,
) -> InferredFailure:
    """Infer the failure kind and context from a raw exception.

    Checks in order: HTTP status errors, transport/network exceptions,
    then message patterns (authentication, rate limit, network, embedded
    "HTTP nnn" status). Everything else is api_generic.

    When ``phase`` is given, a failure that would otherwise be generic is
    reported as a cache load failure for that phase.

    Args:
        error: The exception (or message) raised by the fetch layer.
        has_cache: Whether cached rates are available.
        phase: Cache load phase in progress, if any.
        api_key: Credential in use, forwarded for masked logging.

    Returns:
        InferredFailure with the kind and a populated ClassificationContext.
    """
    context = ClassificationContext(has_cache=has_cache, phase=phase, api_key=api_key)

    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        context.status_code = response.status_code
        context.retry_after_seconds = parse_retry_after(response.headers.get("retry-after"))
        return InferredFailure(ErrorKind.API_GENERIC, context)

    if isinstance(error, _NETWORK_EXCEPTIONS):
        return InferredFailure(ErrorKind.NETWORK, context)

    message = describe_error(error)

    if _AUTH_RE.search(message):
        return InferredFailure(ErrorKind.AUTHENTICATION, context)
    if _RATE_LIMIT_RE.search(message):
        return InferredFailure(ErrorKind.RATE_LIMIT, context)
    if _NETWORK_RE.search(message):
        return InferredFailure(ErrorKind.NETWORK, context)

    status_match = _STATUS_IN_MESSAGE.search(message)
    if status_match:
        context.status_code = int(status_match.group(1))
        return InferredFailure(ErrorKind.API_GENERIC, context)

    if phase is not None:
        return InferredFailure(ErrorKind.CACHE_LOAD, context)
    return InferredFailure(ErrorKind.API_GENERIC, context)


__all__ = [
    "InferredFailure",
    "describe_error",
    "infer_failure",
    "parse_retry_after",
]
