"""Structured logging infrastructure for ratemirror.

Provides structured logging using structlog with component names bound to
every entry. Supports console and JSON output, optionally written to a
rotating log file.

Example usage:
    from ratemirror.core.logging import configure_logging, get_logger

    # Configure once at startup
    configure_logging(level="DEBUG", format="console")

    # Get a component-specific logger
    logger = get_logger("classifier")

    # Log with context
    logger.warning("error_classified", kind="network", can_retry=True)

    # Bind context for a scope
    probe_logger = logger.bind(probe_url="https://api.coingecko.com/api/v3/ping")
    probe_logger.debug("connectivity_probe_started")
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# Field names whose values should never be logged verbatim
SENSITIVE_PATTERNS = frozenset({
    "api_key",
    "apikey",
    "api-key",
    "token",
    "secret",
    "password",
    "credential",
    "bearer",
    "authorization",
})

# Masked API keys are logged under this field; they are already redacted
_PRE_MASKED_FIELDS = frozenset({"masked_api_key"})


def _sanitize_value(key: str, value: Any) -> Any:
    """Sanitize potentially sensitive values.

    Args:
        key: The key/field name being logged.
        value: The value to potentially sanitize.

    Returns:
        Original value if safe, "[REDACTED]" if sensitive.
    """
    key_lower = key.lower()
    if key_lower in _PRE_MASKED_FIELDS:
        return value
    for pattern in SENSITIVE_PATTERNS:
        if pattern in key_lower:
            return "[REDACTED]"
    return value


def _sanitize_event_dict(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that sanitizes sensitive fields.

    Nested dicts (such as diagnostic ``details``) are sanitized one level deep.
    """
    sanitized: EventDict = {}
    for key, value in event_dict.items():
        if isinstance(value, dict):
            sanitized[key] = {k: _sanitize_value(k, v) for k, v in value.items()}
        else:
            sanitized[key] = _sanitize_value(key, value)
    return sanitized


def _add_timestamp(
    logger: WrappedLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that adds an ISO8601 UTC timestamp."""
    event_dict["timestamp"] = datetime.now(UTC).isoformat()
    return event_dict


class RateMirrorLogger:
    """Component logger wrapper around structlog.

    The logger is bound to a component name and can carry extra context
    for a scope. The underlying structlog logger is fetched lazily on every
    call so loggers created at import time still honour a configuration
    applied later via configure_logging().
    """

    def __init__(self, component: str, **initial_context: Any) -> None:
        self._component = component
        self._context: dict[str, Any] = {"component": component, **initial_context}

    def _get_logger(self) -> structlog.stdlib.BoundLogger:
        logger: structlog.stdlib.BoundLogger = structlog.get_logger().bind(**self._context)
        return logger

    @property
    def component(self) -> str:
        return self._component

    def bind(self, **context: Any) -> RateMirrorLogger:
        """Create a new logger with additional bound context."""
        new_logger = RateMirrorLogger.__new__(RateMirrorLogger)
        new_logger._component = self._component
        new_logger._context = {**self._context, **context}
        return new_logger

    def unbind(self, *keys: str) -> RateMirrorLogger:
        """Create a new logger with the given keys removed."""
        new_logger = RateMirrorLogger.__new__(RateMirrorLogger)
        new_logger._component = self._component
        new_logger._context = {k: v for k, v in self._context.items() if k not in keys}
        return new_logger

    def debug(self, event: str, **kw: Any) -> None:
        self._get_logger().debug(event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._get_logger().info(event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._get_logger().warning(event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._get_logger().error(event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log an exception with traceback. Call from within an except block."""
        self._get_logger().exception(event, **kw)


def _get_processors(
    format: Literal["json", "console", "both"],  # noqa: A002
    include_timestamps: bool,
) -> list[Processor]:
    """Build the structlog processor chain for the given output format."""
    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        _sanitize_event_dict,
    ]

    if include_timestamps:
        processors.append(_add_timestamp)

    processors.extend([
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ])

    if format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    return processors


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    format: Literal["json", "console", "both"] = "console",  # noqa: A002
    file_path: Path | None = None,
    max_file_size_mb: int = 10,
    backup_count: int = 3,
    include_timestamps: bool = True,
) -> None:
    """Configure ratemirror structured logging.

    Call once at startup, before the ErrorHandler is constructed.

    Args:
        level: Minimum log level to capture.
        format: "json" for structured output, "console" for human-readable,
            "both" for console to stderr and the same lines to file_path.
        file_path: Optional log file. Required if format="both".
        max_file_size_mb: Log file size that triggers rotation.
        backup_count: Number of rotated log files to keep.
        include_timestamps: Whether to add ISO8601 timestamps.

    Raises:
        ValueError: If format="both" but file_path is not provided.
    """
    if format == "both" and file_path is None:
        raise ValueError("file_path is required when format='both'")

    log_level = getattr(logging, level)
    handlers: list[logging.Handler] = []

    if format in ("console", "both"):
        handlers.append(logging.StreamHandler(sys.stderr))

    if file_path is not None:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                file_path,
                maxBytes=max_file_size_mb * 1024 * 1024,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )
    elif format == "json":
        handlers.append(logging.StreamHandler(sys.stdout))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setLevel(log_level)
        root_logger.addHandler(handler)

    # cache_logger_on_first_use=False keeps import-time loggers in step with
    # later configure_logging() calls
    structlog.configure(
        processors=_get_processors(format, include_timestamps),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **initial_context: Any) -> RateMirrorLogger:
    """Get a logger bound to a component name (e.g. "classifier")."""
    return RateMirrorLogger(component, **initial_context)


__all__ = [
    "RateMirrorLogger",
    "SENSITIVE_PATTERNS",
    "configure_logging",
    "get_logger",
]
