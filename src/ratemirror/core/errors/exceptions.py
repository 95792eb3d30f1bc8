"""Exceptions raised by ratemirror itself.

The classifier never raises; these cover the few places where a caller
hands the package something it cannot work with at all.
"""

from __future__ import annotations

from pathlib import Path


class RateMirrorError(Exception):
    """Base class for all ratemirror errors."""


class ConfigurationLoadError(RateMirrorError):
    """Diagnostics configuration could not be read or failed validation."""

    def __init__(self, message: str, source: Path | str | None = None) -> None:
        self.source = source
        if source is not None:
            message = f"{source}: {message}"
        super().__init__(message)
