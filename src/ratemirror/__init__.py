"""ratemirror - failure classification and diagnostics for a mirrored price cache.

Turns raw fetch failures into typed recovery decisions, tracks whether the
remote price service is reachable, and keeps a bounded diagnostic log.
"""

from ratemirror.core.config import ConnectivityConfig, DiagnosticsConfig, LogConfig
from ratemirror.core.errors import (
    ActionRequired,
    CacheLoadPhase,
    ClassificationContext,
    ErrorDescriptor,
    ErrorKind,
    Severity,
    format_user_message,
    mask_secret,
)
from ratemirror.handler import ErrorHandler

__version__ = "0.1.0"

__all__ = [
    "ActionRequired",
    "CacheLoadPhase",
    "ClassificationContext",
    "ConnectivityConfig",
    "DiagnosticsConfig",
    "ErrorDescriptor",
    "ErrorHandler",
    "ErrorKind",
    "LogConfig",
    "Severity",
    "__version__",
    "format_user_message",
    "mask_secret",
]
