"""Data models for failure classification and diagnostics.

This module provides:
- ClassificationContext: Per-call context for the classifier
- ErrorDescriptor: Immutable classified-failure record returned to callers
- LogEntry: One retained diagnostic record
- ErrorStatistics: Aggregate view over the retained log
- ConnectivityState: Offline flag plus the time it was last established
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from .codes import ActionRequired, CacheLoadPhase, ErrorKind, Severity


@dataclass
class ClassificationContext:
    """Context accompanying a raw failure.

    Which fields matter depends on the kind being classified; the rest are
    ignored. Callers can pass a plain mapping with the same keys instead.
    """

    has_cache: bool = False
    """Network: whether cached rates are available to fall back on."""

    retry_after_seconds: float | None = None
    """RateLimit: the service's Retry-After hint."""

    phase: CacheLoadPhase | str | None = None
    """CacheLoad: which phase failed (startup, refresh, manual, unknown)."""

    status_code: int | None = None
    """ApiGeneric: HTTP status of the failed response."""

    validation_errors: list[str] = field(default_factory=list)
    """Configuration: messages produced by settings validation."""

    api_key: str | None = None
    """Authentication: the credential that was rejected. Never logged unmasked."""

    @classmethod
    def coerce(
        cls, value: ClassificationContext | Mapping[str, Any] | None
    ) -> ClassificationContext:
        """Build a context from None, a mapping, or an existing context.

        Unknown mapping keys are ignored.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, Mapping):
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in value.items() if k in known})


@dataclass(frozen=True)
class ErrorDescriptor:
    """A classified failure with its recovery policy.

    Descriptors are created per classify() call and never retained by the
    core. They are safe to serialize (see to_dict()) for display.
    """

    kind: ErrorKind
    user_message: str
    technical_message: str
    action_required: ActionRequired
    severity: Severity
    can_retry: bool
    recovery_suggestions: tuple[str, ...] = ()
    retry_delay_ms: int | None = None

    status_code: int | None = None
    """ApiGeneric only."""

    validation_errors: tuple[str, ...] | None = None
    """Configuration only."""

    phase: CacheLoadPhase | None = None
    """CacheLoad only."""

    has_cache: bool | None = None
    """Network only."""

    def __post_init__(self) -> None:
        if not self.user_message:
            raise ValueError("user_message must be non-empty")
        if self.can_retry == self.action_required.blocks_retry:
            raise ValueError(
                f"can_retry={self.can_retry} is inconsistent with "
                f"action_required={self.action_required.value}"
            )
        if self.can_retry:
            if self.retry_delay_ms is None or self.retry_delay_ms < 0:
                raise ValueError("retriable descriptors need a non-negative retry_delay_ms")
        elif self.retry_delay_ms is not None:
            raise ValueError("non-retriable descriptors must not carry retry_delay_ms")

    @property
    def requires_user_action(self) -> bool:
        """True if the caller must fix something before any retry helps."""
        return not self.can_retry

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict.

        Kind-specific fields are included only when set.
        """
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "user_message": self.user_message,
            "technical_message": self.technical_message,
            "recovery_suggestions": list(self.recovery_suggestions),
            "action_required": self.action_required.value,
            "severity": self.severity.value,
            "can_retry": self.can_retry,
        }
        if self.retry_delay_ms is not None:
            result["retry_delay_ms"] = self.retry_delay_ms
        if self.status_code is not None:
            result["status_code"] = self.status_code
        if self.validation_errors is not None:
            result["validation_errors"] = list(self.validation_errors)
        if self.phase is not None:
            result["phase"] = self.phase.value
        if self.has_cache is not None:
            result["has_cache"] = self.has_cache
        return result


@dataclass(frozen=True)
class LogEntry:
    """One diagnostic record. Details are redacted before construction."""

    kind: ErrorKind
    details: Mapping[str, Any]
    timestamp_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "details": dict(self.details),
            "timestamp_ms": self.timestamp_ms,
        }


@dataclass
class ErrorStatistics:
    """Aggregate statistics over the retained diagnostic log."""

    total_errors: int = 0
    errors_by_kind: dict[str, int] = field(default_factory=dict)
    recent_errors: int = 0
    offline: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_errors": self.total_errors,
            "errors_by_kind": dict(self.errors_by_kind),
            "recent_errors": self.recent_errors,
            "offline": self.offline,
        }


@dataclass(frozen=True)
class ConnectivityState:
    """Local belief about remote reachability.

    Replaced as a whole on every update so readers never see the flag and
    the timestamp out of step.
    """

    offline: bool = False
    last_checked_ms: int | None = None
