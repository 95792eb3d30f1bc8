"""ErrorClassifier: turns raw failures into ErrorDescriptors.

Each call resolves the kind through a fixed dispatch table, applies the
recovery policy for the matching rule, redacts credentials, records exactly
one diagnostic log entry and returns the descriptor. The classifier is the
terminal point for failures: it never raises.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, NamedTuple

from ratemirror.core.constants import (
    RATE_LIMIT_DEFAULT_RETRY_AFTER_SECONDS,
    RATE_LIMIT_MAX_RETRY_AFTER_SECONDS,
)
from ratemirror.core.logging import get_logger

from .codes import (
    CacheLoadPhase,
    ErrorKind,
    PolicyRule,
    RecoveryPolicy,
    Severity,
    get_policy,
)
from .masking import mask_secret, redact_secret
from .models import ClassificationContext, ErrorDescriptor
from .parsers import describe_error, parse_retry_after

if TYPE_CHECKING:
    from ratemirror.connectivity.monitor import ConnectivityMonitor
    from ratemirror.diagnostics.log import DiagnosticLog

_logger = get_logger("classifier")

# A handler's result: the descriptor and the redacted log details for it
_Classified = tuple[ErrorDescriptor, dict[str, Any]]


# =============================================================================
# User-facing text
# =============================================================================

_AUTH_MESSAGE = "API authentication failed. Please check your CoinGecko API key."
_AUTH_SUGGESTIONS = (
    "Verify your CoinGecko API key is correct",
    "Check if your API key has expired",
    "Ensure you have sufficient API quota remaining",
    "Visit CoinGecko to generate a new API key if needed",
)

_NETWORK_CACHED_MESSAGE = "Network connection lost. Using cached exchange rates."
_NETWORK_CACHED_SUGGESTIONS = (
    "Check your internet connection",
    "Cached rates will be used until connection is restored",
    "Rate information may become outdated over time",
)
_NETWORK_UNCACHED_MESSAGE = "Network connection lost. Unable to fetch current exchange rates."
_NETWORK_UNCACHED_SUGGESTIONS = (
    "Check your internet connection",
    "Try refreshing the page once connected",
    "Ensure no firewall is blocking the extension",
)

_RATE_LIMIT_SUGGESTIONS = (
    "Wait for the rate limit to reset",
    "Consider upgrading to a paid CoinGecko API plan for higher limits",
    "Reduce the frequency of cache refreshes if possible",
)

_CACHE_LOAD_MESSAGES: dict[CacheLoadPhase, str] = {
    CacheLoadPhase.STARTUP: "Failed to load exchange rates at startup.",
    CacheLoadPhase.REFRESH: "Failed to refresh exchange rates in background.",
    CacheLoadPhase.MANUAL: "Manual cache refresh failed.",
    CacheLoadPhase.UNKNOWN: "Cache operation failed.",
}
_CACHE_LOAD_SUGGESTIONS: dict[CacheLoadPhase, tuple[str, ...]] = {
    CacheLoadPhase.STARTUP: (
        "Check your internet connection",
        "Verify your API key configuration",
        "Try reloading the page",
        "Check the diagnostics log for detailed errors",
    ),
    CacheLoadPhase.REFRESH: (
        "Background refresh will retry automatically",
        "Current cached rates will continue to be used",
        "Check your internet connection if issues persist",
    ),
    CacheLoadPhase.MANUAL: (
        "Try again in a few moments",
        "Check your internet connection",
        "Verify your API key is still valid",
    ),
    CacheLoadPhase.UNKNOWN: (
        "Try reloading the page",
        "Check your internet connection",
        "Verify extension configuration",
    ),
}

_CONFIGURATION_MESSAGE = "Extension configuration has errors that need to be fixed."
_CONFIGURATION_SUGGESTIONS = (
    "Open extension settings to review configuration",
    "Check API key format and validity",
    "Verify all settings are within acceptable ranges",
    "Reset to default settings if needed",
)

_API_MESSAGE = "API request failed."
_API_SUGGESTIONS = (
    "Try again in a few moments",
    "Check your internet connection",
)


# =============================================================================
# HTTP status dispatch for api_generic
# =============================================================================


class DelegateTo(NamedTuple):
    """Status rule: classify under another kind instead."""

    kind: ErrorKind


class StatusOverride(NamedTuple):
    """Status rule: stay api_generic with status-specific text and severity."""

    user_message: str
    severity: Severity
    suggestions: tuple[str, ...]


StatusRule = DelegateTo | StatusOverride

_UPSTREAM_OUTAGE = StatusOverride(
    user_message="CoinGecko API is temporarily unavailable.",
    severity=Severity.MEDIUM,
    suggestions=(
        "The issue is on CoinGecko's side",
        "Try again in a few minutes",
        "Cached rates will be used if available",
    ),
)

STATUS_RULES: Mapping[int, StatusRule] = {
    400: StatusOverride(
        user_message="Invalid API request format.",
        severity=Severity.HIGH,
        suggestions=(
            "This appears to be a configuration issue",
            "Please report this error if it persists",
        ),
    ),
    401: DelegateTo(ErrorKind.AUTHENTICATION),
    403: StatusOverride(
        user_message="API access forbidden. Check your API key permissions.",
        severity=Severity.HIGH,
        suggestions=(
            "Verify your API key plan includes this endpoint",
            "Check that your API key has not been revoked",
        ),
    ),
    429: DelegateTo(ErrorKind.RATE_LIMIT),
    500: _UPSTREAM_OUTAGE,
    502: _UPSTREAM_OUTAGE,
    503: _UPSTREAM_OUTAGE,
}


# =============================================================================
# Context normalization
# =============================================================================


def _coerce_status(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _coerce_validation_errors(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    try:
        return tuple(str(item) for item in value)
    except TypeError:
        return (str(value),)


def _retry_delay_from_hint(value: Any) -> int:
    """Retry-After seconds (number or header string) to milliseconds.

    Hints above RATE_LIMIT_MAX_RETRY_AFTER_SECONDS are clamped to it.
    """
    seconds: int | float | None = None
    if isinstance(value, str):
        seconds = parse_retry_after(value)
    elif isinstance(value, int | float) and not isinstance(value, bool):
        seconds = value

    if seconds is None or seconds < 0:
        return RATE_LIMIT_DEFAULT_RETRY_AFTER_SECONDS * 1000
    if isinstance(seconds, float) and not math.isfinite(seconds):
        return RATE_LIMIT_DEFAULT_RETRY_AFTER_SECONDS * 1000
    return round(min(seconds, RATE_LIMIT_MAX_RETRY_AFTER_SECONDS) * 1000)


# =============================================================================
# Error Classifier
# =============================================================================


class ErrorClassifier:
    """Classifies failures into ErrorDescriptors using the fixed policy table.

    Example:
        classifier = ErrorClassifier(log=DiagnosticLog())
        descriptor = classifier.classify(
            ErrorKind.RATE_LIMIT, error, {"retry_after_seconds": 45}
        )
        descriptor.retry_delay_ms  # 45000
    """

    def __init__(
        self,
        log: DiagnosticLog,
        monitor: ConnectivityMonitor | None = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            log: Diagnostic log receiving one entry per classification.
            monitor: Connectivity monitor told about network failures.
        """
        self._log = log
        self._monitor = monitor
        self._handlers: dict[
            ErrorKind, Callable[[Any, ClassificationContext], _Classified]
        ] = {
            ErrorKind.AUTHENTICATION: self._classify_authentication,
            ErrorKind.NETWORK: self._classify_network,
            ErrorKind.RATE_LIMIT: self._classify_rate_limit,
            ErrorKind.CACHE_LOAD: self._classify_cache_load,
            ErrorKind.CONFIGURATION: self._classify_configuration,
            ErrorKind.API_GENERIC: self._classify_api_error,
        }

    def classify(
        self,
        kind: ErrorKind | str,
        error: Any = None,
        context: ClassificationContext | Mapping[str, Any] | None = None,
    ) -> ErrorDescriptor:
        """Classify a raw failure.

        Args:
            kind: Which handler to run. Unknown values resolve to api_generic.
            error: The exception or message describing the failure. May be
                None or malformed; a placeholder message is used then.
            context: Kind-specific context (see ClassificationContext).

        Returns:
            The ErrorDescriptor for the failure. Never raises.
        """
        resolved = ErrorKind.coerce(kind)
        ctx: ClassificationContext | None = None
        try:
            ctx = ClassificationContext.coerce(context)
            descriptor, details = self._handlers[resolved](error, ctx)
        except Exception:
            _logger.exception("classification_failed", kind=resolved.value)
            descriptor, details = self._fallback(error, ctx)
        self._record(descriptor, details)
        return descriptor

    # -- per-kind entry points ------------------------------------------------

    def classify_authentication(self, error: Any = None, api_key: str | None = None) -> ErrorDescriptor:
        return self.classify(ErrorKind.AUTHENTICATION, error, ClassificationContext(api_key=api_key))

    def classify_network(self, error: Any = None, has_cache: bool = False) -> ErrorDescriptor:
        return self.classify(ErrorKind.NETWORK, error, ClassificationContext(has_cache=has_cache))

    def classify_rate_limit(
        self, error: Any = None, retry_after_seconds: float | None = None
    ) -> ErrorDescriptor:
        return self.classify(
            ErrorKind.RATE_LIMIT,
            error,
            ClassificationContext(retry_after_seconds=retry_after_seconds),
        )

    def classify_cache_load(
        self, error: Any = None, phase: CacheLoadPhase | str = CacheLoadPhase.UNKNOWN
    ) -> ErrorDescriptor:
        return self.classify(ErrorKind.CACHE_LOAD, error, ClassificationContext(phase=phase))

    def classify_configuration(self, validation_errors: list[str]) -> ErrorDescriptor:
        return self.classify(
            ErrorKind.CONFIGURATION,
            None,
            ClassificationContext(validation_errors=validation_errors),
        )

    def classify_api_error(self, error: Any = None, status_code: int | None = None) -> ErrorDescriptor:
        return self.classify(ErrorKind.API_GENERIC, error, ClassificationContext(status_code=status_code))

    # -- handlers -------------------------------------------------------------

    def _classify_authentication(self, error: Any, ctx: ClassificationContext) -> _Classified:
        policy = get_policy(PolicyRule.AUTHENTICATION)
        technical = redact_secret(describe_error(error), ctx.api_key)
        descriptor = self._build(
            ErrorKind.AUTHENTICATION, policy, _AUTH_MESSAGE, technical, _AUTH_SUGGESTIONS
        )
        return (
            descriptor,
            {"message": technical, "masked_api_key": mask_secret(ctx.api_key)},
        )

    def _classify_network(self, error: Any, ctx: ClassificationContext) -> _Classified:
        has_cache = bool(ctx.has_cache)
        if has_cache:
            rule, message, suggestions = (
                PolicyRule.NETWORK_CACHED, _NETWORK_CACHED_MESSAGE, _NETWORK_CACHED_SUGGESTIONS
            )
        else:
            rule, message, suggestions = (
                PolicyRule.NETWORK_UNCACHED, _NETWORK_UNCACHED_MESSAGE, _NETWORK_UNCACHED_SUGGESTIONS
            )
        technical = redact_secret(describe_error(error), ctx.api_key)
        descriptor = self._build(
            ErrorKind.NETWORK, get_policy(rule), message, technical, suggestions,
            has_cache=has_cache,
        )
        if self._monitor is not None:
            self._monitor.force_state(True)
        return descriptor, {"message": technical, "has_cache": has_cache}

    def _classify_rate_limit(self, error: Any, ctx: ClassificationContext) -> _Classified:
        policy = get_policy(PolicyRule.RATE_LIMIT)
        delay_ms = _retry_delay_from_hint(ctx.retry_after_seconds)
        policy = policy._replace(retry_delay_ms=delay_ms)
        technical = redact_secret(describe_error(error), ctx.api_key)
        message = f"API rate limit exceeded. Retrying in {delay_ms / 1000:g} seconds."
        descriptor = self._build(
            ErrorKind.RATE_LIMIT, policy, message, technical, _RATE_LIMIT_SUGGESTIONS
        )
        return (
            descriptor, {"message": technical, "retry_after_seconds": delay_ms / 1000}
        )

    def _classify_cache_load(self, error: Any, ctx: ClassificationContext) -> _Classified:
        phase = CacheLoadPhase.coerce(ctx.phase)
        rule = (
            PolicyRule.CACHE_LOAD_STARTUP
            if phase is CacheLoadPhase.STARTUP
            else PolicyRule.CACHE_LOAD_BACKGROUND
        )
        technical = redact_secret(describe_error(error), ctx.api_key)
        descriptor = self._build(
            ErrorKind.CACHE_LOAD,
            get_policy(rule),
            _CACHE_LOAD_MESSAGES[phase],
            technical,
            _CACHE_LOAD_SUGGESTIONS[phase],
            phase=phase,
        )
        return descriptor, {"message": technical, "phase": phase.value}

    def _classify_configuration(self, error: Any, ctx: ClassificationContext) -> _Classified:
        validation_errors = tuple(
            redact_secret(e, ctx.api_key)
            for e in _coerce_validation_errors(ctx.validation_errors)
        )
        if validation_errors:
            technical = "; ".join(validation_errors)
        else:
            technical = redact_secret(describe_error(error), ctx.api_key)
        descriptor = self._build(
            ErrorKind.CONFIGURATION,
            get_policy(PolicyRule.CONFIGURATION),
            _CONFIGURATION_MESSAGE,
            technical,
            _CONFIGURATION_SUGGESTIONS,
            validation_errors=validation_errors,
        )
        return (
            descriptor, {"message": technical, "validation_errors": list(validation_errors)}
        )

    def _classify_api_error(self, error: Any, ctx: ClassificationContext) -> _Classified:
        status_code = _coerce_status(ctx.status_code)
        rule = STATUS_RULES.get(status_code) if status_code is not None else None

        if isinstance(rule, DelegateTo):
            # Logged under the delegated kind. The credential is not
            # forwarded, so it is redacted from the message here.
            if ctx.api_key:
                error = redact_secret(describe_error(error), ctx.api_key)
            delegated_ctx = ClassificationContext(retry_after_seconds=ctx.retry_after_seconds)
            return self._handlers[rule.kind](error, delegated_ctx)

        policy = get_policy(PolicyRule.API_GENERIC)
        message, suggestions = _API_MESSAGE, _API_SUGGESTIONS
        if isinstance(rule, StatusOverride):
            policy = policy._replace(severity=rule.severity)
            message, suggestions = rule.user_message, rule.suggestions

        technical = redact_secret(describe_error(error), ctx.api_key)
        descriptor = self._build(
            ErrorKind.API_GENERIC, policy, message, technical, suggestions,
            status_code=status_code,
        )
        return descriptor, {"message": technical, "status_code": status_code}

    # -- helpers --------------------------------------------------------------

    @staticmethod
    def _build(
        kind: ErrorKind,
        policy: RecoveryPolicy,
        user_message: str,
        technical_message: str,
        suggestions: tuple[str, ...],
        **extra: Any,
    ) -> ErrorDescriptor:
        return ErrorDescriptor(
            kind=kind,
            user_message=user_message,
            technical_message=technical_message,
            recovery_suggestions=suggestions,
            action_required=policy.action_required,
            severity=policy.severity,
            can_retry=policy.can_retry,
            retry_delay_ms=policy.retry_delay_ms if policy.can_retry else None,
            **extra,
        )

    def _fallback(self, error: Any, ctx: ClassificationContext | None) -> _Classified:
        """Generic descriptor used when a handler fails."""
        api_key = ctx.api_key if ctx is not None else None
        technical = redact_secret(describe_error(error), api_key)
        descriptor = self._build(
            ErrorKind.API_GENERIC,
            get_policy(PolicyRule.API_GENERIC),
            _API_MESSAGE,
            technical,
            _API_SUGGESTIONS,
        )
        return descriptor, {"message": technical, "status_code": None}

    def _record(self, descriptor: ErrorDescriptor, details: dict[str, Any]) -> None:
        """Write the single log entry for this classification."""
        try:
            self._log.record(descriptor.kind, details)
        except Exception:
            _logger.exception("diagnostic_record_failed", kind=descriptor.kind.value)
            return
        _logger.debug(
            "error_classified",
            kind=descriptor.kind.value,
            action=descriptor.action_required.value,
            severity=descriptor.severity.value,
            can_retry=descriptor.can_retry,
            retry_delay_ms=descriptor.retry_delay_ms,
        )


__all__ = [
    "DelegateTo",
    "ErrorClassifier",
    "STATUS_RULES",
    "StatusOverride",
    "StatusRule",
]
