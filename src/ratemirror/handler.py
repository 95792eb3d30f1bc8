"""ErrorHandler: the single entry point collaborators use.

Owns one DiagnosticLog, one ConnectivityMonitor and one ErrorClassifier.
Construct it once at startup and share it; tests build their own instance
instead of resetting global state.

Example:
    handler = ErrorHandler.from_config(DiagnosticsConfig.from_yaml(path))

    try:
        rates = await client.fetch_rates()
    except Exception as e:
        descriptor = handler.classify_exception(e, has_cache=cache.has_data())
        if descriptor.can_retry:
            scheduler.retry_in(descriptor.retry_delay_ms)
        status_panel.show(handler.format_user_message(descriptor))
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from ratemirror.connectivity.monitor import ConnectivityMonitor, ProbeTransport
from ratemirror.core.config import DiagnosticsConfig
from ratemirror.core.constants import DEFAULT_RECENT_LOG_LIMIT
from ratemirror.core.errors import (
    CacheLoadPhase,
    ClassificationContext,
    ErrorClassifier,
    ErrorDescriptor,
    ErrorKind,
    ErrorStatistics,
    InferredFailure,
    LogEntry,
    format_user_message,
    infer_failure,
)
from ratemirror.core.logging import configure_logging, get_logger
from ratemirror.diagnostics.log import DiagnosticLog
from ratemirror.utils.time import now_ms

_logger = get_logger("handler")


class ErrorHandler:
    """Failure classification, connectivity tracking and diagnostics."""

    def __init__(
        self,
        config: DiagnosticsConfig | None = None,
        transport: ProbeTransport | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Initialize the handler and its components.

        Args:
            config: Diagnostics configuration (defaults apply when None).
            transport: Probe transport; an httpx transport is created if None.
            clock: Returns the current time in epoch milliseconds.
        """
        self._config = config or DiagnosticsConfig()
        self._monitor = ConnectivityMonitor.from_config(
            self._config.connectivity, transport=transport, clock=clock
        )
        self._owns_transport = transport is None
        self._log = DiagnosticLog(
            capacity=self._config.max_log_entries,
            recent_window_ms=self._config.recent_window_ms,
            clock=clock,
            offline_source=self._monitor.is_offline,
        )
        self._classifier = ErrorClassifier(log=self._log, monitor=self._monitor)

    @classmethod
    def from_config(
        cls,
        config: DiagnosticsConfig,
        transport: ProbeTransport | None = None,
        configure_logs: bool = True,
    ) -> ErrorHandler:
        """Create a handler, applying the logging section of the config first."""
        if configure_logs:
            log_config = config.logging
            configure_logging(
                level=log_config.level,
                format=log_config.format,
                file_path=log_config.file_path,
                max_file_size_mb=log_config.max_file_size_mb,
                backup_count=log_config.backup_count,
                include_timestamps=log_config.include_timestamps,
            )
        handler = cls(config=config, transport=transport)
        _logger.info(
            "error_handler_started",
            max_log_entries=config.max_log_entries,
            probe_url=config.connectivity.probe_url,
        )
        return handler

    @property
    def config(self) -> DiagnosticsConfig:
        return self._config

    @property
    def classifier(self) -> ErrorClassifier:
        return self._classifier

    @property
    def monitor(self) -> ConnectivityMonitor:
        return self._monitor

    @property
    def log(self) -> DiagnosticLog:
        return self._log

    # -- classification -------------------------------------------------------

    def classify(
        self,
        kind: ErrorKind | str,
        error: Any = None,
        context: ClassificationContext | Mapping[str, Any] | None = None,
    ) -> ErrorDescriptor:
        """Classify a failure whose kind the caller already knows."""
        return self._classifier.classify(kind, error, context)

    def classify_exception(
        self,
        error: Any,
        *,
        has_cache: bool = False,
        phase: CacheLoadPhase | str | None = None,
        api_key: str | None = None,
    ) -> ErrorDescriptor:
        """Infer the kind from a raw exception, then classify it. Never raises."""
        try:
            inferred = infer_failure(error, has_cache=has_cache, phase=phase, api_key=api_key)
        except Exception:
            _logger.exception("failure_inference_failed")
            inferred = InferredFailure(
                ErrorKind.API_GENERIC,
                ClassificationContext(has_cache=has_cache, api_key=api_key),
            )
        return self._classifier.classify(inferred.kind, error, inferred.context)

    def classify_authentication(self, error: Any = None, api_key: str | None = None) -> ErrorDescriptor:
        return self._classifier.classify_authentication(error, api_key)

    def classify_network(self, error: Any = None, has_cache: bool = False) -> ErrorDescriptor:
        return self._classifier.classify_network(error, has_cache)

    def classify_rate_limit(
        self, error: Any = None, retry_after_seconds: float | None = None
    ) -> ErrorDescriptor:
        return self._classifier.classify_rate_limit(error, retry_after_seconds)

    def classify_cache_load(
        self, error: Any = None, phase: CacheLoadPhase | str = CacheLoadPhase.UNKNOWN
    ) -> ErrorDescriptor:
        return self._classifier.classify_cache_load(error, phase)

    def classify_configuration(self, validation_errors: list[str]) -> ErrorDescriptor:
        return self._classifier.classify_configuration(validation_errors)

    def classify_api_error(self, error: Any = None, status_code: int | None = None) -> ErrorDescriptor:
        return self._classifier.classify_api_error(error, status_code)

    @staticmethod
    def format_user_message(descriptor: ErrorDescriptor, include_recovery: bool = True) -> str:
        return format_user_message(descriptor, include_recovery)

    # -- connectivity ---------------------------------------------------------

    async def check_connectivity(self) -> bool:
        """Throttled reachability probe. True means online."""
        return await self._monitor.probe()

    def is_offline(self) -> bool:
        return self._monitor.is_offline()

    def set_offline_mode(self, offline: bool) -> None:
        """Manually override the offline flag (tests, explicit signals)."""
        self._monitor.force_state(offline)

    # -- diagnostics ----------------------------------------------------------

    def recent_log(self, limit: int = DEFAULT_RECENT_LOG_LIMIT) -> list[LogEntry]:
        return self._log.recent(limit)

    def statistics(self) -> ErrorStatistics:
        return self._log.statistics()

    def export_diagnostics(self) -> dict[str, Any]:
        return self._log.export()

    def clear_log(self) -> None:
        self._log.clear()

    async def aclose(self) -> None:
        """Release the probe transport if this handler created it."""
        if not self._owns_transport:
            return
        aclose = getattr(self._monitor.transport, "aclose", None)
        if aclose is not None:
            await aclose()


__all__ = ["ErrorHandler"]
