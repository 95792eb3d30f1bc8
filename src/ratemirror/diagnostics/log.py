"""Bounded diagnostic log of classified failures.

Keeps the most recent classified failures in a ring buffer for the
settings/status UI and for support exports. Every record is also written
as a structured log line on the ``diagnostics`` logger.
"""

from __future__ import annotations

import platform
import sys
import threading
from collections import Counter, deque
from collections.abc import Callable, Mapping
from importlib.metadata import PackageNotFoundError, version
from typing import Any

from ratemirror.core.constants import (
    DEFAULT_RECENT_LOG_LIMIT,
    MAX_LOG_ENTRIES,
    RECENT_ERROR_WINDOW_MS,
)
from ratemirror.core.errors.codes import ErrorKind
from ratemirror.core.errors.models import ErrorStatistics, LogEntry
from ratemirror.core.logging import get_logger
from ratemirror.utils.time import ms_to_iso, now_ms

_logger = get_logger("diagnostics")


def _package_version() -> str:
    try:
        return version("ratemirror")
    except PackageNotFoundError:
        return "unknown"


class DiagnosticLog:
    """Append-only record of classified failures with FIFO eviction.

    The log never holds more than ``capacity`` entries; once full, each new
    record evicts the oldest. Appends are serialized by a lock so concurrent
    callers observe one total order with no lost writes.

    Example:
        log = DiagnosticLog(capacity=100)
        log.record(ErrorKind.NETWORK, {"message": "connection refused"})
        log.statistics().errors_by_kind  # {"network": 1}
    """

    def __init__(
        self,
        capacity: int = MAX_LOG_ENTRIES,
        recent_window_ms: int = RECENT_ERROR_WINDOW_MS,
        clock: Callable[[], int] = now_ms,
        offline_source: Callable[[], bool] | None = None,
    ) -> None:
        """Initialize an empty log.

        Args:
            capacity: Maximum number of retained entries.
            recent_window_ms: Window for the recent_errors statistic.
            clock: Returns the current time in epoch milliseconds.
            offline_source: Reports the current offline flag for statistics.
        """
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self._recent_window_ms = recent_window_ms
        self._clock = clock
        self._offline_source = offline_source

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, kind: ErrorKind, details: Mapping[str, Any]) -> LogEntry:
        """Append an entry. ``details`` must already be redacted."""
        snapshot = dict(details)
        # Timestamps are non-decreasing in log order
        with self._lock:
            entry = LogEntry(kind=kind, details=snapshot, timestamp_ms=self._clock())
            self._entries.append(entry)
        _logger.error("diagnostic_recorded", kind=kind.value, details=entry.details)
        return entry

    def recent(self, limit: int = DEFAULT_RECENT_LOG_LIMIT) -> list[LogEntry]:
        """Return up to ``limit`` newest entries, oldest first."""
        if limit <= 0:
            return []
        with self._lock:
            snapshot = list(self._entries)
        return snapshot[-limit:]

    def statistics(self) -> ErrorStatistics:
        """Aggregate counts over the retained entries only."""
        with self._lock:
            snapshot = list(self._entries)
        cutoff = self._clock() - self._recent_window_ms
        by_kind = Counter(entry.kind.value for entry in snapshot)
        return ErrorStatistics(
            total_errors=len(snapshot),
            errors_by_kind=dict(by_kind),
            recent_errors=sum(1 for entry in snapshot if entry.timestamp_ms > cutoff),
            offline=self._offline_source() if self._offline_source else False,
        )

    def export(self) -> dict[str, Any]:
        """Build a serializable support bundle: entries, statistics, environment."""
        with self._lock:
            snapshot = list(self._entries)
        stats = self.statistics()
        exported_at = self._clock()
        return {
            "entries": [entry.to_dict() for entry in snapshot],
            "statistics": stats.to_dict(),
            "environment_info": {
                "package_version": _package_version(),
                "python_version": sys.version.split()[0],
                "platform": platform.platform(),
                "exported_at_ms": exported_at,
                "exported_at": ms_to_iso(exported_at),
                "offline": stats.offline,
            },
        }

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        _logger.info("diagnostic_log_cleared")


__all__ = ["DiagnosticLog"]
