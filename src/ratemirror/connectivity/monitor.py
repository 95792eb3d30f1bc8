"""Throttled reachability monitor.

Maintains the process's belief about whether the remote price service is
reachable. A real round trip happens at most once per check interval;
calls inside the interval answer from the current state.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from enum import Enum
from typing import Protocol

import httpx

from ratemirror.core.config import ConnectivityConfig
from ratemirror.core.constants import (
    CONNECTIVITY_CHECK_INTERVAL_MS,
    DEFAULT_PROBE_URL,
    PROBE_TIMEOUT_SECONDS,
)
from ratemirror.core.errors.models import ConnectivityState
from ratemirror.core.logging import get_logger
from ratemirror.utils.time import now_ms

_logger = get_logger("connectivity")


class ProbeMode(str, Enum):
    """How a probe response is judged."""

    REACHABILITY = "reachability"
    """Any HTTP response means the service is reachable."""

    STRICT = "strict"
    """Only a 2xx response counts as reachable."""


class ProbeTransport(Protocol):
    """Network capability used by the monitor.

    Returns True when the service answered. Returning False or raising
    (timeouts included) both mean unreachable.
    """

    async def attempt_probe(self, url: str, mode: ProbeMode) -> bool: ...


class HttpxProbeTransport:
    """Probe transport issuing a HEAD request through httpx.

    The client is created lazily and reused; call aclose() on shutdown.
    """

    def __init__(self, timeout: float = PROBE_TIMEOUT_SECONDS) -> None:
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                headers={"Cache-Control": "no-cache"},
            )
        return self._client

    async def attempt_probe(self, url: str, mode: ProbeMode) -> bool:
        client = await self._get_client()
        response = await client.head(url)
        if mode is ProbeMode.STRICT:
            return response.is_success
        return True

    async def aclose(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None


class ConnectivityMonitor:
    """Tracks the offline flag with a minimum re-check interval.

    The flag and the time it was established are stored together in one
    immutable ConnectivityState, swapped under a lock, so readers on any
    thread see a consistent pair.

    Example:
        monitor = ConnectivityMonitor(HttpxProbeTransport())
        if not await monitor.probe():
            ...  # serve cached rates
    """

    def __init__(
        self,
        transport: ProbeTransport,
        probe_url: str = DEFAULT_PROBE_URL,
        check_interval_ms: int = CONNECTIVITY_CHECK_INTERVAL_MS,
        mode: ProbeMode = ProbeMode.REACHABILITY,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._transport = transport
        self._probe_url = probe_url
        self._check_interval_ms = check_interval_ms
        self._mode = mode
        self._clock = clock
        self._state = ConnectivityState()
        self._state_lock = threading.Lock()
        self._probe_lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls,
        config: ConnectivityConfig,
        transport: ProbeTransport | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> ConnectivityMonitor:
        """Create a monitor from config, defaulting to the httpx transport."""
        return cls(
            transport=transport or HttpxProbeTransport(timeout=config.timeout_seconds),
            probe_url=config.probe_url,
            check_interval_ms=config.check_interval_ms,
            mode=ProbeMode(config.mode),
            clock=clock,
        )

    @property
    def state(self) -> ConnectivityState:
        return self._state

    @property
    def transport(self) -> ProbeTransport:
        return self._transport

    def is_offline(self) -> bool:
        return self._state.offline

    def force_state(self, offline: bool) -> None:
        """Override the offline flag and restart the check interval.

        Used by tests, manual control, and callers that just observed a
        network failure first-hand.
        """
        self._set_state(offline)
        _logger.info("connectivity_state_forced", offline=offline)

    def _set_state(self, offline: bool) -> None:
        with self._state_lock:
            self._state = ConnectivityState(offline=offline, last_checked_ms=self._clock())

    def _within_interval(self) -> bool:
        last = self._state.last_checked_ms
        return last is not None and self._clock() - last < self._check_interval_ms

    async def probe(self) -> bool:
        """Check reachability, throttled to one round trip per interval.

        Returns:
            True if the service is believed reachable.
        """
        if self._within_interval():
            return not self._state.offline

        async with self._probe_lock:
            # Another caller may have completed a probe while we waited
            if self._within_interval():
                return not self._state.offline

            try:
                reachable = bool(
                    await self._transport.attempt_probe(self._probe_url, self._mode)
                )
            except Exception as e:
                _logger.warning(
                    "connectivity_probe_failed",
                    url=self._probe_url,
                    error=str(e) or type(e).__name__,
                )
                reachable = False

            was_offline = self._state.offline
            self._set_state(offline=not reachable)
            if was_offline == reachable:
                _logger.info("connectivity_changed", offline=not reachable)
            return reachable


__all__ = [
    "ConnectivityMonitor",
    "HttpxProbeTransport",
    "ProbeMode",
    "ProbeTransport",
]
