"""Reachability tracking for the remote price service."""

from ratemirror.connectivity.monitor import (
    ConnectivityMonitor,
    HttpxProbeTransport,
    ProbeMode,
    ProbeTransport,
)

__all__ = [
    "ConnectivityMonitor",
    "HttpxProbeTransport",
    "ProbeMode",
    "ProbeTransport",
]
