"""Time utilities for ratemirror.

Timestamps throughout the package are integer epoch milliseconds, the unit
the retry delays and throttle intervals are expressed in.
"""

import time
from datetime import UTC, datetime


def now_ms() -> int:
    """Return the current wall-clock time as epoch milliseconds."""
    return int(time.time() * 1000)


def ms_to_iso(timestamp_ms: int) -> str:
    """Render an epoch-millisecond timestamp as an ISO8601 UTC string."""
    return datetime.fromtimestamp(timestamp_ms / 1000, UTC).isoformat()
