"""Global constants for ratemirror.

Centralizes the delays, intervals and limits used by the failure
classification and diagnostics core. All durations are milliseconds
unless the name says otherwise.
"""

# =============================================================================
# Retry Delays (milliseconds)
# =============================================================================

NETWORK_RETRY_DELAY_MS = 30_000
"""Delay before retrying after a network failure."""

RATE_LIMIT_DEFAULT_RETRY_AFTER_SECONDS = 60
"""Assumed Retry-After when the remote service gives no hint."""

RATE_LIMIT_MAX_RETRY_AFTER_SECONDS = 86_400
"""Upper bound applied to Retry-After hints (one day)."""

CACHE_LOAD_STARTUP_RETRY_DELAY_MS = 5_000
"""Delay before retrying a cache load that failed at startup."""

CACHE_LOAD_BACKGROUND_RETRY_DELAY_MS = 300_000
"""Delay before retrying a refresh/manual cache load (5 minutes)."""

API_RETRY_DELAY_MS = 60_000
"""Delay before retrying a generic API failure."""

# =============================================================================
# Diagnostic Log
# =============================================================================

MAX_LOG_ENTRIES = 100
"""Ring-buffer capacity of the diagnostic log."""

DEFAULT_RECENT_LOG_LIMIT = 20
"""Default number of entries returned by DiagnosticLog.recent()."""

RECENT_ERROR_WINDOW_MS = 3_600_000
"""Window for the recent_errors statistic (one hour)."""

# =============================================================================
# Connectivity
# =============================================================================

DEFAULT_PROBE_URL = "https://api.coingecko.com/api/v3/ping"
"""Endpoint used for the lightweight reachability probe."""

CONNECTIVITY_CHECK_INTERVAL_MS = 30_000
"""Minimum interval between two real reachability round trips."""

PROBE_TIMEOUT_SECONDS = 10.0
"""Transport timeout for a single reachability probe."""

# =============================================================================
# Secret Masking
# =============================================================================

REDACTION_TOKEN = "***"
"""Replacement for secrets too short to partially reveal."""

MASK_CHAR = "*"

MASK_VISIBLE_CHARS = 4
"""Characters kept visible at each end of a masked secret."""

UNKNOWN_ERROR_MESSAGE = "No error details available"
"""Technical message used when a failure carries no text of its own."""
