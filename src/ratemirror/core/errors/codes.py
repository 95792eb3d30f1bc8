"""Error kinds, actions, severities and the recovery policy table.

Contains the closed taxonomy every classified failure resolves into.

This module provides:
- ErrorKind: The six failure categories
- ActionRequired: Next corrective step for the caller
- Severity: Coarse urgency label for UI emphasis
- CacheLoadPhase: Which cache load phase failed
- PolicyRule: The eight rows of the recovery policy table
- RecoveryPolicy: Retry recommendation attached to each rule
- RECOVERY_POLICIES: The fixed rule -> policy table

Recovery Policy Table
=====================

    | Rule                  | Retriable | Delay      | Severity | Action             |
    |-----------------------|-----------|------------|----------|--------------------|
    | AUTHENTICATION        | No        | N/A        | HIGH     | UPDATE_API_KEY     |
    | NETWORK_CACHED        | Yes       | 30s        | MEDIUM   | MONITOR_CONNECTION |
    | NETWORK_UNCACHED      | Yes       | 30s        | HIGH     | RESTORE_CONNECTION |
    | RATE_LIMIT            | Yes       | Dynamic*   | MEDIUM   | WAIT_AND_RETRY     |
    | CACHE_LOAD_STARTUP    | Yes       | 5s         | HIGH     | RELOAD_REQUIRED    |
    | CACHE_LOAD_BACKGROUND | Yes       | 5 min      | MEDIUM   | AUTO_RETRY         |
    | CONFIGURATION         | No        | N/A        | HIGH     | FIX_CONFIGURATION  |
    | API_GENERIC           | Yes       | 60s        | MEDIUM   | RETRY_LATER        |

    *RATE_LIMIT uses Retry-After x 1000 when the service sends one, 60s otherwise.

The table is not configurable at runtime.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import NamedTuple

from ratemirror.core.constants import (
    API_RETRY_DELAY_MS,
    CACHE_LOAD_BACKGROUND_RETRY_DELAY_MS,
    CACHE_LOAD_STARTUP_RETRY_DELAY_MS,
    NETWORK_RETRY_DELAY_MS,
    RATE_LIMIT_DEFAULT_RETRY_AFTER_SECONDS,
)


class ErrorKind(str, Enum):
    """Closed set of failure categories."""

    AUTHENTICATION = "authentication"
    """Credentials rejected by the remote service."""

    NETWORK = "network"
    """Remote service unreachable."""

    RATE_LIMIT = "rate_limit"
    """Remote service is throttling requests."""

    CACHE_LOAD = "cache_load"
    """Populating or refreshing the local cache failed."""

    CONFIGURATION = "configuration"
    """Local settings failed validation."""

    API_GENERIC = "api_generic"
    """Any other API failure; the catch-all."""

    @classmethod
    def coerce(cls, value: ErrorKind | str | None) -> ErrorKind:
        """Resolve a kind or its string value, falling back to API_GENERIC."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.API_GENERIC


class ActionRequired(str, Enum):
    """Next step a caller should take after a failure."""

    UPDATE_API_KEY = "UPDATE_API_KEY"
    MONITOR_CONNECTION = "MONITOR_CONNECTION"
    RESTORE_CONNECTION = "RESTORE_CONNECTION"
    WAIT_AND_RETRY = "WAIT_AND_RETRY"
    AUTO_RETRY = "AUTO_RETRY"
    RELOAD_REQUIRED = "RELOAD_REQUIRED"
    FIX_CONFIGURATION = "FIX_CONFIGURATION"
    RETRY_LATER = "RETRY_LATER"

    @property
    def blocks_retry(self) -> bool:
        """True if the action needs a fix outside any retry loop."""
        return self in NON_RETRIABLE_ACTIONS


NON_RETRIABLE_ACTIONS = frozenset({
    ActionRequired.UPDATE_API_KEY,
    ActionRequired.FIX_CONFIGURATION,
})


class Severity(str, Enum):
    """Coarse urgency label guiding UI emphasis."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"


class CacheLoadPhase(str, Enum):
    """Which cache load phase failed."""

    STARTUP = "startup"
    REFRESH = "refresh"
    MANUAL = "manual"
    UNKNOWN = "unknown"

    @classmethod
    def coerce(cls, value: CacheLoadPhase | str | None) -> CacheLoadPhase:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class PolicyRule(str, Enum):
    """Rows of the recovery policy table."""

    AUTHENTICATION = "authentication"
    NETWORK_CACHED = "network_cached"
    NETWORK_UNCACHED = "network_uncached"
    RATE_LIMIT = "rate_limit"
    CACHE_LOAD_STARTUP = "cache_load_startup"
    CACHE_LOAD_BACKGROUND = "cache_load_background"
    CONFIGURATION = "configuration"
    API_GENERIC = "api_generic"


class RecoveryPolicy(NamedTuple):
    """Retry recommendation for one policy rule.

    Attributes:
        severity: Urgency reported to the operator.
        can_retry: Whether a scheduler may retry automatically.
        retry_delay_ms: Delay to honour before retrying; None when not retriable.
        action_required: Corrective step for the caller.
    """

    severity: Severity
    can_retry: bool
    retry_delay_ms: int | None
    action_required: ActionRequired


RECOVERY_POLICIES: MappingProxyType[PolicyRule, RecoveryPolicy] = MappingProxyType({
    PolicyRule.AUTHENTICATION: RecoveryPolicy(
        severity=Severity.HIGH,
        can_retry=False,
        retry_delay_ms=None,
        action_required=ActionRequired.UPDATE_API_KEY,
    ),
    PolicyRule.NETWORK_CACHED: RecoveryPolicy(
        severity=Severity.MEDIUM,
        can_retry=True,
        retry_delay_ms=NETWORK_RETRY_DELAY_MS,
        action_required=ActionRequired.MONITOR_CONNECTION,
    ),
    PolicyRule.NETWORK_UNCACHED: RecoveryPolicy(
        severity=Severity.HIGH,
        can_retry=True,
        retry_delay_ms=NETWORK_RETRY_DELAY_MS,
        action_required=ActionRequired.RESTORE_CONNECTION,
    ),
    PolicyRule.RATE_LIMIT: RecoveryPolicy(
        severity=Severity.MEDIUM,
        can_retry=True,
        retry_delay_ms=RATE_LIMIT_DEFAULT_RETRY_AFTER_SECONDS * 1000,
        action_required=ActionRequired.WAIT_AND_RETRY,
    ),
    PolicyRule.CACHE_LOAD_STARTUP: RecoveryPolicy(
        severity=Severity.HIGH,
        can_retry=True,
        retry_delay_ms=CACHE_LOAD_STARTUP_RETRY_DELAY_MS,
        action_required=ActionRequired.RELOAD_REQUIRED,
    ),
    PolicyRule.CACHE_LOAD_BACKGROUND: RecoveryPolicy(
        severity=Severity.MEDIUM,
        can_retry=True,
        retry_delay_ms=CACHE_LOAD_BACKGROUND_RETRY_DELAY_MS,
        action_required=ActionRequired.AUTO_RETRY,
    ),
    PolicyRule.CONFIGURATION: RecoveryPolicy(
        severity=Severity.HIGH,
        can_retry=False,
        retry_delay_ms=None,
        action_required=ActionRequired.FIX_CONFIGURATION,
    ),
    PolicyRule.API_GENERIC: RecoveryPolicy(
        severity=Severity.MEDIUM,
        can_retry=True,
        retry_delay_ms=API_RETRY_DELAY_MS,
        action_required=ActionRequired.RETRY_LATER,
    ),
})


def get_policy(rule: PolicyRule) -> RecoveryPolicy:
    """Look up the recovery policy for a rule."""
    return RECOVERY_POLICIES[rule]
