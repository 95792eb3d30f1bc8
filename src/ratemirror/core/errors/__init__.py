"""Failure classification and recovery policy.

Re-exports the public symbols of the errors package.
"""

from ratemirror.core.errors.codes import (
    NON_RETRIABLE_ACTIONS,
    RECOVERY_POLICIES,
    ActionRequired,
    CacheLoadPhase,
    ErrorKind,
    PolicyRule,
    RecoveryPolicy,
    Severity,
    get_policy,
)
from ratemirror.core.errors.exceptions import ConfigurationLoadError, RateMirrorError
from ratemirror.core.errors.models import (
    ClassificationContext,
    ConnectivityState,
    ErrorDescriptor,
    ErrorStatistics,
    LogEntry,
)
from ratemirror.core.errors.masking import mask_secret, redact_secret
from ratemirror.core.errors.formatter import format_user_message
from ratemirror.core.errors.parsers import (
    InferredFailure,
    describe_error,
    infer_failure,
    parse_retry_after,
)
from ratemirror.core.errors.classifier import (
    STATUS_RULES,
    DelegateTo,
    ErrorClassifier,
    StatusOverride,
)

__all__ = [
    "NON_RETRIABLE_ACTIONS",
    "RECOVERY_POLICIES",
    "STATUS_RULES",
    "ActionRequired",
    "CacheLoadPhase",
    "ClassificationContext",
    "ConfigurationLoadError",
    "ConnectivityState",
    "DelegateTo",
    "ErrorClassifier",
    "ErrorDescriptor",
    "ErrorKind",
    "ErrorStatistics",
    "InferredFailure",
    "LogEntry",
    "PolicyRule",
    "RateMirrorError",
    "RecoveryPolicy",
    "Severity",
    "StatusOverride",
    "describe_error",
    "format_user_message",
    "get_policy",
    "infer_failure",
    "mask_secret",
    "parse_retry_after",
    "redact_secret",
]
