"""Rendering of error descriptors for display."""

from __future__ import annotations

from .models import ErrorDescriptor

SUGGESTIONS_HEADER = "\n\nSuggestions:\n"
BULLET = "• "


def format_user_message(descriptor: ErrorDescriptor, include_recovery: bool = True) -> str:
    """Render a descriptor as a display string.

    Args:
        descriptor: The classified failure.
        include_recovery: Append the recovery suggestions as a bullet list.

    Returns:
        The user message alone, or followed by a "Suggestions:" header and
        one bullet line per suggestion in order.
    """
    message = descriptor.user_message
    if not include_recovery or not descriptor.recovery_suggestions:
        return message
    bullets = "\n".join(f"{BULLET}{s}" for s in descriptor.recovery_suggestions)
    return f"{message}{SUGGESTIONS_HEADER}{bullets}"


__all__ = ["format_user_message"]
