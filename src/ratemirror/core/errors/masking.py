"""Credential redaction for log-safe output.

Both functions are pure and never log, so they can be used from inside
logging paths.
"""

from __future__ import annotations

from ratemirror.core.constants import MASK_CHAR, MASK_VISIBLE_CHARS, REDACTION_TOKEN

_MIN_MASKABLE_LENGTH = MASK_VISIBLE_CHARS * 2


def mask_secret(secret: str | None) -> str:
    """Mask a credential, keeping only its first and last four characters.

    Secrets shorter than eight characters (or missing) are replaced by the
    fixed redaction token and never partially revealed. The masked output
    has the same length as the input.

    Example:
        >>> mask_secret("CG-12345678")
        'CG-1***5678'
        >>> mask_secret("abc")
        '***'
    """
    if not secret or len(secret) < _MIN_MASKABLE_LENGTH:
        return REDACTION_TOKEN
    hidden = len(secret) - _MIN_MASKABLE_LENGTH
    return secret[:MASK_VISIBLE_CHARS] + MASK_CHAR * hidden + secret[-MASK_VISIBLE_CHARS:]


def redact_secret(text: str, secret: str | None) -> str:
    """Replace every occurrence of ``secret`` in ``text`` with its masked form."""
    if not secret or not text:
        return text
    return text.replace(secret, mask_secret(secret))


__all__ = ["mask_secret", "redact_secret"]
