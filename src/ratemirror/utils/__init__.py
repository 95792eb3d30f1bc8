"""Shared utilities for ratemirror."""

from ratemirror.utils.time import ms_to_iso, now_ms

__all__ = ["ms_to_iso", "now_ms"]
