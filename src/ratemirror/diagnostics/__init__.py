"""Diagnostic log of classified failures."""

from ratemirror.diagnostics.log import DiagnosticLog

__all__ = ["DiagnosticLog"]
