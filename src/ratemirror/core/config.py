"""Configuration models for the diagnostics core.

Loaded from YAML, for example:

    max_log_entries: 100
    recent_window_seconds: 3600
    connectivity:
      probe_url: "https://api.coingecko.com/api/v3/ping"
      check_interval_seconds: 30
      timeout_seconds: 10
      mode: reachability
    logging:
      level: INFO
      format: console
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from ratemirror.core.constants import (
    CONNECTIVITY_CHECK_INTERVAL_MS,
    DEFAULT_PROBE_URL,
    MAX_LOG_ENTRIES,
    PROBE_TIMEOUT_SECONDS,
    RECENT_ERROR_WINDOW_MS,
)
from ratemirror.core.errors.exceptions import ConfigurationLoadError


class LogConfig(BaseModel):
    """Configuration for structured logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level to capture",
    )
    format: Literal["json", "console", "both"] = Field(
        default="console",
        description="Output format: json for structured, console for human-readable, "
        "both for console to stderr plus the log file",
    )
    file_path: Path | None = Field(
        default=None,
        description="Path for log file output (required if format='both')",
    )
    max_file_size_mb: int = Field(
        default=10,
        gt=0,
        le=1000,
        description="Maximum log file size before rotation (MB)",
    )
    backup_count: int = Field(
        default=3,
        ge=0,
        le=100,
        description="Number of rotated log files to keep",
    )
    include_timestamps: bool = Field(
        default=True,
        description="Include ISO8601 UTC timestamps in log entries",
    )

    @model_validator(mode="after")
    def _validate_file_path(self) -> LogConfig:
        if self.format == "both" and self.file_path is None:
            raise ValueError("file_path is required when format='both'")
        return self


class ConnectivityConfig(BaseModel):
    """Configuration for the throttled reachability probe."""

    probe_url: str = Field(
        default=DEFAULT_PROBE_URL,
        description="Lightweight endpoint hit by the reachability probe",
    )
    check_interval_seconds: float = Field(
        default=CONNECTIVITY_CHECK_INTERVAL_MS / 1000,
        ge=0,
        description="Minimum seconds between two real probe round trips",
    )
    timeout_seconds: float = Field(
        default=PROBE_TIMEOUT_SECONDS,
        gt=0,
        description="Transport timeout for a single probe",
    )
    mode: Literal["reachability", "strict"] = Field(
        default="reachability",
        description="reachability: any HTTP response means online; strict: 2xx only",
    )

    @property
    def check_interval_ms(self) -> int:
        return int(self.check_interval_seconds * 1000)


class DiagnosticsConfig(BaseModel):
    """Top-level configuration for the failure classification core."""

    max_log_entries: int = Field(
        default=MAX_LOG_ENTRIES,
        ge=1,
        description="Capacity of the diagnostic log ring buffer",
    )
    recent_window_seconds: float = Field(
        default=RECENT_ERROR_WINDOW_MS / 1000,
        gt=0,
        description="Window used for the recent_errors statistic",
    )
    connectivity: ConnectivityConfig = Field(default_factory=ConnectivityConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @property
    def recent_window_ms(self) -> int:
        return int(self.recent_window_seconds * 1000)

    @classmethod
    def from_yaml(cls, path: Path) -> DiagnosticsConfig:
        """Load diagnostics configuration from a YAML file.

        Raises:
            ConfigurationLoadError: If the file is unreadable or invalid.
        """
        try:
            with open(path) as f:
                text = f.read()
        except OSError as e:
            raise ConfigurationLoadError(str(e), source=path) from e
        return cls._from_text(text, source=path)

    @classmethod
    def from_yaml_string(cls, yaml_str: str) -> DiagnosticsConfig:
        """Load diagnostics configuration from a YAML string."""
        return cls._from_text(yaml_str, source=None)

    @classmethod
    def _from_text(cls, text: str, source: Path | None) -> DiagnosticsConfig:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationLoadError(f"invalid YAML: {e}", source=source) from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationLoadError(
                f"expected a mapping, got {type(data).__name__}", source=source
            )
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationLoadError(str(e), source=source) from e


__all__ = ["ConnectivityConfig", "DiagnosticsConfig", "LogConfig"]
