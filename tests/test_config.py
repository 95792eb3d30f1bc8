"""Tests for configuration models and YAML loading."""

import textwrap
from pathlib import Path

import pytest
from pydantic import ValidationError

from ratemirror.core.config import ConnectivityConfig, DiagnosticsConfig, LogConfig
from ratemirror.core.errors import ConfigurationLoadError


class TestDefaults:
    def test_diagnostics_defaults(self) -> None:
        config = DiagnosticsConfig()
        assert config.max_log_entries == 100
        assert config.recent_window_ms == 3_600_000
        assert config.connectivity.check_interval_ms == 30_000
        assert config.connectivity.mode == "reachability"
        assert config.logging.level == "INFO"

    def test_capacity_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            DiagnosticsConfig(max_log_entries=0)

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ConnectivityConfig(timeout_seconds=0)

    def test_both_format_requires_file(self) -> None:
        with pytest.raises(ValidationError, match="file_path"):
            LogConfig(format="both")

    def test_both_format_with_file(self, tmp_path: Path) -> None:
        config = LogConfig(format="both", file_path=tmp_path / "ratemirror.log")
        assert config.file_path == tmp_path / "ratemirror.log"


class TestYamlLoading:
    def test_from_yaml_string(self) -> None:
        config = DiagnosticsConfig.from_yaml_string(textwrap.dedent(
            """
            max_log_entries: 25
            connectivity:
              check_interval_seconds: 2.5
              mode: strict
            logging:
              level: DEBUG
              format: json
            """
        ))
        assert config.max_log_entries == 25
        assert config.connectivity.check_interval_ms == 2_500
        assert config.connectivity.mode == "strict"
        assert config.logging.format == "json"

    def test_empty_document_uses_defaults(self) -> None:
        assert DiagnosticsConfig.from_yaml_string("") == DiagnosticsConfig()

    def test_from_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "diagnostics.yaml"
        path.write_text("recent_window_seconds: 60\n")
        assert DiagnosticsConfig.from_yaml(path).recent_window_ms == 60_000

    def test_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "missing.yaml"
        with pytest.raises(ConfigurationLoadError) as exc_info:
            DiagnosticsConfig.from_yaml(path)
        assert exc_info.value.source == path
        assert str(path) in str(exc_info.value)

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ConfigurationLoadError, match="invalid YAML"):
            DiagnosticsConfig.from_yaml_string("connectivity: [unclosed")

    def test_non_mapping(self) -> None:
        with pytest.raises(ConfigurationLoadError, match="expected a mapping"):
            DiagnosticsConfig.from_yaml_string("- a\n- b\n")

    def test_validation_failure(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("connectivity:\n  mode: sometimes\n")
        with pytest.raises(ConfigurationLoadError) as exc_info:
            DiagnosticsConfig.from_yaml(path)
        assert isinstance(exc_info.value.__cause__, ValidationError)
