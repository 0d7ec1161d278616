"""Tests for config/models.py module.

Covers:
- LogOutputConfig model
- LoggingConfig model
- WorkspaceConfig, IndexConfig models
- Per-analyzer option models
- GoPlaneConfig root model
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from goplane.config.models import (
    AnalyzersConfig,
    BooleanBranchingConfig,
    ComplexityConfig,
    DeepIfElseConfig,
    EnvBooleansConfig,
    ErrorWrappingConfig,
    GoPlaneConfig,
    IndexConfig,
    LoggingConfig,
    LogOutputConfig,
    WorkspaceConfig,
)


class TestLogOutputConfig:
    """Tests for LogOutputConfig model."""

    def test_defaults(self) -> None:
        """Default values."""
        config = LogOutputConfig()
        assert config.format == "console"
        assert config.destination == "stderr"
        assert config.level is None

    def test_rejects_relative_file_destination(self) -> None:
        """File destinations must be absolute."""
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/goplane.log")

    def test_accepts_stdout(self) -> None:
        """stdout is a valid destination."""
        assert LogOutputConfig(destination="stdout").destination == "stdout"


class TestLoggingConfig:
    """Tests for LoggingConfig model."""

    def test_default_single_console_output(self) -> None:
        """One console output at INFO by default."""
        config = LoggingConfig()
        assert config.level == "INFO"
        assert len(config.outputs) == 1

    def test_rejects_unknown_level(self) -> None:
        """Level is validated against the known names."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="TRACE")  # type: ignore[arg-type]


class TestWorkspaceConfig:
    """Tests for WorkspaceConfig model."""

    def test_defaults(self) -> None:
        """vendor and testdata are skipped; syntax errors fail the load."""
        config = WorkspaceConfig()
        assert config.skip_dirs == ["vendor", "testdata"]
        assert config.allow_syntax_errors is False


class TestIndexConfig:
    """Tests for IndexConfig model."""

    def test_defaults(self) -> None:
        config = IndexConfig()
        assert config.max_workers is None
        assert config.type_check is True

    @pytest.mark.parametrize("value", [0, -3])
    def test_rejects_non_positive_workers(self, value: int) -> None:
        """max_workers must be at least one."""
        with pytest.raises(ValidationError):
            IndexConfig(max_workers=value)


class TestAnalyzerOptions:
    """Tests for per-analyzer option models."""

    def test_deep_if_else_validation(self) -> None:
        """Negative nesting and zero else lines are rejected."""
        with pytest.raises(ValidationError):
            DeepIfElseConfig(max_nesting=-1)
        with pytest.raises(ValidationError):
            DeepIfElseConfig(min_else_lines=0)
        assert DeepIfElseConfig(max_nesting=0).max_nesting == 0

    def test_boolean_branching_validation(self) -> None:
        with pytest.raises(ValidationError):
            BooleanBranchingConfig(min_branches=0)

    def test_error_wrapping_severity_values(self) -> None:
        """Only the three severities are accepted."""
        assert ErrorWrappingConfig(severity="info").severity == "info"
        with pytest.raises(ValidationError):
            ErrorWrappingConfig(severity="fatal")  # type: ignore[arg-type]

    def test_env_booleans_allows_zero_depth(self) -> None:
        """Depth zero reports every environment flag."""
        assert EnvBooleansConfig(max_depth=0).max_depth == 0
        with pytest.raises(ValidationError):
            EnvBooleansConfig(max_depth=-1)

    def test_complexity_threshold_validation(self) -> None:
        assert ComplexityConfig().min_complexity == 10
        with pytest.raises(ValidationError):
            ComplexityConfig(min_complexity=0)


class TestGoPlaneConfig:
    """Tests for the root config model."""

    def test_sections_present(self) -> None:
        config = GoPlaneConfig()
        assert isinstance(config.logging, LoggingConfig)
        assert isinstance(config.workspace, WorkspaceConfig)
        assert isinstance(config.index, IndexConfig)
        assert isinstance(config.analyzers, AnalyzersConfig)

    def test_model_validate_nested(self) -> None:
        """Nested dicts validate into the section models."""
        config = GoPlaneConfig.model_validate(
            {"analyzers": {"unused": {"include_exported": True}}}
        )
        assert config.analyzers.unused.include_exported is True
        assert config.analyzers.deep_if_else.max_nesting == 2
