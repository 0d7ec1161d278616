"""Tests for environment-boolean detection."""

from __future__ import annotations

from collections.abc import Callable

from goplane.analysis.env_booleans import (
    CONCRETE_VALUE,
    INTERFACE_IMPLEMENTATION,
    EnvBooleanAnalyzer,
    build_env_suggestion,
    is_env_bool_name,
    suggest_env_pattern,
)
from goplane.workspace.models import Workspace

ENV_GO = """package e

func Start(isProd bool, name string) {
	configure(isProd)
	logs.Setup(name, isProd)
}

func quiet(debug bool) {}

func other(verbose bool) { run(verbose) }

func named(testMode string) { run(testMode) }
"""


class TestHelpers:
    def test_env_names_case_insensitive(self) -> None:
        assert is_env_bool_name("isProd")
        assert is_env_bool_name("DEBUG")
        assert not is_env_bool_name("verbose")

    def test_pattern_choice(self) -> None:
        assert suggest_env_pattern("isProd") == INTERFACE_IMPLEMENTATION
        assert suggest_env_pattern("debug") == CONCRETE_VALUE
        assert suggest_env_pattern("debugMode") == INTERFACE_IMPLEMENTATION

    def test_suggestion_text(self) -> None:
        assert build_env_suggestion("debug", CONCRETE_VALUE).startswith(
            "Replace 'debug' parameter with the concrete value it controls."
        )


class TestEnvBooleanAnalyzer:
    """Propagation depth against max_depth."""

    def test_given_default_depth_when_analyzed_then_propagated_flag_reported(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        """A flag passed on to callees is reported with its call chain."""
        # Given
        ws = make_workspace({"e/e.go": ENV_GO})

        # When
        violations = EnvBooleanAnalyzer(ws).analyze_workspace()

        # Then
        assert len(violations) == 1
        v = violations[0]
        assert (v.function, v.parameter_name, v.parameter_type) == ("Start", "isProd", "bool")
        assert v.propagation_depth == 2
        assert v.call_chain == ["Start", "configure", "logs.Setup"]
        assert v.suggested_pattern == INTERFACE_IMPLEMENTATION
        assert (v.line, v.column) == (3, 12)

    def test_given_zero_depth_when_analyzed_then_unused_flag_reported(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        """max_depth 0 reports every env-named bool parameter."""
        ws = make_workspace({"e/e.go": ENV_GO})

        violations = EnvBooleanAnalyzer(ws, max_depth=0).analyze_workspace()

        assert [(v.function, v.propagation_depth) for v in violations] == [("Start", 2), ("quiet", 0)]
        assert violations[1].suggested_pattern == CONCRETE_VALUE

    def test_given_high_depth_when_analyzed_then_nothing(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        ws = make_workspace({"e/e.go": ENV_GO})

        assert EnvBooleanAnalyzer(ws, max_depth=3).analyze_workspace() == []

    def test_given_negative_depth_when_constructed_then_default(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        assert EnvBooleanAnalyzer(make_workspace({}), max_depth=-4).max_depth == 1
