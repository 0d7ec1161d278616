"""Tests for deep if-else detection."""

from __future__ import annotations

from collections.abc import Callable

from goplane.analysis.deep_if_else import DeepIfElseAnalyzer
from goplane.workspace.models import Workspace

NESTED_GO = """package svc

import "errors"

func Find(db DB, id int) (string, error) {
	user, err := db.Get(id)
	if err == nil {
		if user != nil {
			return doWork(user)
		} else {
			return "", errors.New("not found")
		}
	} else {
		return "", errors.New("db error")
	}
}
"""

THREE_LEVELS_GO = """package svc

func Check(a, b, c bool) string {
	if a {
		if b {
			if c {
				return "ok"
			} else {
				return "no c"
			}
		} else {
			return "no b"
		}
	} else {
		return "no a"
	}
}
"""


class TestDeepIfElseAnalyzer:
    """Nesting depth and else-size thresholds."""

    def test_given_two_levels_when_default_thresholds_then_not_reported(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        """Depth 2 does not exceed the default maximum."""
        # Given
        ws = make_workspace({"svc/svc.go": NESTED_GO})

        # When
        violations = DeepIfElseAnalyzer(ws).analyze_workspace()

        # Then
        assert violations == []

    def test_given_two_levels_when_max_nesting_one_then_reported(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        """Lower thresholds report the outermost if-else once."""
        # Given
        ws = make_workspace({"svc/svc.go": NESTED_GO})

        # When
        violations = DeepIfElseAnalyzer(ws, max_nesting=1, min_else_lines=1).analyze_workspace()

        # Then
        assert len(violations) == 1
        v = violations[0]
        assert (v.line, v.column, v.function) == (7, 2, "Find")
        assert v.nesting_depth == 2
        assert v.happy_path_depth == 2
        assert v.error_branches == 2
        assert v.complexity_reduction_percent == 50
        assert v.suggestion == "Invert conditions and use early returns for error cases (depth 2 -> 0)"

    def test_given_three_levels_when_default_thresholds_then_reported(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        """Depth 3 exceeds the default maximum of 2."""
        # Given
        ws = make_workspace({"svc/check.go": THREE_LEVELS_GO})

        # When
        violations = DeepIfElseAnalyzer(ws).analyze_workspace()

        # Then
        assert [(v.line, v.nesting_depth, v.error_branches) for v in violations] == [(4, 3, 3)]
        assert violations[0].complexity_reduction_percent == 66

    def test_given_short_else_blocks_when_min_lines_high_then_skipped(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        """Else branches shorter than min_else_lines are not worth flattening."""
        # Given
        ws = make_workspace({"svc/svc.go": NESTED_GO})

        # When
        violations = DeepIfElseAnalyzer(ws, max_nesting=1, min_else_lines=50).analyze_workspace()

        # Then
        assert violations == []

    def test_given_invalid_thresholds_when_constructed_then_defaults_used(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        """Negative nesting and non-positive line counts fall back to defaults."""
        analyzer = DeepIfElseAnalyzer(make_workspace({}), max_nesting=-1, min_else_lines=0)

        assert (analyzer.max_nesting, analyzer.min_else_lines) == (2, 3)

    def test_given_test_file_when_analyzed_then_ignored(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        """Only non-test files are walked."""
        ws = make_workspace({"svc/check_test.go": THREE_LEVELS_GO})

        assert DeepIfElseAnalyzer(ws).analyze_workspace() == []
