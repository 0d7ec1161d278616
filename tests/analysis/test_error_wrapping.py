"""Tests for error-wrapping detection."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from goplane.analysis.error_wrapping import (
    ErrorWrappingAnalyzer,
    Severity,
    ViolationType,
    is_error_var_name,
    is_generic_message,
    message_without_verb,
    suggest_context,
)
from goplane.workspace.models import Workspace

ORDERS_GO = """package orders

import "fmt"

func CreateOrder(id int) error {
	if err := save(id); err != nil {
		return err
	}
	return nil
}

func LoadOrder(id int) error {
	err := load(id)
	return fmt.Errorf("load order: %v", err)
}

func Ship(id int) error {
	err := ship(id)
	return fmt.Errorf("failed: %w", err)
}

func Cancel(id int) error {
	err := cancel(id)
	return fmt.Errorf("cancel order %d: %w", id, err)
}

func Count() int {
	err := 1
	return err
}
"""


class TestHelpers:
    """Name and message heuristics."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("CreateOrder", "create order"),
            ("run", "run"),
            ("HTTPServer", "h t t p server"),
            ("", ""),
        ],
    )
    def test_suggest_context(self, name: str, expected: str) -> None:
        assert suggest_context(name) == expected

    def test_error_variable_names(self) -> None:
        assert is_error_var_name("err")
        assert is_error_var_name("saveErr")
        assert is_error_var_name("parseError")
        assert is_error_var_name("errNotFound")
        assert not is_error_var_name("result")

    def test_generic_messages(self) -> None:
        assert message_without_verb('"failed: %w"') == "failed"
        assert is_generic_message("Failed")
        assert is_generic_message("")
        assert not is_generic_message("load order")


class TestErrorWrappingAnalyzer:
    """Violations per severity threshold."""

    def test_given_default_severity_when_analyzed_then_only_critical(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        """Bare returns and %v are critical; generic messages are warnings."""
        # Given
        ws = make_workspace({"orders/orders.go": ORDERS_GO})

        # When
        violations = ErrorWrappingAnalyzer(ws).analyze_workspace()

        # Then
        assert [(v.function, v.violation_type) for v in violations] == [
            ("CreateOrder", ViolationType.BARE_RETURN),
            ("LoadOrder", ViolationType.FORMAT_VERB_V),
        ]
        assert all(v.severity == Severity.CRITICAL for v in violations)

    def test_given_warning_severity_when_analyzed_then_includes_generic_message(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        ws = make_workspace({"orders/orders.go": ORDERS_GO})

        violations = ErrorWrappingAnalyzer(ws, severity="warning").analyze_workspace()

        assert [v.function for v in violations] == ["CreateOrder", "LoadOrder", "Ship"]
        assert violations[-1].violation_type == ViolationType.NO_CONTEXT
        assert violations[-1].severity == Severity.WARNING

    def test_given_bare_return_when_reported_then_carries_fix_range(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        """The byte range covers the returned identifier only."""
        # Given
        ws = make_workspace({"orders/orders.go": ORDERS_GO})
        file = ws.all_files()[0]

        # When
        v = ErrorWrappingAnalyzer(ws).analyze_workspace()[0]

        # Then
        start = file.content.index(b"return err") + len("return ")
        assert (v.start, v.end) == (start, start + 3)
        assert (v.line, v.column) == (7, 3)
        assert v.current_code == "return err"
        assert v.context_suggestion == "create order"

    def test_given_format_verb_v_when_reported_then_range_is_literal(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        ws = make_workspace({"orders/orders.go": ORDERS_GO})
        file = ws.all_files()[0]

        v = ErrorWrappingAnalyzer(ws).analyze_workspace()[1]

        assert file.slice(v.start, v.end) == '"load order: %v"'

    def test_given_func_literal_when_it_returns_error_then_attributed_to_declaration(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        """Returns belong to their nearest function; the name is the declared one."""
        ws = make_workspace(
            {
                "w/w.go": "package w\n\nfunc Run() {\n\tf := func() error {\n\t\terr := do()\n"
                "\t\treturn err\n\t}\n\t_ = f\n}\n\nfunc Wait() error {\n\tgo func() {\n\t\terr := do()\n"
                "\t\t_ = err\n\t\treturn\n\t}()\n\treturn nil\n}\n"
            }
        )

        violations = ErrorWrappingAnalyzer(ws).analyze_workspace()

        assert [(v.function, v.line) for v in violations] == [("Run", 6)]

    def test_given_no_packages_when_analyzed_then_empty(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        assert ErrorWrappingAnalyzer(make_workspace({})).analyze_workspace() == []
