"""Tests for the error-wrapping fixer."""

from __future__ import annotations

from collections.abc import Callable

from goplane.refactor.error_wrapping import ErrorWrappingFixer
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
"""


class TestErrorWrappingFixer:
    """Each violation kind gets its own rewrite."""

    def test_given_critical_violations_when_fixed_then_wrapped_and_verb_fixed(
        self, make_workspace: Callable[..., Workspace], apply_plan: Callable[..., dict[str, str]]
    ) -> None:
        """Bare return gains fmt.Errorf; %v becomes %w."""
        # Given
        ws = make_workspace({"orders/orders.go": ORDERS_GO})

        # When
        plan, result = ErrorWrappingFixer(ws).fix()

        # Then
        assert [(c.old_text, c.new_text) for c in plan.changes] == [
            ("err", 'fmt.Errorf("create order: %w", err)'),
            ('"load order: %v"', '"load order: %w"'),
        ]
        assert (result.errors_wrapped, result.format_verbs_fixed, result.contexts_added) == (1, 1, 0)

        (content,) = apply_plan(ws, plan).values()
        assert '\t\treturn fmt.Errorf("create order: %w", err)\n' in content
        assert 'return fmt.Errorf("load order: %w", err)' in content
        assert 'return fmt.Errorf("failed: %w", err)' in content

    def test_given_warning_severity_when_fixed_then_generic_message_replaced(
        self, make_workspace: Callable[..., Workspace], apply_plan: Callable[..., dict[str, str]]
    ) -> None:
        ws = make_workspace({"orders/orders.go": ORDERS_GO})

        plan, result = ErrorWrappingFixer(ws, severity="warning").fix()

        assert result.contexts_added == 1
        assert plan.changes[-1].old_text == '"failed: %w"'
        assert plan.changes[-1].new_text == '"ship: %w"'
        (content,) = apply_plan(ws, plan).values()
        assert 'return fmt.Errorf("ship: %w", err)' in content

    def test_given_clean_code_when_fixed_then_empty_plan(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        ws = make_workspace(
            {"orders/ok.go": 'package orders\n\nimport "fmt"\n\nfunc Ok() error {\n\treturn fmt.Errorf("ok: %w", nil)\n}\n'}
        )

        plan, result = ErrorWrappingFixer(ws).fix()

        assert plan.changes == []
        assert (result.errors_wrapped, result.format_verbs_fixed, result.contexts_added) == (0, 0, 0)
