"""Tests for the if-init fixer."""

from __future__ import annotations

from collections.abc import Callable

from goplane.refactor.if_init import DESCRIPTION, IfInitFixer
from goplane.workspace.models import Workspace

IF_INIT_GO = """package i

func f() error {
	if v, err := load(); err != nil {
		return err
	} else {
		use(v)
	}
	return nil
}
"""

SPLIT_GO = """package i

func f() error {
	v, err := load()
	if err != nil {
		return err
	} else {
		use(v)
	}
	return nil
}
"""


class TestIfInitFixer:
    def test_given_if_init_when_fixed_then_assignment_hoisted(
        self, make_workspace: Callable[..., Workspace], apply_plan: Callable[..., dict[str, str]]
    ) -> None:
        """The initializer moves to its own line at the if's indentation."""
        # Given
        ws = make_workspace({"i/i.go": IF_INIT_GO})

        # When
        plan, fixed = IfInitFixer(ws).fix()

        # Then
        assert [v.variables for v in fixed] == [["v", "err"]]
        (change,) = plan.changes
        assert change.old_text == "if v, err := load(); err != nil {"
        assert change.description == DESCRIPTION
        assert list(apply_plan(ws, plan).values()) == [SPLIT_GO]

    def test_given_else_if_init_when_fixed_then_only_outer_split(
        self, make_workspace: Callable[..., Workspace], apply_plan: Callable[..., dict[str, str]]
    ) -> None:
        """An else-if has no statement slot to receive the assignment."""
        source = (
            "package i\n\nfunc f() {\n"
            "\tif a := one(); a {\n\t\tuse(a)\n"
            "\t} else if b := two(); b {\n\t\tuse(b)\n\t}\n}\n"
        )
        ws = make_workspace({"i/i.go": source})

        plan, fixed = IfInitFixer(ws).fix()

        assert [v.variables for v in fixed] == [["a"]]
        (content,) = apply_plan(ws, plan).values()
        assert "\ta := one()\n\tif a {\n" in content
        assert "} else if b := two(); b {" in content
