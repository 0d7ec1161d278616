"""Tests for the boolean-branching fixer."""

from __future__ import annotations

from collections.abc import Callable

from goplane.refactor.boolean_branching import BooleanBranchingFixer
from goplane.workspace.models import Workspace

SHAPES_GO = """package h

func h(accept string) {
	wantShape := accept == "x-shapefile"
	wantGeo := accept == "geojson"
	if wantShape {
		doShape()
	} else if wantGeo {
		doGeo()
	}
}
"""

SWITCHED_GO = """package h

func h(accept string) {
	switch accept {
	case "x-shapefile":
		doShape()
	case "geojson":
		doGeo()
	}
}
"""


class TestBooleanBranchingFixer:
    """Flag declarations removed, chain replaced with a switch."""

    def test_given_flags_and_chain_when_fixed_then_switch(
        self, make_workspace: Callable[..., Workspace], apply_plan: Callable[..., dict[str, str]]
    ) -> None:
        """Both flag lines disappear and the chain becomes two cases."""
        # Given
        ws = make_workspace({"h/h.go": SHAPES_GO})

        # When
        plan, results = BooleanBranchingFixer(ws).fix()

        # Then
        assert len(plan.changes) == 3
        removals = [c for c in plan.changes if c.new_text == ""]
        assert [c.old_text for c in removals] == [
            '\twantShape := accept == "x-shapefile"\n',
            '\twantGeo := accept == "geojson"\n',
        ]
        (result,) = results
        assert result.function == "h"
        assert result.source_variable == "accept"
        assert result.cases_created == 2
        assert result.variables_removed == ["wantShape", "wantGeo"]

        out = apply_plan(ws, plan)
        assert list(out.values()) == [SWITCHED_GO]

    def test_given_trailing_else_when_fixed_then_default_case(
        self, make_workspace: Callable[..., Workspace], apply_plan: Callable[..., dict[str, str]]
    ) -> None:
        ws = make_workspace(
            {
                "h/h.go": SHAPES_GO.replace(
                    "\t\tdoGeo()\n\t}\n", "\t\tdoGeo()\n\t} else {\n\t\tdoNothing()\n\t}\n"
                )
            }
        )

        plan, results = BooleanBranchingFixer(ws).fix()

        assert results[0].cases_created == 3
        (content,) = apply_plan(ws, plan).values()
        assert "\tdefault:\n\t\tdoNothing()\n\t}\n" in content

    def test_given_commented_branch_when_fixed_then_case_keeps_comments(
        self, make_workspace: Callable[..., Workspace], apply_plan: Callable[..., dict[str, str]]
    ) -> None:
        ws = make_workspace(
            {
                "h/h.go": SHAPES_GO.replace(
                    "\t\tdoGeo()\n", "\t\t// geo output\n\t\tdoGeo() // geo\n"
                )
            }
        )

        plan, _ = BooleanBranchingFixer(ws).fix()

        (content,) = apply_plan(ws, plan).values()
        assert '\tcase "geojson":\n\t\t// geo output\n\t\tdoGeo() // geo\n\t}\n' in content

    def test_given_negated_comparison_when_fixed_then_skipped(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        """A case label cannot express ``!=``."""
        ws = make_workspace({"h/h.go": SHAPES_GO.replace('accept == "geojson"', 'accept != "geojson"')})

        plan, results = BooleanBranchingFixer(ws).fix()

        assert plan.changes == []
        assert results == []

    def test_given_flag_used_elsewhere_when_fixed_then_skipped(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        """Removing the declaration would break the other use."""
        ws = make_workspace({"h/h.go": SHAPES_GO.replace("\t}\n}\n", "\t}\n\tlog(wantGeo)\n}\n")})

        plan, results = BooleanBranchingFixer(ws).fix()

        assert plan.changes == []
        assert results == []

    def test_given_unknown_package_when_fixed_then_empty_plan(
        self, make_workspace: Callable[..., Workspace]
    ) -> None:
        ws = make_workspace({"h/h.go": SHAPES_GO})

        plan, results = BooleanBranchingFixer(ws).fix(package="nowhere")

        assert plan.changes == []
        assert plan.affected_files == []
        assert results == []
