"""Helpers for fixer tests: apply a plan in memory and re-parse the result."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from goplane.refactor.plan import RefactoringPlan, apply_changes
from goplane.syntax.parser import GoParser
from goplane.workspace.models import Workspace

Applier = Callable[[Workspace, RefactoringPlan], dict[str, str]]


@pytest.fixture
def apply_plan() -> Applier:
    """Validate a plan, apply it per file and assert every result still parses."""
    parser = GoParser()

    def _apply(ws: Workspace, plan: RefactoringPlan) -> dict[str, str]:
        plan.validate(ws)
        out: dict[str, str] = {}
        for path in plan.affected_files:
            file = ws.find_file(path)
            assert file is not None
            content = apply_changes(file.content, plan.changes_for(path))
            parsed = parser.parse_text(content.decode("utf-8"))
            assert not parsed.has_errors, content.decode("utf-8")
            out[path] = content.decode("utf-8")
        return out

    return _apply
