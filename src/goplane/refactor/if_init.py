"""Split ``if x := f(); cond {`` into an assignment followed by ``if cond {``."""

from __future__ import annotations

from typing import Any

from goplane.analysis.if_init import IfInitAnalyzer, IfInitViolation
from goplane.core.logging import get_logger
from goplane.refactor.plan import Change, RefactoringPlan, extract_indentation, select_package
from goplane.workspace.models import Workspace

log = get_logger("refactor.if_init")

DESCRIPTION = "Split if-init assignment into separate assignment and if-check"


def _is_else_if(node: Any) -> bool:
    parent = node.parent
    if parent is None or parent.type != "if_statement":
        return False
    alt = parent.child_by_field_name("alternative")
    return alt is not None and alt.start_byte == node.start_byte


class IfInitFixer:
    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace

    def fix(self, package: str | None = None) -> tuple[RefactoringPlan, list[IfInitViolation]]:
        """Plan for every violation it can split, and the violations it fixed."""
        analyzer = IfInitAnalyzer(self.workspace)
        plan = RefactoringPlan()
        fixed: list[IfInitViolation] = []
        for pkg in select_package(self.workspace, package):
            for violation in analyzer.analyze_package(pkg):
                change = self.build_change(violation)
                if change is None:
                    continue
                plan.add(change)
                fixed.append(violation)
        return plan, fixed

    def build_change(self, violation: IfInitViolation) -> Change | None:
        file = self.workspace.find_file(violation.file)
        node = violation.node
        if file is None or node is None:
            return None
        init = node.child_by_field_name("initializer")
        cond = node.child_by_field_name("condition")
        body = node.child_by_field_name("consequence")
        if init is None or cond is None or body is None:
            return None
        # an else-if has no statement position to put the assignment in
        if _is_else_if(node):
            log.debug("if_init_fix_skipped", file=file.path, line=violation.line, reason="else_if")
            return None

        start = node.start_byte
        end = body.start_byte + 1  # through the opening brace
        indent = extract_indentation(file.content, start)
        assignment = file.slice(init.start_byte, init.end_byte)
        condition = file.slice(cond.start_byte, cond.end_byte)
        return Change(
            file=file.path,
            start=start,
            end=end,
            old_text=file.slice(start, end),
            new_text=f"{assignment}\n{indent}if {condition} {{",
            description=DESCRIPTION,
        )
