"""Rewrite boolean flags plus an if/else-if chain as a switch on the source expression."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from goplane.analysis.base import FUNCTION_TYPES
from goplane.analysis.boolean_branching import (
    BooleanBranchingAnalyzer,
    BooleanBranchingViolation,
    Branch,
    chain_branches,
)
from goplane.core.logging import get_logger
from goplane.refactor.plan import (
    Change,
    RefactoringPlan,
    block_text,
    extract_indentation,
    line_span,
    reindent,
    select_package,
)
from goplane.syntax.inspector import Inspector, text
from goplane.workspace.models import File, Workspace

log = get_logger("refactor.boolean_branching")


def _only_used_in_chain(chain: Any, variables: list[str]) -> bool:
    """Each flag appears exactly twice in its function: declaration and condition."""
    fn = chain.parent
    while fn is not None and fn.type not in FUNCTION_TYPES:
        fn = fn.parent
    if fn is None:
        return False
    counts = dict.fromkeys(variables, 0)
    for node in Inspector(fn.child_by_field_name("body")).find("identifier"):
        name = text(node)
        if name in counts:
            counts[name] += 1
    return all(n == 2 for n in counts.values())


@dataclass
class BooleanBranchingFixResult:
    function: str
    source_variable: str
    cases_created: int
    variables_removed: list[str] = field(default_factory=list)


class BooleanBranchingFixer:
    def __init__(self, workspace: Workspace, min_branches: int = 2) -> None:
        self.workspace = workspace
        self.min_branches = min_branches

    def fix(
        self, package: str | None = None
    ) -> tuple[RefactoringPlan, list[BooleanBranchingFixResult]]:
        analyzer = BooleanBranchingAnalyzer(self.workspace, self.min_branches)
        plan = RefactoringPlan()
        results: list[BooleanBranchingFixResult] = []
        for pkg in select_package(self.workspace, package):
            for violation in analyzer.analyze_package(pkg):
                built = self.build_fix(violation)
                if built is None:
                    continue
                changes, result = built
                for change in changes:
                    plan.add(change)
                results.append(result)
        return plan, results

    def build_fix(
        self, violation: BooleanBranchingViolation
    ) -> tuple[list[Change], BooleanBranchingFixResult] | None:
        file = self.workspace.find_file(violation.file)
        if file is None or violation.chain is None:
            return None
        # a case label cannot express "!=" without changing which arm runs
        if any(a.operator != "==" for a in violation.assignments):
            log.debug(
                "boolean_branching_fix_skipped",
                file=file.path,
                line=violation.line,
                reason="negated_comparison",
            )
            return None
        branches = chain_branches(violation.chain)
        if branches is None:
            return None

        changes = []
        for assign in violation.assignments:
            start, end = line_span(file.content, assign.node.start_byte, assign.node.end_byte)
            if file.slice(start, end).strip() != text(assign.node):
                log.debug(
                    "boolean_branching_fix_skipped",
                    file=file.path,
                    line=violation.line,
                    reason="assignment_shares_line",
                )
                return None
            changes.append(
                Change(
                    file=file.path,
                    start=start,
                    end=end,
                    old_text=file.slice(start, end),
                    new_text="",
                    description=f"Remove boolean assignment: {assign.name}",
                )
            )

        chain = violation.chain
        if not _only_used_in_chain(chain, violation.boolean_variables):
            log.debug(
                "boolean_branching_fix_skipped",
                file=file.path,
                line=violation.line,
                reason="variable_used_elsewhere",
            )
            return None
        if any(c.start < chain.end_byte and chain.start_byte < c.end for c in changes):
            log.debug(
                "boolean_branching_fix_skipped",
                file=file.path,
                line=violation.line,
                reason="assignment_overlaps_chain",
            )
            return None

        literals = {a.name: a.literal for a in violation.assignments}
        indent = extract_indentation(file.content, chain.start_byte)
        switch = self._switch_text(file, violation.source_variable, branches, literals, indent)
        changes.append(
            Change(
                file=file.path,
                start=chain.start_byte,
                end=chain.end_byte,
                old_text=file.slice(chain.start_byte, chain.end_byte),
                new_text=switch,
                description=f"Replace if/else-if chain with switch {violation.source_variable}",
            )
        )
        return changes, BooleanBranchingFixResult(
            function=violation.function,
            source_variable=violation.source_variable,
            cases_created=len(branches),
            variables_removed=[a.name for a in violation.assignments],
        )

    def _switch_text(
        self,
        file: File,
        source: str,
        branches: list[Branch],
        literals: dict[str, str],
        indent: str,
    ) -> str:
        lines = [f"switch {source} {{"]
        for branch in branches:
            label = f"case {literals[branch.variable]}:" if branch.variable else "default:"
            lines.append(f"{indent}{label}")
            body, body_indent = block_text(file, branch.body)
            if body:
                lines.append(f"{indent}\t" + reindent(body, body_indent, f"{indent}\t"))
        lines.append(f"{indent}}}")
        return "\n".join(lines)
