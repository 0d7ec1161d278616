"""Cyclomatic and cognitive complexity per function.

Cyclomatic complexity starts at 1 and adds one per ``if``, plain ``else``
and loop, plus one per switch case (with one more when the switch has no
default) and one per select case. Cognitive complexity charges every
branching construct ``1 + depth``, where depth counts the enclosing
bodies; an ``else if`` stays at the depth of its chain.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from goplane.analysis.base import Analyzer, function_declarations, parameters
from goplane.core.logging import get_logger
from goplane.index.symbols import spec_names, value_specs
from goplane.syntax.inspector import (
    block_statements,
    case_statements,
    expressions,
    function_name,
    line_col,
    text,
)
from goplane.workspace.models import File, Workspace

log = get_logger("analysis.complexity")

DEFAULT_MIN_COMPLEXITY = 10
REPORT_LIMIT = 20

COMPLEXITY_THRESHOLDS = {
    "low": 1,
    "moderate": 5,
    "high": 10,
    "very_high": 15,
    "extreme": 20,
}

_SWITCHES = ("expression_switch_statement", "type_switch_statement")
_SWITCH_CASES = ("expression_case", "type_case")


@dataclass
class ComplexityMetrics:
    cyclomatic: int = 1
    cognitive: int = 0
    lines_of_code: int = 0
    parameters: int = 0
    local_variables: int = 0
    nested_blocks: int = 0
    max_nesting_depth: int = 0


@dataclass
class ComplexityViolation:
    file: str
    line: int
    column: int
    function: str
    kind: str  # "function" or "method"
    metrics: ComplexityMetrics
    level: str
    node: Any = field(default=None, repr=False, compare=False)


def classify_complexity(complexity: int) -> str:
    """Threshold bucket for a cyclomatic complexity value."""
    for level in ("extreme", "very_high", "high", "moderate"):
        if complexity >= COMPLEXITY_THRESHOLDS[level]:
            return level
    return "low"


def cognitive_weight(depth: int) -> int:
    return 1 + depth


def _clauses(stmt: Any, kinds: tuple[str, ...]) -> list[Any]:
    return [c for c in stmt.named_children if c.type in kinds]


def count_switch_cases(stmt: Any) -> int:
    """Non-default cases, plus one for the implicit default when none is written."""
    count = len(_clauses(stmt, _SWITCH_CASES))
    if not _clauses(stmt, ("default_case",)):
        count += 1
    return count


def count_select_cases(stmt: Any) -> int:
    return len(_clauses(stmt, ("communication_case", "default_case")))


class _MetricsWalker:
    def __init__(self, metrics: ComplexityMetrics) -> None:
        self.m = metrics

    def walk(self, node: Any, depth: int) -> None:
        if node is None:
            return
        kind = node.type
        m = self.m

        if kind == "if_statement":
            m.cyclomatic += 1
            m.cognitive += cognitive_weight(depth)
            alt = node.child_by_field_name("alternative")
            if alt is not None and alt.type != "if_statement":
                m.cyclomatic += 1
            self.walk(node.child_by_field_name("initializer"), depth + 1)
            self.walk(node.child_by_field_name("consequence"), depth + 1)
            if alt is not None:
                self.walk(alt, depth if alt.type == "if_statement" else depth + 1)

        elif kind == "for_statement":
            m.cyclomatic += 1
            m.cognitive += cognitive_weight(depth)
            self.walk(node.child_by_field_name("body"), depth + 1)

        elif kind in _SWITCHES:
            m.cyclomatic += count_switch_cases(node)
            m.cognitive += cognitive_weight(depth)
            self._walk_cases(_clauses(node, (*_SWITCH_CASES, "default_case")), depth + 1)

        elif kind == "select_statement":
            m.cyclomatic += count_select_cases(node)
            m.cognitive += cognitive_weight(depth)
            self._walk_cases(_clauses(node, ("communication_case", "default_case")), depth + 1)

        elif kind in ("func_literal", "go_statement", "defer_statement"):
            # closure bodies are not descended into
            m.cognitive += cognitive_weight(depth)

        elif kind == "block":
            if depth > 0:
                m.nested_blocks += 1
            m.max_nesting_depth = max(m.max_nesting_depth, depth)
            for stmt in block_statements(node):
                self.walk(stmt, depth)

        elif kind == "short_var_declaration":
            left = expressions(node.child_by_field_name("left"))
            m.local_variables += sum(1 for n in left if n.type == "identifier" and text(n) != "_")

        elif kind == "var_declaration":
            m.local_variables += sum(len(spec_names(spec)) for spec in value_specs(node))

        elif kind == "expression_statement":
            for child in node.named_children:
                self.walk(child, depth)

        elif kind == "labeled_statement":
            label = node.child_by_field_name("label")
            for child in node.named_children:
                if label is None or child.id != label.id:
                    self.walk(child, depth)

    def _walk_cases(self, clauses: list[Any], depth: int) -> None:
        for clause in clauses:
            for stmt in case_statements(clause):
                self.walk(stmt, depth)


def measure(fn: Any) -> ComplexityMetrics:
    """Complexity metrics of a function or method declaration."""
    metrics = ComplexityMetrics()
    metrics.parameters = sum(1 for _ in parameters(fn))
    body = fn.child_by_field_name("body")
    if body is not None:
        metrics.lines_of_code = body.end_point[0] - body.start_point[0] + 1
        _MetricsWalker(metrics).walk(body, 0)
    return metrics


def sort_by_complexity(violations: list[ComplexityViolation]) -> list[ComplexityViolation]:
    """Highest cyclomatic complexity first; ties keep their order."""
    return sorted(violations, key=lambda v: -v.metrics.cyclomatic)


class ComplexityAnalyzer(Analyzer[ComplexityViolation]):
    """Reports functions whose cyclomatic complexity reaches ``min_complexity``."""

    def __init__(self, workspace: Workspace, min_complexity: int = DEFAULT_MIN_COMPLEXITY) -> None:
        super().__init__(workspace)
        if min_complexity <= 0:
            min_complexity = DEFAULT_MIN_COMPLEXITY
        self.min_complexity = min_complexity

    def analyze_workspace(self) -> list[ComplexityViolation]:
        results = sort_by_complexity(super().analyze_workspace())
        log.debug("complexity_analyzed", reported=len(results), min_complexity=self.min_complexity)
        return results

    def analyze_file(self, file: File) -> list[ComplexityViolation]:
        results = []
        for fn in function_declarations(file):
            metrics = measure(fn)
            if metrics.cyclomatic < self.min_complexity:
                continue
            line, column = line_col(fn)
            results.append(
                ComplexityViolation(
                    file=file.path,
                    line=line,
                    column=column,
                    function=function_name(fn),
                    kind="method" if fn.type == "method_declaration" else "function",
                    metrics=metrics,
                    level=classify_complexity(metrics.cyclomatic),
                    node=fn,
                )
            )
        return results


def format_complexity_report(violations: list[ComplexityViolation]) -> str:
    """Plain-text report of the most complex functions, in the given order."""
    if not violations:
        return "No complex functions found."

    lines = [f"Found {len(violations)} complex functions:", ""]
    for i, v in enumerate(violations):
        if i >= REPORT_LIMIT:
            lines.append(f"... and {len(violations) - i} more functions")
            break
        m = v.metrics
        lines.extend(
            [
                f"{i + 1}. {v.function} ({v.file}:{v.line})",
                f"   Cyclomatic Complexity: {m.cyclomatic} ({v.level})",
                f"   Cognitive Complexity: {m.cognitive}",
                f"   Lines of Code: {m.lines_of_code}",
                f"   Parameters: {m.parameters}, Local Variables: {m.local_variables}",
                f"   Max Nesting Depth: {m.max_nesting_depth}",
                "",
            ]
        )
    return "\n".join(lines) + "\n"
