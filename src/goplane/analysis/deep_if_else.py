"""Deep if-else chains that read better as guard clauses with early returns."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from goplane.analysis.base import Analyzer, function_declarations
from goplane.syntax.inspector import block_statements, function_name, is_if_with_else, line_col
from goplane.workspace.models import File, Workspace

DEFAULT_MAX_NESTING = 2
DEFAULT_MIN_ELSE_LINES = 3


@dataclass
class DeepIfElseViolation:
    file: str
    line: int
    column: int
    function: str
    nesting_depth: int
    happy_path_depth: int
    error_branches: int
    complexity_reduction_percent: int
    suggestion: str


def _nested_if_elses(block: Any) -> list[Any]:
    return [s for s in block_statements(block) if is_if_with_else(s)]


def _block_span(block: Any) -> int:
    return block.end_point[0] - block.start_point[0] + 1


def block_has_return(block: Any) -> bool:
    return any(s.type == "return_statement" for s in block_statements(block))


def measure_depth(node: Any, current: int = 1) -> int:
    """Nesting depth of an if-else, following then-bodies and else branches."""
    deepest = current
    for inner in _nested_if_elses(node.child_by_field_name("consequence")):
        deepest = max(deepest, measure_depth(inner, current + 1))

    alt = node.child_by_field_name("alternative")
    if alt is not None and alt.type == "if_statement":
        if is_if_with_else(alt):
            deepest = max(deepest, measure_depth(alt, current + 1))
    elif alt is not None:
        for inner in _nested_if_elses(alt):
            deepest = max(deepest, measure_depth(inner, current + 1))
    return deepest


def count_else_lines(node: Any) -> int:
    alt = node.child_by_field_name("alternative")
    if alt is None:
        return 0

    total = 0
    if alt.type == "block":
        total += _block_span(alt)
    elif alt.type == "if_statement":
        total += _block_span(alt.child_by_field_name("consequence"))
        total += count_else_lines(alt)

    for stmt in block_statements(node.child_by_field_name("consequence")):
        if stmt.type == "if_statement":
            total += count_else_lines(stmt)
    return total


def count_error_branches(node: Any) -> int:
    """Else branches that end in a return, i.e. candidates for early returns."""
    count = 0
    alt = node.child_by_field_name("alternative")
    if alt is not None and alt.type == "block":
        if block_has_return(alt):
            count += 1
    elif alt is not None and alt.type == "if_statement":
        count += count_error_branches(alt)

    for stmt in block_statements(node.child_by_field_name("consequence")):
        if stmt.type == "if_statement":
            count += count_error_branches(stmt)
    return count


def measure_happy_path_depth(node: Any, current: int = 1) -> int:
    deepest = current
    for inner in _nested_if_elses(node.child_by_field_name("consequence")):
        deepest = max(deepest, measure_happy_path_depth(inner, current + 1))
    return deepest


class DeepIfElseAnalyzer(Analyzer[DeepIfElseViolation]):
    """Reports if-else chains nested deeper than ``max_nesting``.

    A chain also needs at least ``min_else_lines`` lines of else branches;
    short else blocks are not worth flattening.
    """

    def __init__(
        self,
        workspace: Workspace,
        max_nesting: int = DEFAULT_MAX_NESTING,
        min_else_lines: int = DEFAULT_MIN_ELSE_LINES,
    ) -> None:
        super().__init__(workspace)
        self.max_nesting = max_nesting if max_nesting >= 0 else DEFAULT_MAX_NESTING
        self.min_else_lines = min_else_lines if min_else_lines > 0 else DEFAULT_MIN_ELSE_LINES

    def analyze_file(self, file: File) -> list[DeepIfElseViolation]:
        results: list[DeepIfElseViolation] = []
        for fn in function_declarations(file):
            self._walk(file, function_name(fn), fn.child_by_field_name("body"), results)
        return results

    def _walk(self, file: File, func: str, node: Any, out: list[DeepIfElseViolation]) -> None:
        if is_if_with_else(node):
            violation = self._check(file, func, node)
            if violation is not None:
                out.append(violation)
                return
        for child in node.named_children:
            self._walk(file, func, child, out)

    def _check(self, file: File, func: str, node: Any) -> DeepIfElseViolation | None:
        depth = measure_depth(node)
        if depth <= self.max_nesting:
            return None
        if count_else_lines(node) < self.min_else_lines:
            return None

        line, column = line_col(node)
        return DeepIfElseViolation(
            file=file.path,
            line=line,
            column=column,
            function=func,
            nesting_depth=depth,
            happy_path_depth=measure_happy_path_depth(node),
            error_branches=count_error_branches(node),
            complexity_reduction_percent=(depth - 1) * 100 // depth,
            suggestion=f"Invert conditions and use early returns for error cases (depth {depth} -> 0)",
        )
