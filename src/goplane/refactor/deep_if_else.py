"""Flatten nested if-else chains into guard clauses followed by the happy path.

Only the plain shape is rewritten: every then-body is either a single
nested if-else (the chain continues) or the happy path, and every else is a
block that returns. Anything else is left alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from goplane.analysis.deep_if_else import (
    DEFAULT_MAX_NESTING,
    DEFAULT_MIN_ELSE_LINES,
    DeepIfElseAnalyzer,
    DeepIfElseViolation,
    block_has_return,
)
from goplane.core.logging import get_logger
from goplane.refactor.plan import (
    Change,
    RefactoringPlan,
    block_text,
    extract_indentation,
    reindent,
    select_package,
)
from goplane.syntax.inspector import (
    Inspector,
    block_statements,
    is_if_with_else,
    line_col,
    operator,
    text,
)
from goplane.workspace.models import File, Workspace

log = get_logger("refactor.deep_if_else")

_COMPLEMENT = {"==": "!=", "!=": "==", "<": ">=", ">": "<=", "<=": ">", ">=": "<"}


@dataclass
class GuardClause:
    condition: str
    body: str
    body_indent: str


@dataclass
class DeepIfElseFixResult:
    function: str
    nesting_depth_before: int
    nesting_depth_after: int
    early_returns_added: int


def invert_condition(node: Any) -> str:
    """Textual negation of a condition, simplified where it is safe to."""
    kind = node.type
    if kind == "binary_expression":
        op = operator(node)
        if op in _COMPLEMENT:
            left = text(node.child_by_field_name("left"))
            right = text(node.child_by_field_name("right"))
            return f"{left} {_COMPLEMENT[op]} {right}"
        return f"!({text(node)})"
    if kind == "unary_expression" and operator(node) == "!":
        return text(node.child_by_field_name("operand"))
    if kind == "identifier":
        return f"!{text(node)}"
    if kind == "parenthesized_expression":
        inner = [c for c in node.named_children if c.type != "comment"]
        if len(inner) == 1:
            return invert_condition(inner[0])
    return f"!({text(node)})"


def _has_comments(block: Any) -> bool:
    children = list(block.named_children)
    for child in block.named_children:
        if child.type == "statement_list":
            children.extend(child.named_children)
    return any(c.type == "comment" for c in children)


def _single_nested_if_else(block: Any) -> Any:
    """The lone if-else of a then-body; a commented body is kept whole as the happy path."""
    statements = block_statements(block)
    if len(statements) == 1 and is_if_with_else(statements[0]) and not _has_comments(block):
        return statements[0]
    return None


class DeepIfElseFixer:
    def __init__(
        self,
        workspace: Workspace,
        max_nesting: int = DEFAULT_MAX_NESTING,
        min_else_lines: int = DEFAULT_MIN_ELSE_LINES,
    ) -> None:
        self.workspace = workspace
        self.max_nesting = max_nesting
        self.min_else_lines = min_else_lines

    def fix(self, package: str | None = None) -> tuple[RefactoringPlan, list[DeepIfElseFixResult]]:
        analyzer = DeepIfElseAnalyzer(self.workspace, self.max_nesting, self.min_else_lines)
        plan = RefactoringPlan()
        results: list[DeepIfElseFixResult] = []
        for pkg in select_package(self.workspace, package):
            for violation in analyzer.analyze_package(pkg):
                built = self.build_fix(violation)
                if built is None:
                    continue
                change, result = built
                plan.add(change)
                results.append(result)
        return plan, results

    def build_fix(self, violation: DeepIfElseViolation) -> tuple[Change, DeepIfElseFixResult] | None:
        file = self.workspace.find_file(violation.file)
        if file is None:
            return None
        node = self._if_at(file, violation.line, violation.column)
        if node is None:
            return None
        extracted = self.extract_chain(file, node)
        if extracted is None:
            log.debug(
                "deep_if_else_fix_skipped",
                file=file.path,
                line=violation.line,
                function=violation.function,
            )
            return None
        guards, happy, happy_indent = extracted

        start, end = node.start_byte, node.end_byte
        indent = extract_indentation(file.content, start)
        change = Change(
            file=file.path,
            start=start,
            end=end,
            old_text=file.slice(start, end),
            new_text=self._replacement(guards, happy, happy_indent, indent),
            description=f"Flatten deep if-else chain with early returns in {violation.function}",
        )
        return change, DeepIfElseFixResult(
            function=violation.function,
            nesting_depth_before=violation.nesting_depth,
            nesting_depth_after=0,
            early_returns_added=len(guards),
        )

    def extract_chain(self, file: File, node: Any) -> tuple[list[GuardClause], str, str] | None:
        """Guards (inverted condition + else body) and the happy path text, or None."""
        guards: list[GuardClause] = []
        current = node
        while True:
            if current.child_by_field_name("initializer") is not None:
                return None
            alt = current.child_by_field_name("alternative")
            if alt is None or alt.type != "block" or not block_has_return(alt):
                return None
            body, body_indent = block_text(file, alt)
            guards.append(
                GuardClause(
                    condition=invert_condition(current.child_by_field_name("condition")),
                    body=body,
                    body_indent=body_indent,
                )
            )
            then = current.child_by_field_name("consequence")
            inner = _single_nested_if_else(then)
            if inner is None:
                happy, happy_indent = block_text(file, then)
                return guards, happy, happy_indent
            current = inner

    def _replacement(
        self, guards: list[GuardClause], happy: str, happy_indent: str, indent: str
    ) -> str:
        parts = []
        for guard in guards:
            body = reindent(guard.body, guard.body_indent, f"{indent}\t")
            parts.append(f"if {guard.condition} {{\n{indent}\t{body}\n{indent}}}\n{indent}")
        if not happy:
            parts[-1] = parts[-1].removesuffix(f"\n{indent}")
        parts.append(reindent(happy, happy_indent, indent))
        return "".join(parts)

    def _if_at(self, file: File, line: int, column: int) -> Any:
        for node in Inspector(file.root).find("if_statement"):
            if line_col(node) == (line, column):
                return node
        return None
