"""Boolean flags derived from one expression and branched on in an if-chain.

Detects the pattern::

    isA := kind == "a"
    isB := kind == "b"
    if isA { ... } else if isB { ... }

which reads better as ``switch kind { case "a": ... case "b": ... }``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from goplane.analysis.base import Analyzer, bare_identifier, function_declarations
from goplane.syntax.inspector import Inspector, expressions, function_name, line_col, operator, text
from goplane.workspace.models import File, Workspace

DEFAULT_MIN_BRANCHES = 2


@dataclass
class BoolAssignment:
    """``name := source op literal`` inside a function body."""

    name: str
    source: str
    literal: str
    operator: str
    node: Any = field(repr=False, compare=False)
    line: int = 0
    column: int = 0


@dataclass
class Branch:
    """One arm of an if/else-if chain; ``variable`` is empty for a final else."""

    variable: str
    body: Any = field(repr=False, compare=False)


@dataclass
class BooleanBranchingViolation:
    file: str
    line: int
    column: int
    function: str
    source_variable: str
    boolean_variables: list[str]
    branch_count: int
    suggestion: str
    assignments: list[BoolAssignment] = field(default_factory=list, repr=False)
    chain: Any = field(default=None, repr=False, compare=False)


def collect_bool_assignments(body: Any) -> list[BoolAssignment]:
    """Single-target short declarations comparing an expression with ``==``/``!=``."""
    found: list[BoolAssignment] = []
    for cursor in Inspector(body).preorder("short_var_declaration"):
        node = cursor.node
        left = expressions(node.child_by_field_name("left"))
        right = expressions(node.child_by_field_name("right"))
        if len(left) != 1 or len(right) != 1 or left[0].type != "identifier":
            continue
        cmp = right[0]
        if cmp.type != "binary_expression" or operator(cmp) not in ("==", "!="):
            continue
        line, column = line_col(node)
        found.append(
            BoolAssignment(
                name=text(left[0]),
                source=text(cmp.child_by_field_name("left")),
                literal=text(cmp.child_by_field_name("right")),
                operator=operator(cmp),
                node=node,
                line=line,
                column=column,
            )
        )
    return found


def chain_branches(node: Any) -> list[Branch] | None:
    """Arms of an if/else-if chain whose every condition is a bare identifier.

    Returns None when an arm has an initializer or a compound condition.
    """
    branches: list[Branch] = []
    current = node
    while current is not None:
        if current.child_by_field_name("initializer") is not None:
            return None
        name = bare_identifier(current.child_by_field_name("condition"))
        if not name:
            return None
        branches.append(Branch(variable=name, body=current.child_by_field_name("consequence")))
        alt = current.child_by_field_name("alternative")
        if alt is None:
            break
        if alt.type == "if_statement":
            current = alt
            continue
        branches.append(Branch(variable="", body=alt))
        break
    return branches


def find_switch_chain(body: Any, variables: list[str]) -> tuple[Any, list[Branch]] | None:
    """The first if-chain whose conditions are exactly ``variables``, each once."""
    wanted = sorted(variables)
    for cursor in Inspector(body).preorder("if_statement"):
        if cursor.field == "alternative" and cursor.parent is not None and cursor.parent.type == "if_statement":
            continue
        branches = chain_branches(cursor.node)
        if branches is None:
            continue
        used = sorted(b.variable for b in branches if b.variable)
        if used == wanted:
            return cursor.node, branches
    return None


class BooleanBranchingAnalyzer(Analyzer[BooleanBranchingViolation]):
    def __init__(self, workspace: Workspace, min_branches: int = DEFAULT_MIN_BRANCHES) -> None:
        super().__init__(workspace)
        self.min_branches = min_branches if min_branches > 0 else DEFAULT_MIN_BRANCHES

    def analyze_file(self, file: File) -> list[BooleanBranchingViolation]:
        results: list[BooleanBranchingViolation] = []
        for fn in function_declarations(file):
            results.extend(self._analyze_function(file, fn))
        return results

    def _analyze_function(self, file: File, fn: Any) -> list[BooleanBranchingViolation]:
        body = fn.child_by_field_name("body")
        groups: dict[str, list[BoolAssignment]] = {}
        for assign in collect_bool_assignments(body):
            groups.setdefault(assign.source, []).append(assign)

        results = []
        for source, group in groups.items():
            if len(group) < self.min_branches:
                continue
            names = [a.name for a in group]
            if len(set(names)) != len(names):
                continue
            found = find_switch_chain(body, names)
            if found is None:
                continue
            chain, _ = found
            results.append(
                BooleanBranchingViolation(
                    file=file.path,
                    line=group[0].line,
                    column=group[0].column,
                    function=function_name(fn),
                    source_variable=source,
                    boolean_variables=names,
                    branch_count=len(group),
                    suggestion=f"Replace boolean variables with switch {source} {{ ... }}",
                    assignments=group,
                    chain=chain,
                )
            )
        return results
