"""Functions that create a root context instead of accepting one."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from goplane.analysis.base import Analyzer, function_declarations, is_package_call, parameters
from goplane.syntax.inspector import Inspector, function_name, line_col, text
from goplane.workspace.models import File

ROOT_CONTEXT_CALLS = ("TODO", "Background")

# legitimate places to create a root context
EXEMPT_FUNCTIONS = frozenset({"main", "init"})


@dataclass
class MissingContextViolation:
    file: str
    line: int
    column: int
    function_name: str
    signature: str
    context_calls: list[str] = field(default_factory=list)


def is_context_type(node: Any) -> bool:
    if node is None or node.type != "qualified_type":
        return False
    pkg = node.child_by_field_name("package")
    name = node.child_by_field_name("name")
    return text(pkg) == "context" and text(name) == "Context"


def has_context_param(fn: Any) -> bool:
    return any(is_context_type(typ) for _, typ in parameters(fn))


def context_creation_calls(body: Any) -> list[str]:
    calls = []
    for cursor in Inspector(body).preorder("call_expression"):
        if is_package_call(cursor.node, "context", *ROOT_CONTEXT_CALLS):
            sel = cursor.node.child_by_field_name("function")
            calls.append(f"context.{text(sel.child_by_field_name('field'))}()")
    return calls


class MissingContextAnalyzer(Analyzer[MissingContextViolation]):
    def analyze_file(self, file: File) -> list[MissingContextViolation]:
        results = []
        for fn in function_declarations(file):
            name = function_name(fn)
            if name in EXEMPT_FUNCTIONS or has_context_param(fn):
                continue
            body = fn.child_by_field_name("body")
            calls = context_creation_calls(body)
            if not calls:
                continue
            line, column = line_col(fn)
            results.append(
                MissingContextViolation(
                    file=file.path,
                    line=line,
                    column=column,
                    function_name=name,
                    signature=file.slice(fn.start_byte, body.start_byte).strip(),
                    context_calls=calls,
                )
            )
        return results
