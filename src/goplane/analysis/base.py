"""Shared pieces for the code-quality analyzers.

Every analyzer walks the non-test files of each package and returns plain
violation records. Records are emitted in walk order; ``sort_violations``
gives the (file, line, column) order used when presenting them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator
from typing import Any, Generic, Protocol, TypeVar

from goplane.syntax.inspector import expressions, text, unparen
from goplane.workspace.models import File, Package, Workspace

FUNCTION_TYPES = ("function_declaration", "method_declaration")


class Located(Protocol):
    file: str
    line: int
    column: int


V = TypeVar("V")
L = TypeVar("L", bound=Located)


class Analyzer(ABC, Generic[V]):
    """Per-file analysis lifted to packages and the whole workspace."""

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace

    def analyze_workspace(self) -> list[V]:
        results: list[V] = []
        for pkg in self.workspace.packages.values():
            results.extend(self.analyze_package(pkg))
        return results

    def analyze_package(self, pkg: Package) -> list[V]:
        results: list[V] = []
        for file in pkg.files.values():
            results.extend(self.analyze_file(file))
        return results

    @abstractmethod
    def analyze_file(self, file: File) -> list[V]: ...


def sort_violations(violations: Iterable[L]) -> list[L]:
    return sorted(violations, key=lambda v: (v.file, v.line, v.column))


def function_declarations(file: File) -> Iterator[Any]:
    """Top-level functions and methods that have a body."""
    for node in file.root.named_children:
        if node.type in FUNCTION_TYPES and node.child_by_field_name("body") is not None:
            yield node


def parameters(fn: Any) -> Iterator[tuple[Any, Any]]:
    """(name node, type node) for every named parameter of a function."""
    params = fn.child_by_field_name("parameters")
    if params is None:
        return
    for decl in params.named_children:
        if decl.type not in ("parameter_declaration", "variadic_parameter_declaration"):
            continue
        typ = decl.child_by_field_name("type")
        for name in decl.children_by_field_name("name"):
            yield name, typ


def result_types(fn: Any) -> list[Any]:
    """Type nodes of a function's declared results."""
    result = fn.child_by_field_name("result")
    if result is None:
        return []
    if result.type != "parameter_list":
        return [result]
    types = []
    for decl in result.named_children:
        typ = decl.child_by_field_name("type")
        if typ is not None:
            types.append(typ)
    return types


def returns_error(fn: Any) -> bool:
    return any(t.type == "type_identifier" and text(t) == "error" for t in result_types(fn))


def is_package_call(call: Any, package: str, *names: str) -> bool:
    """``package.Name(...)`` for one of ``names``."""
    if call is None or call.type != "call_expression":
        return False
    fn = call.child_by_field_name("function")
    if fn is None or fn.type != "selector_expression":
        return False
    operand = fn.child_by_field_name("operand")
    field = fn.child_by_field_name("field")
    return (
        operand is not None
        and operand.type == "identifier"
        and text(operand) == package
        and text(field) in names
    )


def call_arguments(call: Any) -> list[Any]:
    args = call.child_by_field_name("arguments")
    if args is None:
        return []
    return [c for c in args.named_children if c.type != "comment"]


def return_values(ret: Any) -> list[Any]:
    for child in ret.named_children:
        if child.type != "comment":
            return expressions(child)
    return []


def bare_identifier(node: Any) -> str:
    """Name of ``node`` if it is an identifier, parentheses aside."""
    inner = unparen(node)
    if inner is not None and inner.type == "identifier":
        return text(inner)
    return ""
