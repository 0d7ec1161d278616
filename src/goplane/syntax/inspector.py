"""Cursor-based syntax tree inspection.

``Inspector.preorder`` walks named nodes once and yields ``Cursor`` objects
that keep their parent chain, so callers classify a node by its context
(for example "selected name of a callee selector") without a second pass.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

IDENTIFIER_TYPES = frozenset(
    {"identifier", "type_identifier", "field_identifier", "package_identifier"}
)


@dataclass(frozen=True, slots=True)
class Cursor:
    """A node plus the path that led to it."""

    node: Any
    parent: Cursor | None
    depth: int
    field: str | None = None  # field name under the parent node, if any

    @property
    def type(self) -> str:
        return self.node.type  # type: ignore[no-any-return]

    def ancestors(self) -> Iterator[Cursor]:
        """Enclosing cursors, innermost first."""
        cur = self.parent
        while cur is not None:
            yield cur
            cur = cur.parent

    def enclosing(self, *types: str) -> Cursor | None:
        """Closest ancestor of one of ``types``."""
        for anc in self.ancestors():
            if anc.node.type in types:
                return anc
        return None


class Inspector:
    """Preorder traversal over the named nodes of one syntax tree."""

    def __init__(self, root: Any) -> None:
        self._root = root

    def preorder(self, *types: str) -> Iterator[Cursor]:
        """Yield cursors for every named node, or only those of ``types``."""
        wanted = frozenset(types)
        tc = self._root.walk()
        stack: list[Cursor] = []
        depth = 0
        while True:
            node = tc.node
            if node.is_named:
                parent = stack[-1] if stack else None
                cursor = Cursor(node=node, parent=parent, depth=depth, field=tc.field_name)
                if not wanted or node.type in wanted:
                    yield cursor
                if tc.goto_first_child():
                    stack.append(cursor)
                    depth += 1
                    continue
            if tc.goto_next_sibling():
                continue
            # climb until a sibling exists
            while True:
                if not tc.goto_parent():
                    return
                stack.pop()
                depth -= 1
                if tc.goto_next_sibling():
                    break

    def find(self, *types: str) -> list[Any]:
        """Nodes of ``types`` in source order."""
        return [c.node for c in self.preorder(*types)]


def node_at(root: Any, offset: int) -> Any:
    """Deepest named node whose span contains ``offset``."""
    node = root
    while True:
        for child in node.named_children:
            if child.start_byte <= offset < child.end_byte:
                node = child
                break
        else:
            return node


def text(node: Any) -> str:
    """Source text of a node."""
    if node is None:
        return ""
    return node.text.decode("utf-8")  # type: ignore[no-any-return]


def line_col(node: Any) -> tuple[int, int]:
    """1-based line and byte column of the node start."""
    row, col = node.start_point
    return row + 1, col + 1


def block_statements(block: Any) -> list[Any]:
    """Statements of a block or case clause, comments excluded.

    Older grammar releases put statements directly under the block, newer
    ones wrap them in a ``statement_list``; both shapes are accepted.
    """
    if block is None:
        return []
    out: list[Any] = []
    for child in block.named_children:
        if child.type == "statement_list":
            out.extend(c for c in child.named_children if c.type != "comment")
        elif child.type != "comment":
            out.append(child)
    return out


def case_statements(clause: Any) -> list[Any]:
    """Statements of an expression/type case clause (case labels excluded)."""
    label_fields = {"value", "type"}
    labels = set()
    for name in label_fields:
        for n in clause.children_by_field_name(name):
            labels.add(n.id)
    out: list[Any] = []
    for child in clause.named_children:
        if child.id in labels or child.type == "comment":
            continue
        if child.type == "statement_list":
            out.extend(c for c in child.named_children if c.type != "comment")
        else:
            out.append(child)
    return out


def expressions(expr_list: Any) -> list[Any]:
    """Expressions of an ``expression_list`` (or a lone expression)."""
    if expr_list is None:
        return []
    if expr_list.type == "expression_list":
        return [c for c in expr_list.named_children if c.type != "comment"]
    return [expr_list]


def unparen(node: Any) -> Any:
    """Strip any number of enclosing parentheses."""
    while node is not None and node.type == "parenthesized_expression":
        inner = [c for c in node.named_children if c.type != "comment"]
        if len(inner) != 1:
            break
        node = inner[0]
    return node


def is_if_with_else(node: Any) -> bool:
    return node is not None and node.type == "if_statement" and (
        node.child_by_field_name("alternative") is not None
    )


def operator(node: Any) -> str:
    """Operator token of a binary or unary expression."""
    op = node.child_by_field_name("operator")
    return op.type if op is not None else ""


def function_name(node: Any) -> str:
    """Name of a function or method declaration."""
    name = node.child_by_field_name("name")
    return text(name)


def enclosing_function(cursor: Cursor) -> Any:
    """Closest function or method declaration around a cursor."""
    found = cursor.enclosing("function_declaration", "method_declaration")
    return found.node if found is not None else None
