"""Tree-sitter parsing for Go source files.

The parser produces concrete syntax trees that every other component reads
directly. Byte offsets on tree nodes are offsets into the original file
content, which is what the file set and the fixers work with.

Usage::

    parser = GoParser()
    result = parser.parse(Path("pkg/server.go"), content)
    if result.error_count:
        line, col = result.first_error
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tree_sitter
import tree_sitter_go


@dataclass
class ParseResult:
    """Result of parsing a file."""

    tree: Any  # Tree-sitter Tree (not serializable)
    content: bytes
    error_count: int
    total_nodes: int
    root_node: Any  # Tree-sitter Node
    first_error: tuple[int, int] | None = None  # 1-based (line, column) of first error

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0


@dataclass
class GoParser:
    """Tree-sitter parser bound to the Go grammar.

    Not safe for concurrent use; create one per thread.
    """

    _parser: Any = field(default=None, repr=False)
    _language: Any = field(default=None, repr=False)

    def __post_init__(self) -> None:
        self._language = tree_sitter.Language(tree_sitter_go.language())
        self._parser = tree_sitter.Parser()
        self._parser.language = self._language

    @property
    def language(self) -> Any:
        return self._language

    def parse(self, path: Path, content: bytes | None = None) -> ParseResult:
        """Parse a Go file.

        Args:
            path: Path to file (only read when content is None)
            content: File content as bytes

        Returns:
            ParseResult with tree and error info.
        """
        if content is None:
            content = path.read_bytes()
        tree = self._parser.parse(content)

        error_count = 0
        total_nodes = 0
        first_error: tuple[int, int] | None = None

        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            total_nodes += 1
            if node.type == "ERROR" or node.is_missing:
                error_count += 1
                row, col = node.start_point
                if first_error is None or (row + 1, col + 1) < first_error:
                    first_error = (row + 1, col + 1)
            stack.extend(reversed(node.children))

        return ParseResult(
            tree=tree,
            content=content,
            error_count=error_count,
            total_nodes=total_nodes,
            root_node=tree.root_node,
            first_error=first_error,
        )

    def parse_text(self, source: str) -> ParseResult:
        """Parse in-memory source text."""
        return self.parse(Path("<memory>.go"), source.encode("utf-8"))


def package_name(root: Any) -> str:
    """Name from the file's package clause, or empty if missing."""
    for child in root.named_children:
        if child.type == "package_clause":
            for sub in child.named_children:
                if sub.type in ("package_identifier", "identifier"):
                    return sub.text.decode("utf-8")
    return ""


@dataclass(frozen=True)
class ImportSpec:
    """One import spec of a file."""

    path: str
    alias: str | None  # explicit name: identifier, "." or "_"
    pos_offset: int  # byte offset of the spec

    @property
    def local_name(self) -> str:
        """Name the import binds in the file: alias, else last path segment."""
        if self.alias:
            return self.alias
        return self.path.rsplit("/", 1)[-1]


def import_specs(root: Any) -> list[ImportSpec]:
    """All import specs in source order."""
    specs: list[ImportSpec] = []
    for decl in root.named_children:
        if decl.type != "import_declaration":
            continue
        for spec in _iter_import_spec_nodes(decl):
            path_node = spec.child_by_field_name("path")
            if path_node is None:
                continue
            path = path_node.text.decode("utf-8").strip('"`')
            name_node = spec.child_by_field_name("name")
            alias = name_node.text.decode("utf-8") if name_node is not None else None
            specs.append(ImportSpec(path=path, alias=alias, pos_offset=spec.start_byte))
    return specs


def _iter_import_spec_nodes(decl: Any) -> list[Any]:
    out: list[Any] = []
    for child in decl.named_children:
        if child.type == "import_spec":
            out.append(child)
        elif child.type == "import_spec_list":
            out.extend(c for c in child.named_children if c.type == "import_spec")
    return out
