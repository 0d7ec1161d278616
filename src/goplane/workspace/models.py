"""Workspace data model.

Workspace, Package and File are built once by the loader and then read
concurrently by every other component. Symbols are produced by the symbol
extractor and compared by position: two Symbol values describe the same
entity iff their ``pos`` values coincide.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from goplane.workspace.positions import FileSet, SourceFile

if TYPE_CHECKING:
    from goplane.index.dependencies import DependencyGraph
    from goplane.index.typeinfo import TypeInfo


class SymbolKind(str, Enum):
    """Kind of a named entity."""

    FUNCTION = "Function"
    METHOD = "Method"
    TYPE = "Type"
    INTERFACE = "Interface"
    VARIABLE = "Variable"
    CONSTANT = "Constant"
    PACKAGE = "Package"

    def __str__(self) -> str:
        return self.value


@dataclass(eq=False)
class Symbol:
    """A named, positioned entity."""

    name: str
    kind: SymbolKind
    package: str  # owning package identifier (import path, else filesystem path)
    file: str
    pos: int
    end: int
    line: int
    column: int
    exported: bool
    parent: Symbol | None = None
    signature: str | None = None
    doc: str | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Symbol):
            return NotImplemented
        return self.pos == other.pos

    def __hash__(self) -> int:
        return hash(self.pos)

    def __repr__(self) -> str:
        return f"Symbol({self.kind.value} {self.name} @ {self.file}:{self.line}:{self.column})"

    @property
    def qualified_name(self) -> str:
        """``Type.Method`` for methods with a parent, else the bare name."""
        if self.kind == SymbolKind.METHOD and self.parent is not None:
            return f"{self.parent.name}.{self.name}"
        return self.name


def is_exported(name: str) -> bool:
    """Exported iff the first code point is upper-case."""
    return bool(name) and name[0].isupper()


@dataclass(eq=False)
class SymbolTable:
    """Per-package symbol maps."""

    package: Package
    functions: dict[str, Symbol] = field(default_factory=dict)
    types: dict[str, Symbol] = field(default_factory=dict)
    variables: dict[str, Symbol] = field(default_factory=dict)
    constants: dict[str, Symbol] = field(default_factory=dict)
    # receiver (or interface) type name -> methods in declaration order
    methods: dict[str, list[Symbol]] = field(default_factory=dict)

    def find_symbol(self, name: str) -> Symbol | None:
        """Look a name up in functions, types, variables, constants, then methods."""
        for table in (self.functions, self.types, self.variables, self.constants):
            if name in table:
                return table[name]
        for methods in self.methods.values():
            for method in methods:
                if method.name == name:
                    return method
        return None

    def all_symbols(self) -> list[Symbol]:
        out: list[Symbol] = []
        out.extend(self.functions.values())
        out.extend(self.types.values())
        out.extend(self.variables.values())
        out.extend(self.constants.values())
        for methods in self.methods.values():
            out.extend(methods)
        return out


class ModificationKind(str, Enum):
    INSERT = "insert"
    DELETE = "delete"
    REPLACE = "replace"


@dataclass(frozen=True)
class Modification:
    """Pending edit used by the re-parse helper. ``start``/``end`` are byte offsets."""

    kind: ModificationKind
    start: int
    end: int = 0
    new_text: str = ""


@dataclass(eq=False)
class File:
    """One parsed source file."""

    path: str
    content: bytes
    tree: Any
    source: SourceFile
    package: Package | None = None
    is_test: bool = False
    modifications: list[Modification] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.path.replace("\\", "/").rsplit("/", 1)[-1]

    @property
    def root(self) -> Any:
        return self.tree.root_node

    @property
    def base(self) -> int:
        return self.source.base

    def pos(self, node_or_offset: Any) -> int:
        """Workspace position of a node start (or of a byte offset)."""
        if isinstance(node_or_offset, int):
            return self.source.base + node_or_offset
        return self.source.base + node_or_offset.start_byte  # type: ignore[no-any-return]

    def offset(self, pos: int) -> int:
        return pos - self.source.base

    def contains(self, pos: int) -> bool:
        return self.source.contains(pos)

    def line_col(self, offset: int) -> tuple[int, int]:
        return self.source.line_col(offset)

    def slice(self, start: int, end: int) -> str:
        return self.content[start:end].decode("utf-8")

    def line_text(self, line: int) -> str:
        """Text of a 1-based line without its newline."""
        starts = self.source.line_starts
        if line < 1 or line > len(starts):
            return ""
        start = starts[line - 1]
        end = starts[line] - 1 if line < len(starts) else len(self.content)
        return self.content[start:end].decode("utf-8")

    def __repr__(self) -> str:
        return f"File({self.path})"


@dataclass(eq=False)
class Package:
    """All files of one directory."""

    name: str
    path: str
    import_path: str
    files: dict[str, File] = field(default_factory=dict)
    test_files: dict[str, File] = field(default_factory=dict)
    imports: list[str] = field(default_factory=list)
    symbols: SymbolTable | None = None
    type_info: TypeInfo | None = None
    types_package: Any = None

    @property
    def identifier(self) -> str:
        """Identifier used as ``Symbol.package``."""
        return self.import_path or self.path

    def all_files(self) -> list[File]:
        return [*self.files.values(), *self.test_files.values()]

    def owns(self, file: File) -> bool:
        return file.path in self.files or file.path in self.test_files or file.package is self

    def __repr__(self) -> str:
        return f"Package({self.name} {self.path})"


@dataclass(frozen=True)
class Module:
    """Module manifest record."""

    path: str
    go_mod: str = ""


@dataclass(eq=False)
class Workspace:
    """A loaded, multi-package source tree."""

    root: str
    file_set: FileSet
    module: Module | None = None
    packages: dict[str, Package] = field(default_factory=dict)
    import_to_path: dict[str, str] = field(default_factory=dict)
    dependency_graph: DependencyGraph | None = None
    allow_syntax_errors: bool = False

    def all_files(self) -> list[File]:
        out: list[File] = []
        for pkg in self.packages.values():
            out.extend(pkg.all_files())
        return out

    def find_file(self, path: str) -> File | None:
        for pkg in self.packages.values():
            if path in pkg.files:
                return pkg.files[path]
            if path in pkg.test_files:
                return pkg.test_files[path]
        return None

    def file_at(self, pos: int) -> File | None:
        for file in self.all_files():
            if file.contains(pos):
                return file
        return None

    def package_by_identifier(self, identifier: str) -> Package | None:
        if identifier in self.packages:
            return self.packages[identifier]
        path = self.import_to_path.get(identifier)
        if path is not None:
            return self.packages.get(path)
        return None


@dataclass(eq=False)
class Reference:
    """One occurrence of a symbol returned by reference queries."""

    symbol: Symbol
    pos: int
    offset: int
    file: str
    line: int
    column: int
    context: str = ""

    def __repr__(self) -> str:
        return f"Reference({self.symbol.name} @ {self.file}:{self.line}:{self.column})"
