"""Unused symbol detection on top of the workspace reference index.

A symbol is unused when the index yields no reference to it other than
declarations. Exported symbols are skipped unless ``include_exported`` is
set, since callers outside the workspace may use them. Methods whose name
appears in any interface are skipped too: with name-only interface
matching there is no way to tell whether such a method satisfies one.
"""

from __future__ import annotations

from dataclasses import dataclass

from goplane.core.errors import RefactorError
from goplane.core.logging import get_logger
from goplane.index.references import ReferenceIndex
from goplane.index.resolver import SymbolResolver
from goplane.workspace.models import Package, Symbol, SymbolKind, Workspace

log = get_logger("analysis.unused")

NO_REFERENCES = "No references found"
ONLY_DECLARATIONS = "Only referenced in declarations"

ENTRY_POINTS = frozenset({"main", "init"})
TEST_PREFIXES = ("Test", "Benchmark", "Example", "Fuzz")

COMMON_INTERFACE_METHODS = frozenset(
    {
        "String",
        "Error",
        "Read",
        "Write",
        "Close",
        "Len",
        "Less",
        "Swap",
        "MarshalJSON",
        "UnmarshalJSON",
        "MarshalBinary",
        "UnmarshalBinary",
        "ServeHTTP",
        "RoundTrip",
    }
)


@dataclass
class UnusedSymbol:
    symbol: Symbol
    safe_to_delete: bool  # unexported, so nothing outside the workspace can use it
    reason: str

    @property
    def file(self) -> str:
        return self.symbol.file

    @property
    def line(self) -> int:
        return self.symbol.line

    @property
    def column(self) -> int:
        return self.symbol.column


def is_test_function(symbol: Symbol) -> bool:
    if symbol.kind != SymbolKind.FUNCTION:
        return False
    if symbol.file.endswith("_test.go"):
        return True
    return symbol.name.startswith(TEST_PREFIXES)


def format_unused_symbol(unused: UnusedSymbol) -> str:
    s = unused.symbol
    return f"{s.kind} {s.name} ({s.file}:{s.line}:{s.column}) - {unused.reason}"


class UnusedAnalyzer:
    def __init__(
        self,
        workspace: Workspace,
        resolver: SymbolResolver | None = None,
        include_exported: bool = False,
        max_workers: int | None = None,
    ) -> None:
        self.workspace = workspace
        self.resolver = resolver or SymbolResolver(workspace)
        self.include_exported = include_exported
        self.max_workers = max_workers

    def find_unused_symbols(self) -> list[UnusedSymbol]:
        for pkg in self.workspace.packages.values():
            self.resolver.symbol_table(pkg)
        index = self.resolver.build_reference_index(max_workers=self.max_workers)
        interface_methods = self.collect_interface_method_names()

        unused: list[UnusedSymbol] = []
        for pkg in self.workspace.packages.values():
            unused.extend(self._unused_in_package(pkg, index, interface_methods))
        log.info(
            "unused_symbols_found",
            count=len(unused),
            include_exported=self.include_exported,
        )
        return unused

    def unused_unexported_symbols(self) -> list[UnusedSymbol]:
        """Only the results that are safe to delete."""
        return [u for u in self.find_unused_symbols() if u.safe_to_delete and not u.symbol.exported]

    def collect_interface_method_names(self) -> set[str]:
        """Method names declared by any workspace interface, plus well-known ones."""
        names = set(COMMON_INTERFACE_METHODS)
        for pkg in self.workspace.packages.values():
            if pkg.symbols is None:
                continue
            for symbol in pkg.symbols.types.values():
                if symbol.kind != SymbolKind.INTERFACE:
                    continue
                try:
                    methods = self.resolver.get_interface_methods(symbol)
                except RefactorError:
                    continue
                names.update(m.name for m in methods)
        return names

    def _unused_in_package(
        self, pkg: Package, index: ReferenceIndex, interface_methods: set[str]
    ) -> list[UnusedSymbol]:
        table = pkg.symbols
        if table is None:
            return []
        found = []
        for group in (table.functions, table.types, table.variables, table.constants):
            for symbol in group.values():
                result = self.check_symbol(symbol, index)
                if result is not None:
                    found.append(result)
        for methods in table.methods.values():
            for method in methods:
                if method.name in interface_methods:
                    continue
                result = self.check_symbol(method, index)
                if result is not None:
                    found.append(result)
        return found

    def check_symbol(self, symbol: Symbol, index: ReferenceIndex) -> UnusedSymbol | None:
        """An ``UnusedSymbol`` record, or None when the symbol is used or exempt."""
        if symbol.exported and not self.include_exported:
            return None
        if symbol.name in ENTRY_POINTS or is_test_function(symbol):
            return None
        if self.resolver.has_non_declaration_reference(symbol, index):
            return None

        mentioned = any(
            entry.pos != symbol.pos and self.resolver.entry_in_symbol_package(entry, symbol)
            for entry in index.entries(symbol.name)
        )
        return UnusedSymbol(
            symbol=symbol,
            safe_to_delete=not symbol.exported,
            reason=ONLY_DECLARATIONS if mentioned else NO_REFERENCES,
        )
