"""Diagnostics for failed resolutions.

Wraps a resolution failure with the scope it happened in, the names that
were visible there and "did you mean" suggestions computed by edit
distance. The original error kind is preserved so callers can still branch
on ``code``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from goplane.core.errors import ErrorCode, RefactorError
from goplane.index.scope import ScopeKind
from goplane.syntax.parser import import_specs
from goplane.workspace.models import File, Symbol, SymbolKind

if TYPE_CHECKING:
    from goplane.index.resolver import SymbolResolver

MAX_SIMILAR = 5
MAX_EDIT_DISTANCE = 2

COMMON_STDLIB = (
    "fmt",
    "os",
    "io",
    "net",
    "http",
    "json",
    "time",
    "strings",
    "strconv",
    "context",
    "sync",
    "errors",
    "log",
    "path",
    "filepath",
    "bufio",
)


@dataclass
class ResolutionContext:
    """Where a resolution failed and what was visible there."""

    scope_kind: ScopeKind | None = None
    available_symbols: list[str] = field(default_factory=list)
    nearby_symbols: list[str] = field(default_factory=list)
    imported_packages: list[str] = field(default_factory=list)
    parent_function: str = ""
    line: int = 0
    column: int = 0


@dataclass(frozen=True, slots=True)
class ResolutionError(RefactorError):
    """A RefactorError enriched with suggestions and context."""

    suggestions: list[str] = field(default_factory=list)
    context: ResolutionContext | None = None
    similar: list[Symbol] = field(default_factory=list)

    def format_error(self) -> str:
        lines = [RefactorError.__str__(self)]
        if self.context is not None:
            lines.append(f"  Scope: {self.context.scope_kind}")
            if self.context.parent_function:
                lines.append(f"  In function: {self.context.parent_function}")
        if self.suggestions:
            lines.append("  Suggestions:")
            lines.extend(f"    • {s}" for s in self.suggestions)
        if self.similar:
            lines.append("  Similar symbols found:")
            lines.extend(f"    • {s.name} ({s.kind}) in {s.package}" for s in self.similar)
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.format_error()


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance."""
    if not a:
        return len(b)
    if not b:
        return len(a)
    prev = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        cur = [i]
        for j, cb in enumerate(b, 1):
            cost = 0 if ca == cb else 1
            cur.append(min(prev[j] + 1, cur[j - 1] + 1, prev[j - 1] + cost))
        prev = cur
    return prev[-1]


def is_similar_name(a: str, b: str) -> bool:
    return edit_distance(a.lower(), b.lower()) <= MAX_EDIT_DISTANCE


def _dedupe_sorted(items: list[str]) -> list[str]:
    return sorted(dict.fromkeys(items))


class DiagnosticEngine:
    def __init__(self, resolver: SymbolResolver) -> None:
        self._resolver = resolver
        self._ws = resolver.workspace

    def analyze_resolution_failure(
        self, file: File, name: str, pos: int, original: BaseException | None = None
    ) -> ResolutionError:
        line, column = file.line_col(file.offset(pos))
        context = self._build_context(file, pos)
        return ResolutionError(
            code=ErrorCode.SYMBOL_NOT_FOUND,
            message=f"symbol '{name}' not found",
            details={"name": name},
            file=file.path,
            line=line,
            column=column,
            cause=original,
            suggestions=self._suggestions(name, context),
            context=context,
            similar=self._similar_symbols(name, file),
        )

    def analyze_type_error(self, symbol: Symbol, expected: SymbolKind) -> ResolutionError:
        suggestions = [f"Expected {expected}, but '{symbol.name}' is a {symbol.kind}"]
        for pkg in self._ws.packages.values():
            if pkg.symbols is None:
                continue
            table = pkg.symbols
            alt = (
                table.functions.get(symbol.name)
                or table.types.get(symbol.name)
                or table.variables.get(symbol.name)
                or table.constants.get(symbol.name)
            )
            if alt is None or alt == symbol or alt.kind != expected:
                continue
            if alt.package != symbol.package:
                suggestions.append(f"Did you mean '{alt.name}' from package '{alt.package}'?")
            else:
                suggestions.append(f"There is a {expected} named '{alt.name}' in the same package")
        return ResolutionError(
            code=ErrorCode.INVALID_OPERATION,
            message=f"symbol '{symbol.name}' has wrong type",
            file=symbol.file,
            suggestions=suggestions,
        )

    def analyze_visibility_error(self, symbol: Symbol, accessing_package: str) -> ResolutionError:
        suggestions = [f"Symbol '{symbol.name}' is not exported from package '{symbol.package}'"]
        if symbol.package == accessing_package:
            suggestions.append(
                "This symbol should be accessible within the same package - this might be a scoping issue"
            )
        else:
            exported = symbol.name[:1].upper() + symbol.name[1:]
            if exported != symbol.name:
                suggestions.append(
                    f"To make it accessible, rename it to '{exported}' (capitalize first letter)"
                )
            pkg = self._ws.package_by_identifier(symbol.package)
            if pkg is not None and pkg.symbols is not None:
                for name, sym in pkg.symbols.functions.items():
                    if sym.exported and is_similar_name(name, symbol.name):
                        suggestions.append(f"Did you mean the exported function '{name}'?")
                for name, sym in pkg.symbols.types.items():
                    if sym.exported and is_similar_name(name, symbol.name):
                        suggestions.append(f"Did you mean the exported type '{name}'?")
        return ResolutionError(
            code=ErrorCode.VISIBILITY_VIOLATION,
            message=f"cannot access unexported symbol '{symbol.name}'",
            file=symbol.file,
            suggestions=suggestions,
        )

    def analyze_import_error(self, package_path: str, file: File) -> ResolutionError:
        suggestions = [f"Package '{package_path}' not found"]
        for existing in self._ws.packages:
            if is_similar_name(existing, package_path):
                suggestions.append(f"Did you mean '{existing}'?")
        for import_path in self._ws.import_to_path:
            if is_similar_name(import_path, package_path):
                suggestions.append(f"Did you mean '{import_path}'?")
        for std in COMMON_STDLIB:
            if is_similar_name(std, package_path):
                suggestions.append(f"Did you mean the standard library package '{std}'?")
        return ResolutionError(
            code=ErrorCode.SYMBOL_NOT_FOUND,
            message=f"package '{package_path}' not found",
            file=file.path,
            suggestions=suggestions,
        )

    # -- helpers -------------------------------------------------------------

    def _build_context(self, file: File, pos: int) -> ResolutionContext:
        line, column = file.line_col(file.offset(pos))
        context = ResolutionContext(line=line, column=column)
        try:
            scope = self._resolver.scopes.get_scope_at(file, pos)
        except RefactorError:
            scope = None
        if scope is not None:
            context.scope_kind = scope.kind
            cur = scope
            while cur is not None:
                context.available_symbols.extend(cur.symbols)
                cur = cur.parent
            context.parent_function = scope.function_name()
        context.imported_packages = [spec.path for spec in import_specs(file.root)]
        if file.package is not None and file.package.symbols is not None:
            table = file.package.symbols
            for group in (table.functions, table.types, table.variables, table.constants):
                context.nearby_symbols.extend(group)
        return context

    def _suggestions(self, name: str, context: ResolutionContext) -> list[str]:
        out: list[str] = []
        for candidate in [*context.available_symbols, *context.nearby_symbols]:
            if is_similar_name(candidate, name):
                out.append(f"Did you mean '{candidate}'?")

        parts = name.split(".")
        if len(parts) == 2:
            pkg_name, sym_name = parts
            out.append(f"If '{pkg_name}' is a package, make sure it's imported")
            for pkg in self._ws.packages.values():
                if pkg.symbols is None:
                    continue
                if sym_name in pkg.symbols.functions:
                    out.append(f"Function '{sym_name}' exists in package '{pkg.path}'")
                if sym_name in pkg.symbols.types:
                    out.append(f"Type '{sym_name}' exists in package '{pkg.path}'")

        if context.scope_kind == ScopeKind.FUNCTION:
            out.append("Check function parameters and local variables")
            if context.parent_function:
                out.append(f"This is inside function '{context.parent_function}'")
        elif context.scope_kind == ScopeKind.PACKAGE:
            out.append("Check package-level declarations and imports")
        elif context.scope_kind == ScopeKind.BLOCK:
            out.append("Check local variable declarations in this block")

        if context.imported_packages:
            out.append("Available packages: " + ", ".join(context.imported_packages))
        return _dedupe_sorted(out)

    def _similar_symbols(self, name: str, file: File) -> list[Symbol]:
        if file.package is None or file.package.symbols is None:
            return []
        table = file.package.symbols
        similar: list[Symbol] = []
        for group in (table.functions, table.types, table.variables, table.constants):
            similar.extend(sym for sym_name, sym in group.items() if is_similar_name(sym_name, name))
        return similar[:MAX_SIMILAR]
