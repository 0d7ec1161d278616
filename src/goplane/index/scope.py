"""Lexical scope analysis.

Each file gets a scope tree rooted at a Package scope (the package symbol
table) whose only child is the File scope (import bindings). Function
declarations and function literals open Function scopes; if, for, switch,
type-switch and select statements, block bodies and case clauses open Block
scopes. Generic type-parameter scopes are not modelled.

Local bindings are only visible at or after their declaring position.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from goplane.core.errors import RefactorError
from goplane.core.logging import get_logger
from goplane.syntax.inspector import expressions, node_at, text
from goplane.syntax.parser import import_specs
from goplane.workspace.models import File, Package, Symbol, SymbolKind, is_exported

if TYPE_CHECKING:
    from goplane.index.resolver import SymbolResolver

log = get_logger("index.scope")


class ScopeKind(str, Enum):
    UNIVERSE = "Universe"
    PACKAGE = "Package"
    FILE = "File"
    FUNCTION = "Function"
    BLOCK = "Block"
    TYPE = "Type"

    def __str__(self) -> str:
        return self.value


BUILTIN_TYPES = (
    "any",
    "bool",
    "byte",
    "complex64",
    "complex128",
    "error",
    "float32",
    "float64",
    "int",
    "int8",
    "int16",
    "int32",
    "int64",
    "rune",
    "string",
    "uint",
    "uint8",
    "uint16",
    "uint32",
    "uint64",
    "uintptr",
)
BUILTIN_FUNCTIONS = (
    "append",
    "cap",
    "close",
    "complex",
    "copy",
    "delete",
    "imag",
    "len",
    "make",
    "new",
    "panic",
    "print",
    "println",
    "real",
    "recover",
)
BUILTIN_CONSTANTS = ("true", "false", "iota", "nil")


def _universe() -> dict[str, Symbol]:
    table: dict[str, Symbol] = {}
    # builtins have no source position; distinct negative positions keep them unequal
    next_pos = -1
    for names, kind in (
        (BUILTIN_TYPES, SymbolKind.TYPE),
        (BUILTIN_FUNCTIONS, SymbolKind.FUNCTION),
        (BUILTIN_CONSTANTS, SymbolKind.CONSTANT),
    ):
        for name in names:
            table[name] = Symbol(
                name=name,
                kind=kind,
                package="builtin",
                file="",
                pos=next_pos,
                end=next_pos,
                line=0,
                column=0,
                exported=True,
            )
            next_pos -= 1
    return table


UNIVERSE: dict[str, Symbol] = _universe()

_LOCAL_KINDS = frozenset({"FUNCTION", "BLOCK", "TYPE"})
_BLOCK_STATEMENTS = frozenset(
    {
        "if_statement",
        "for_statement",
        "expression_switch_statement",
        "type_switch_statement",
        "select_statement",
    }
)
_CASE_CLAUSES = frozenset({"expression_case", "default_case", "type_case", "communication_case"})
_FUNCTIONS = frozenset({"function_declaration", "method_declaration", "func_literal"})


@dataclass(eq=False)
class Scope:
    """One lexical scope. ``[start, end)`` in workspace positions."""

    kind: ScopeKind
    node: Any
    parent: Scope | None
    start: int
    end: int
    children: list[Scope] = field(default_factory=list)
    symbols: dict[str, Symbol] = field(default_factory=dict)

    def contains(self, pos: int) -> bool:
        return self.start <= pos < self.end

    def is_local(self) -> bool:
        return self.kind.name in _LOCAL_KINDS

    def lookup(self, name: str, pos: int) -> Symbol | None:
        """Binding for ``name`` in this scope that is visible at ``pos``."""
        sym = self.symbols.get(name)
        if sym is None:
            return None
        if self.is_local() and sym.pos > pos:
            return None
        return sym

    def add_child(self, kind: ScopeKind, node: Any, file: File) -> Scope:
        child = Scope(
            kind=kind,
            node=node,
            parent=self,
            start=file.pos(node.start_byte),
            end=file.pos(node.end_byte),
        )
        self.children.append(child)
        return child

    def walk(self) -> list[Scope]:
        """This scope and all descendants, preorder."""
        out = [self]
        for child in self.children:
            out.extend(child.walk())
        return out

    def function_name(self) -> str:
        """Name of the enclosing function declaration, if any."""
        scope: Scope | None = self
        while scope is not None:
            if scope.kind == ScopeKind.FUNCTION and scope.node is not None:
                name = scope.node.child_by_field_name("name")
                if name is not None:
                    return text(name)
            scope = scope.parent
        return ""

    def visible_names(self, pos: int) -> list[str]:
        """Names visible from this scope outward, innermost first."""
        names: list[str] = []
        scope: Scope | None = self
        while scope is not None:
            for name in scope.symbols:
                if name not in names and scope.lookup(name, pos) is not None:
                    names.append(name)
            scope = scope.parent
        return names


class ScopeAnalyzer:
    """Builds, caches and queries per-file scope trees."""

    def __init__(self, resolver: SymbolResolver) -> None:
        self._resolver = resolver
        self._workspace = resolver.workspace
        self._trees: dict[str, Scope] = {}
        self._lock = threading.Lock()

    # -- tree construction ---------------------------------------------------

    def build_scope_tree(self, file: File) -> Scope:
        with self._lock:
            cached = self._trees.get(file.path)
        if cached is not None:
            return cached

        size = file.source.size
        package_scope = Scope(
            kind=ScopeKind.PACKAGE,
            node=file.root,
            parent=None,
            start=file.base,
            end=file.base + size + 1,
        )
        if file.package is not None:
            self._add_package_symbols(package_scope, file.package)

        file_scope = Scope(
            kind=ScopeKind.FILE,
            node=file.root,
            parent=package_scope,
            start=file.base,
            end=file.base + size,
        )
        package_scope.children.append(file_scope)
        self._add_imports(file_scope, file)
        self._build_nested(file_scope, file.root, file)

        with self._lock:
            self._trees[file.path] = package_scope
        return package_scope

    def _add_package_symbols(self, scope: Scope, pkg: Package) -> None:
        table = self._resolver.symbol_table(pkg)
        for group in (table.functions, table.types, table.variables, table.constants):
            scope.symbols.update(group)

    def _add_imports(self, scope: Scope, file: File) -> None:
        for spec in import_specs(file.root):
            name = spec.local_name
            if name in ("_", "."):
                continue
            line, col = file.line_col(spec.pos_offset)
            scope.symbols[name] = Symbol(
                name=name,
                kind=SymbolKind.PACKAGE,
                package=spec.path,
                file=file.path,
                pos=file.pos(spec.pos_offset),
                end=file.pos(spec.pos_offset),
                line=line,
                column=col,
                exported=False,
            )

    def _build_nested(self, scope: Scope, node: Any, file: File) -> None:
        for child in node.named_children:
            kind = child.type
            if kind in _FUNCTIONS:
                self._build_function(scope, child, file)
            elif kind in _BLOCK_STATEMENTS:
                block = scope.add_child(ScopeKind.BLOCK, child, file)
                if kind == "type_switch_statement":
                    alias = child.child_by_field_name("alias")
                    for ident in expressions(alias):
                        self._bind(block, ident, file)
                self._build_nested(block, child, file)
            elif kind == "block" or kind in _CASE_CLAUSES:
                inner = scope.add_child(ScopeKind.BLOCK, child, file)
                self._build_nested(inner, child, file)
            elif kind == "range_clause":
                if _has_token(child, ":="):
                    for ident in expressions(child.child_by_field_name("left")):
                        self._bind(scope, ident, file)
                self._build_nested(scope, child, file)
            elif kind == "short_var_declaration":
                for ident in expressions(child.child_by_field_name("left")):
                    self._bind(scope, ident, file)
                self._build_nested(scope, child.child_by_field_name("right"), file)
            elif kind in ("var_declaration", "const_declaration") and scope.is_local():
                self._bind_value_decl(scope, child, file)
                self._build_nested(scope, child, file)
            elif kind == "type_declaration" and scope.is_local():
                for spec in child.named_children:
                    if spec.type in ("type_spec", "type_alias"):
                        self._bind(scope, spec.child_by_field_name("name"), file, SymbolKind.TYPE)
                self._build_nested(scope, child, file)
            else:
                self._build_nested(scope, child, file)

    def _build_function(self, scope: Scope, node: Any, file: File) -> None:
        fn = scope.add_child(ScopeKind.FUNCTION, node, file)
        for field_name in ("receiver", "parameters", "result"):
            params = node.child_by_field_name(field_name)
            if params is None or params.type != "parameter_list":
                continue
            for param in params.named_children:
                for ident in param.children_by_field_name("name"):
                    self._bind(fn, ident, file)
        body = node.child_by_field_name("body")
        if body is not None:
            # body-level bindings live in the function scope itself
            self._build_nested(fn, body, file)

    def _bind_value_decl(self, scope: Scope, decl: Any, file: File) -> None:
        from goplane.index.symbols import spec_names, value_specs

        kind = SymbolKind.CONSTANT if decl.type == "const_declaration" else SymbolKind.VARIABLE
        for spec in value_specs(decl):
            for ident in spec_names(spec):
                self._bind(scope, ident, file, kind)

    def _bind(
        self, scope: Scope, ident: Any, file: File, kind: SymbolKind = SymbolKind.VARIABLE
    ) -> None:
        if ident is None or ident.type not in ("identifier", "type_identifier"):
            return
        name = text(ident)
        if name == "_" or name in scope.symbols:
            # ``:=`` with an already-bound name reuses that variable
            return
        row, col = ident.start_point
        scope.symbols[name] = Symbol(
            name=name,
            kind=kind,
            package=file.package.identifier if file.package else "",
            file=file.path,
            pos=file.pos(ident),
            end=file.pos(ident.end_byte),
            line=row + 1,
            column=col + 1,
            exported=is_exported(name),
        )

    # -- queries -------------------------------------------------------------

    def get_scope_at(self, file: File, pos: int) -> Scope:
        root = self.build_scope_tree(file)
        scope = self._innermost(root, pos)
        if scope is None:
            raise RefactorError.symbol_not_found("no scope found at position", file=file.path)
        return scope

    @staticmethod
    def _innermost(root: Scope, pos: int) -> Scope | None:
        if not root.contains(pos):
            return None
        scope = root
        while True:
            for child in scope.children:
                if child.contains(pos):
                    scope = child
                    break
            else:
                return scope

    def lookup(self, file: File, name: str, pos: int) -> Symbol | None:
        """Walk the scope chain from ``pos`` outward."""
        scope: Scope | None = self.get_scope_at(file, pos)
        while scope is not None:
            sym = scope.lookup(name, pos)
            if sym is not None:
                return sym
            scope = scope.parent
        return None

    def resolve_in_scope(self, file: File, name: str, pos: int) -> Symbol:
        """Scope chain, then ``alias.Name`` qualified resolution, then builtins."""
        sym = self.lookup(file, name, pos)
        if sym is not None:
            return sym
        qualified = self.resolve_qualified_identifier(file, pos)
        if qualified is not None:
            return qualified
        builtin = UNIVERSE.get(name)
        if builtin is not None:
            return builtin
        line, col = file.line_col(file.offset(pos))
        raise RefactorError.symbol_not_found(
            f"identifier not found in scope: {name}", file=file.path, line=line, column=col, name=name
        )

    def resolve_qualified_identifier(self, file: File, pos: int) -> Symbol | None:
        """Resolve the selected name of ``alias.Name`` when ``alias`` is an import."""
        node = node_at(file.root, file.offset(pos))
        parent = node.parent
        if parent is None:
            return None
        if parent.type == "selector_expression":
            operand = parent.child_by_field_name("operand")
            selected = parent.child_by_field_name("field")
        elif parent.type == "qualified_type":
            operand = parent.child_by_field_name("package")
            selected = parent.child_by_field_name("name")
        else:
            return None
        if selected is None or selected.start_byte != node.start_byte or operand is None:
            return None
        if operand.type not in ("identifier", "package_identifier"):
            return None
        binding = self.lookup(file, text(operand), file.pos(operand))
        if binding is None or binding.kind != SymbolKind.PACKAGE:
            return None
        return self.resolve_in_package(text(selected), binding.package)

    def resolve_in_package(self, name: str, import_path: str) -> Symbol | None:
        pkg = self._workspace.package_by_identifier(import_path)
        if pkg is None:
            return None
        table = self._resolver.symbol_table(pkg)
        for group in (table.functions, table.types, table.variables, table.constants):
            sym = group.get(name)
            if sym is not None and sym.exported:
                return sym
        return None

    def import_binding(self, file: File, alias: str) -> Symbol | None:
        """Import binding for ``alias`` in a file's File scope."""
        root = self.build_scope_tree(file)
        return root.children[0].symbols.get(alias) if root.children else None

    # -- type inference ------------------------------------------------------

    def get_identifier_type(self, file: File, name: str, pos: int) -> Symbol | None:
        """Best-effort named type of the variable ``name`` visible at ``pos``."""
        cache = self._resolver.cache
        key = f"{file.path}:{name}:{pos}"
        cached = cache.get_identifier_type(key)
        if cached is not None:
            return cached

        binding = self.lookup(file, name, pos)
        if binding is None or binding.kind not in (SymbolKind.VARIABLE, SymbolKind.CONSTANT):
            return None
        decl_file = file if binding.file == file.path else self._workspace.find_file(binding.file)
        if decl_file is None:
            return None

        type_node = self._declared_type(decl_file, binding)
        result = self.resolve_type_expression(decl_file, type_node) if type_node is not None else None
        if result is not None:
            cache.set_identifier_type(key, result)
        return result

    def _declared_type(self, file: File, binding: Symbol) -> Any:
        ident = node_at(file.root, file.offset(binding.pos))
        node = ident.parent
        while node is not None:
            kind = node.type
            if kind in ("parameter_declaration", "variadic_parameter_declaration"):
                return None if kind.startswith("variadic") else node.child_by_field_name("type")
            if kind == "short_var_declaration":
                return self._paired_expression_type(node, ident)
            if kind in ("var_spec", "const_spec"):
                declared = node.child_by_field_name("type")
                if declared is not None:
                    return declared
                names = [n.start_byte for n in node.children_by_field_name("name")]
                values = expressions(node.child_by_field_name("value"))
                if ident.start_byte in names and names.index(ident.start_byte) < len(values):
                    return type_expression_of(values[names.index(ident.start_byte)])
                return None
            if kind in ("range_clause", "type_switch_statement", "block", "source_file"):
                return None
            node = node.parent
        return None

    def _paired_expression_type(self, decl: Any, ident: Any) -> Any:
        left = expressions(decl.child_by_field_name("left"))
        right = expressions(decl.child_by_field_name("right"))
        for i, lhs in enumerate(left):
            if lhs.start_byte == ident.start_byte and i < len(right):
                return type_expression_of(right[i])
        return None

    def resolve_type_expression(self, file: File, node: Any) -> Symbol | None:
        """Type symbol named by a type expression (pointers unwrapped)."""
        while node is not None and node.type in (
            "pointer_type",
            "parenthesized_type",
            "generic_type",
            "unary_expression",
        ):
            if node.type == "generic_type":
                node = node.child_by_field_name("type")
            elif node.type == "unary_expression":
                node = node.child_by_field_name("operand")
            else:
                node = next((c for c in node.named_children if c.type != "comment"), None)
        if node is None:
            return None

        if node.type in ("type_identifier", "identifier"):
            name = text(node)
            builtin = UNIVERSE.get(name)
            if builtin is not None and builtin.kind == SymbolKind.TYPE:
                return builtin
            if file.package is None:
                return None
            return self._local_type(file.package, name)

        if node.type in ("qualified_type", "selector_expression"):
            if node.type == "qualified_type":
                alias = node.child_by_field_name("package")
                name_node = node.child_by_field_name("name")
            else:
                alias = node.child_by_field_name("operand")
                name_node = node.child_by_field_name("field")
            if alias is None or name_node is None:
                return None
            binding = self.import_binding(file, text(alias))
            if binding is None:
                return None
            pkg = self._workspace.package_by_identifier(binding.package)
            if pkg is None:
                return None
            return self._local_type(pkg, text(name_node))
        return None

    def _local_type(self, pkg: Package, name: str) -> Symbol | None:
        table = self._resolver.symbol_table(pkg)
        sym = table.types.get(name)
        if sym is not None:
            return sym
        fn = table.functions.get(name)
        if fn is not None:
            return self._function_result_type(fn)
        return None

    def _function_result_type(self, fn: Symbol) -> Symbol | None:
        """Single named result type of a constructor-style function."""
        file = self._workspace.find_file(fn.file)
        if file is None:
            return None
        decl = node_at(file.root, file.offset(fn.pos)).parent
        if decl is None or decl.type != "function_declaration":
            return None
        result = decl.child_by_field_name("result")
        if result is None:
            return None
        if result.type == "parameter_list":
            params = [p for p in result.named_children if p.type == "parameter_declaration"]
            if len(params) < 1:
                return None
            result = params[0].child_by_field_name("type")
        if result is None or result.type not in ("type_identifier", "pointer_type", "qualified_type"):
            return None
        return self.resolve_type_expression(file, result)

    # -- cache ---------------------------------------------------------------

    def invalidate(self, path: str) -> None:
        with self._lock:
            self._trees.pop(path, None)

    def clear(self) -> None:
        with self._lock:
            self._trees.clear()


def type_expression_of(expr: Any) -> Any:
    """Type expression an initializer reveals.

    Handles ``&T{}``, ``T{}``, ``T(x)``, ``pkg.T(x)``, ``NewT()`` and ``x.(*T)``.
    """
    if expr is None:
        return None
    kind = expr.type
    if kind == "unary_expression":
        op = expr.child_by_field_name("operator")
        if op is not None and op.type == "&":
            return type_expression_of(expr.child_by_field_name("operand"))
        return None
    if kind == "composite_literal":
        return expr.child_by_field_name("type")
    if kind == "call_expression":
        fn = expr.child_by_field_name("function")
        if fn is not None and fn.type in ("identifier", "selector_expression"):
            return fn
        return None
    if kind == "type_conversion_expression":
        return expr.child_by_field_name("type")
    if kind == "type_assertion_expression":
        return expr.child_by_field_name("type")
    if kind == "parenthesized_expression":
        inner = [c for c in expr.named_children if c.type != "comment"]
        return type_expression_of(inner[0]) if len(inner) == 1 else None
    return None


def _has_token(node: Any, token: str) -> bool:
    return any(not c.is_named and c.type == token for c in node.children)
