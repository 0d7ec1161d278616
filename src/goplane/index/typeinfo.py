"""Type information: canonical objects plus Defs/Uses maps.

``TypeInfo`` mirrors the output of a real type checker: every defining
identifier maps to the object it declares (``defs``) and every other
identifier to the object it denotes (``uses``). Objects compare by identity.

``TypeChecker`` is a best-effort producer built on the scope analyzer. It
binds plain identifiers through the scope chain, ``alias.Name`` through the
file's imports, ``x.Name`` through the inferred type of ``x`` (method set,
interface methods, struct fields) and composite-literal keys through the
literal's struct type. Identifiers it cannot bind are left out; reference
queries then fall back to name matching for them.
"""

from __future__ import annotations

import bisect
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from goplane.core.logging import get_logger
from goplane.index.scope import UNIVERSE
from goplane.syntax.inspector import Cursor, Inspector, text
from goplane.workspace.models import File, Symbol, SymbolKind, Workspace

if TYPE_CHECKING:
    from goplane.index.resolver import SymbolResolver

log = get_logger("index.typeinfo")


class ObjectKind(str, Enum):
    FUNC = "func"
    METHOD = "method"
    TYPE = "type"
    VAR = "var"
    CONST = "const"
    FIELD = "field"
    PACKAGE = "package"
    BUILTIN = "builtin"


_KIND_OF_SYMBOL = {
    SymbolKind.FUNCTION: ObjectKind.FUNC,
    SymbolKind.METHOD: ObjectKind.METHOD,
    SymbolKind.TYPE: ObjectKind.TYPE,
    SymbolKind.INTERFACE: ObjectKind.TYPE,
    SymbolKind.VARIABLE: ObjectKind.VAR,
    SymbolKind.CONSTANT: ObjectKind.CONST,
    SymbolKind.PACKAGE: ObjectKind.PACKAGE,
}


@dataclass(eq=False)
class TypedObject:
    """Canonical object. Two occurrences denote the same entity iff they share it."""

    name: str
    kind: ObjectKind
    package: str
    pos: int
    parent: TypedObject | None = None

    def __repr__(self) -> str:
        return f"TypedObject({self.kind.value} {self.name} @ {self.pos})"


@dataclass(frozen=True, slots=True)
class Ident:
    name: str
    pos: int


@dataclass
class TypeInfo:
    """Defs and Uses of one package."""

    defs: dict[Ident, TypedObject] = field(default_factory=dict)
    uses: dict[Ident, TypedObject] = field(default_factory=dict)
    _by_pos: dict[int, TypedObject] | None = field(default=None, repr=False)
    _ordered: list[tuple[int, Ident, TypedObject, bool]] | None = field(default=None, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def def_at(self, pos: int) -> TypedObject | None:
        """Object defined by the identifier at ``pos``."""
        with self._lock:
            if self._by_pos is None:
                self._by_pos = {ident.pos: obj for ident, obj in self.defs.items()}
            return self._by_pos.get(pos)

    def entries_in(self, file: File) -> list[tuple[Ident, TypedObject, bool]]:
        """``(ident, object, is_definition)`` for the identifiers of one file, in source order."""
        with self._lock:
            if self._ordered is None:
                rows = [(i.pos, i, o, True) for i, o in self.defs.items()]
                rows.extend((i.pos, i, o, False) for i, o in self.uses.items())
                rows.sort(key=lambda r: (r[0], not r[3]))
                self._ordered = rows
            ordered = self._ordered
        lo = bisect.bisect_left(ordered, file.base, key=lambda r: r[0])
        hi = bisect.bisect_right(ordered, file.base + file.source.size, key=lambda r: r[0])
        return [(ident, obj, is_def) for _, ident, obj, is_def in ordered[lo:hi]]

    def object_of(self, ident: Ident) -> TypedObject | None:
        return self.defs.get(ident) or self.uses.get(ident)


# name-field parents whose identifier declares something
_DECLARING_PARENTS = frozenset(
    {
        "function_declaration",
        "method_declaration",
        "type_spec",
        "type_alias",
        "var_spec",
        "const_spec",
        "field_declaration",
        "method_elem",
        "method_spec",
    }
)


class TypeChecker:
    """Populates ``Package.type_info`` for every package of a workspace."""

    def __init__(self, workspace: Workspace, resolver: SymbolResolver | None = None) -> None:
        if resolver is None:
            from goplane.index.resolver import SymbolResolver

            resolver = SymbolResolver(workspace)
        self._ws = workspace
        self._resolver = resolver
        self._scopes = resolver.scopes
        self._objects: dict[int, TypedObject] = {}
        # (struct type position, field name) -> field object
        self._fields: dict[tuple[int, str], TypedObject] = {}

    def check(self) -> dict[str, TypeInfo]:
        """Type-check every package; returns the TypeInfo per package path."""
        tables = {path: self._resolver.symbol_table(pkg) for path, pkg in self._ws.packages.items()}
        for table in tables.values():
            for sym in table.all_symbols():
                self._object_for(sym)
        for pkg in self._ws.packages.values():
            for file in pkg.all_files():
                self._collect_fields(file)

        result: dict[str, TypeInfo] = {}
        for path, pkg in self._ws.packages.items():
            info = TypeInfo()
            for file in pkg.all_files():
                self._check_file(file, info)
            pkg.type_info = info
            result[path] = info
            log.debug("package_checked", package=pkg.identifier, defs=len(info.defs), uses=len(info.uses))
        log.info("type_check_done", packages=len(result), objects=len(self._objects))
        return result

    # -- objects -------------------------------------------------------------

    def _object_for(self, sym: Symbol) -> TypedObject:
        obj = self._objects.get(sym.pos)
        if obj is None:
            kind = ObjectKind.BUILTIN if sym.package == "builtin" else _KIND_OF_SYMBOL[sym.kind]
            parent = self._object_for(sym.parent) if sym.parent is not None else None
            obj = TypedObject(name=sym.name, kind=kind, package=sym.package, pos=sym.pos, parent=parent)
            self._objects[sym.pos] = obj
        return obj

    def _new_object(self, file: File, node: Any, kind: ObjectKind) -> TypedObject:
        pos = file.pos(node)
        obj = self._objects.get(pos)
        if obj is None:
            pkg_id = file.package.identifier if file.package is not None else ""
            obj = TypedObject(name=text(node), kind=kind, package=pkg_id, pos=pos)
            self._objects[pos] = obj
        return obj

    def _collect_fields(self, file: File) -> None:
        for cursor in Inspector(file.root).preorder("type_spec"):
            spec = cursor.node
            name = spec.child_by_field_name("name")
            body = spec.child_by_field_name("type")
            if name is None or body is None or body.type != "struct_type":
                continue
            owner = self._new_object(file, name, ObjectKind.TYPE)
            for decl_list in body.named_children:
                if decl_list.type != "field_declaration_list":
                    continue
                for decl in decl_list.named_children:
                    if decl.type != "field_declaration":
                        continue
                    for fname in decl.children_by_field_name("name"):
                        obj = self._new_object(file, fname, ObjectKind.FIELD)
                        obj.parent = owner
                        self._fields[(owner.pos, text(fname))] = obj

    # -- per file ------------------------------------------------------------

    def _check_file(self, file: File, info: TypeInfo) -> None:
        self._scopes.build_scope_tree(file)
        for cursor in Inspector(file.root).preorder(
            "identifier", "type_identifier", "field_identifier", "package_identifier"
        ):
            node = cursor.node
            name = text(node)
            if name == "_":
                continue
            ident = Ident(name=name, pos=file.pos(node))
            parent = cursor.parent.node if cursor.parent is not None else None
            if parent is None or parent.type == "package_clause":
                continue

            if cursor.field == "name" and parent.type in _DECLARING_PARENTS:
                info.defs[ident] = self._declared_object(file, node, parent)
                continue
            if parent.type == "import_spec":
                binding = self._scopes.import_binding(file, name)
                if binding is not None:
                    info.defs[ident] = self._object_for(binding)
                continue

            obj = self._bind_use(file, cursor, parent)
            if obj is None:
                continue
            if obj.pos == ident.pos:
                info.defs[ident] = obj
            else:
                info.uses[ident] = obj

    def _declared_object(self, file: File, node: Any, parent: Any) -> TypedObject:
        pos = file.pos(node)
        obj = self._objects.get(pos)
        if obj is not None:
            return obj
        kind = {
            "function_declaration": ObjectKind.FUNC,
            "method_declaration": ObjectKind.METHOD,
            "method_elem": ObjectKind.METHOD,
            "method_spec": ObjectKind.METHOD,
            "var_spec": ObjectKind.VAR,
            "const_spec": ObjectKind.CONST,
            "field_declaration": ObjectKind.FIELD,
        }.get(parent.type, ObjectKind.TYPE)
        return self._new_object(file, node, kind)

    def _bind_use(self, file: File, cursor: Cursor, parent: Any) -> TypedObject | None:
        node = cursor.node
        name = text(node)
        pos = file.pos(node)

        if parent.type == "selector_expression" and cursor.field == "field":
            return self._bind_selector(file, parent, name)
        if parent.type == "qualified_type":
            if cursor.field == "package":
                binding = self._scopes.import_binding(file, name)
                return self._object_for(binding) if binding is not None else None
            return self._bind_qualified(file, parent.child_by_field_name("package"), name)
        key_owner = _composite_key_owner(cursor)
        if key_owner is not None:
            return self._bind_composite_key(file, key_owner, name)
        if node.type == "field_identifier":
            return None

        sym = self._scopes.lookup(file, name, pos)
        if sym is None:
            sym = UNIVERSE.get(name)
        if sym is None:
            return None
        return self._object_for(sym)

    def _bind_qualified(self, file: File, alias: Any, name: str) -> TypedObject | None:
        if alias is None:
            return None
        binding = self._scopes.import_binding(file, text(alias))
        if binding is None:
            return None
        sym = self._scopes.resolve_in_package(name, binding.package)
        return self._object_for(sym) if sym is not None else None

    def _bind_selector(self, file: File, selector: Any, name: str) -> TypedObject | None:
        operand = selector.child_by_field_name("operand")
        if operand is None or operand.type != "identifier":
            return None
        operand_pos = file.pos(operand)
        binding = self._scopes.lookup(file, text(operand), operand_pos)
        if binding is not None and binding.kind == SymbolKind.PACKAGE:
            sym = self._scopes.resolve_in_package(name, binding.package)
            return self._object_for(sym) if sym is not None else None

        typ = self._scopes.get_identifier_type(file, text(operand), operand_pos)
        if typ is None or typ.package == "builtin":
            return None
        return self._member_of(typ, name, depth=0)

    def _member_of(self, typ: Symbol, name: str, depth: int) -> TypedObject | None:
        """Method or (possibly promoted) field ``name`` of a named type."""
        if depth > 4:
            return None
        if typ.kind == SymbolKind.INTERFACE:
            methods = self._resolver.get_interface_methods(typ)
        elif typ.kind == SymbolKind.TYPE:
            methods = self._resolver.resolve_method_set(typ)
        else:
            return None
        for method in methods:
            if method.name == name:
                return self._object_for(method)
        if typ.kind == SymbolKind.INTERFACE:
            return None

        found = self._fields.get((typ.pos, name))
        if found is not None:
            return found
        for embedded in self._resolver.resolve_embedded_fields(typ):
            if embedded.name == name:
                continue
            member = self._member_of(embedded, name, depth + 1)
            if member is not None:
                return member
        return None

    def _bind_composite_key(self, file: File, literal: Any, name: str) -> TypedObject | None:
        type_node = literal.child_by_field_name("type")
        if type_node is None or type_node.type in ("map_type", "slice_type", "array_type"):
            return None
        typ = self._scopes.resolve_type_expression(file, type_node)
        if typ is None or typ.kind != SymbolKind.TYPE:
            return None
        return self._member_of(typ, name, depth=0)


def _composite_key_owner(cursor: Cursor) -> Any:
    """The composite literal whose struct key is this identifier, if it is one."""
    cur = cursor.parent
    if cur is not None and cur.type == "literal_element":
        cur = cur.parent if cur.field == "key" else None
    if cur is None or cur.type != "keyed_element":
        return None
    key = cur.node.child_by_field_name("key") or cur.node.named_children[0]
    if key.type == "literal_element":
        inner = key.named_children
        key = inner[0] if inner else key
    if key.start_byte != cursor.node.start_byte:
        return None
    literal_value = cur.parent
    if literal_value is None or literal_value.type != "literal_value":
        return None
    literal = literal_value.parent
    if literal is None or literal.type != "composite_literal":
        return None
    return literal.node


def check_workspace(workspace: Workspace, resolver: SymbolResolver | None = None) -> dict[str, TypeInfo]:
    """Run the type checker over a workspace and attach the results."""
    return TypeChecker(workspace, resolver).check()
