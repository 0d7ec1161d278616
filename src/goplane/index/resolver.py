"""Symbol resolution over a loaded workspace.

The resolver owns the symbol cache, the scope analyzer and the diagnostic
engine. Reference queries run against a prebuilt ``ReferenceIndex``: the
object path is used when the target has a canonical object and the index
carries an object map; otherwise entries are filtered by name, package and
receiver type.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Any

from goplane.core.errors import RefactorError
from goplane.core.logging import get_logger
from goplane.index.cache import METHOD_SET_PREFIX, SymbolCache
from goplane.index.diagnostics import DiagnosticEngine
from goplane.index.references import IndexEntry, ReferenceIndex, build_reference_index
from goplane.index.scope import ScopeAnalyzer
from goplane.index.symbols import base_type_name, extract_symbols, interface_body
from goplane.index.typeinfo import TypedObject
from goplane.syntax.inspector import IDENTIFIER_TYPES, node_at, text
from goplane.syntax.parser import import_specs
from goplane.workspace.models import (
    File,
    Package,
    Reference,
    Symbol,
    SymbolKind,
    SymbolTable,
    Workspace,
)

log = get_logger("index.resolver")

_MAX_EMBED_DEPTH = 8


class SymbolResolver:
    """Symbol tables, method sets and reference queries for one workspace."""

    def __init__(self, workspace: Workspace, cache: SymbolCache | None = None) -> None:
        self.workspace = workspace
        self.cache = cache or SymbolCache()
        self.scopes = ScopeAnalyzer(self)
        self.diagnostics = DiagnosticEngine(self)
        self._index: ReferenceIndex | None = None
        self._index_lock = threading.Lock()

    # -- symbol tables -------------------------------------------------------

    def build_symbol_table(self, pkg: Package) -> SymbolTable:
        table = extract_symbols(pkg)
        self.cache.set_package_symbols(pkg.identifier, table)
        return table

    def build_all_symbol_tables(self) -> None:
        for pkg in self.workspace.packages.values():
            self.build_symbol_table(pkg)

    def symbol_table(self, pkg: Package) -> SymbolTable:
        """The package's table, built on first use."""
        if pkg.symbols is not None:
            return pkg.symbols
        cached = self.cache.get_package_symbols(pkg.identifier)
        if cached is not None:
            pkg.symbols = cached
            return cached
        return self.build_symbol_table(pkg)

    def update_symbol_table(self, pkg: Package, changed_files: Iterable[str]) -> SymbolTable:
        for path in changed_files:
            self.invalidate_cache_for_file(path)
        for file in pkg.all_files():
            self.scopes.invalidate(file.path)
        self.invalidate_cache_for_package(pkg.identifier)
        return self.build_symbol_table(pkg)

    # -- name resolution -----------------------------------------------------

    def resolve_symbol(self, pkg: Package, name: str) -> Symbol:
        """Look ``name`` up in a package; ``Type.Method`` selects a method.

        Raises:
            RefactorError: SYMBOL_NOT_FOUND when the table is missing, the
                name is unknown, or a bare method name is ambiguous.
        """
        cache_key = f"{pkg.identifier}:{name}"
        cached = self.cache.get_resolved_ref(cache_key)
        if cached is not None:
            return cached

        table = pkg.symbols
        if table is None:
            raise RefactorError.symbol_not_found("package symbol table not built", file=pkg.path)

        if "." in name:
            parts = name.split(".")
            if len(parts) == 2:
                type_name, method_name = parts
                for method in table.methods.get(type_name, []):
                    if method.name == method_name:
                        self.cache.set_resolved_ref(cache_key, method)
                        return method

        symbol = (
            table.functions.get(name)
            or table.types.get(name)
            or table.variables.get(name)
            or table.constants.get(name)
        )
        if symbol is None:
            receivers: list[str] = []
            for recv, methods in table.methods.items():
                for method in methods:
                    if method.name == name:
                        symbol = method
                        receivers.append(recv)
                        break
            if len(receivers) > 1:
                options = "\n  ".join(f"{recv}.{name}" for recv in receivers)
                raise RefactorError.symbol_not_found(
                    f'ambiguous method name "{name}": found on {len(receivers)} receiver types.\n'
                    f"Use Type.Method syntax to disambiguate:\n  {options}",
                    file=pkg.path,
                    name=name,
                )

        if symbol is None:
            raise RefactorError.symbol_not_found(f"symbol not found: {name}", file=pkg.path, name=name)
        self.cache.set_resolved_ref(cache_key, symbol)
        return symbol

    def find_definition(self, file_path: str, pos: int) -> Symbol:
        """Symbol denoted by the identifier at a workspace position."""
        file = self.workspace.find_file(file_path)
        if file is None:
            raise RefactorError.symbol_not_found(f"file not found: {file_path}", file=file_path)
        node = node_at(file.root, file.offset(pos))
        if node is None or node.type not in IDENTIFIER_TYPES:
            raise RefactorError.symbol_not_found("no identifier found at position", file=file_path)
        return self._resolve_identifier(file, text(node), file.pos(node))

    def _resolve_identifier(self, file: File, name: str, pos: int) -> Symbol:
        cache_key = f"{file.path}:{name}:{pos}"
        cached = self.cache.get_resolved_ref(cache_key)
        if cached is not None:
            return cached

        symbol: Symbol | None = None
        try:
            symbol = self.scopes.resolve_in_scope(file, name, pos)
        except RefactorError:
            symbol = None

        if symbol is None and file.package is not None and file.package.symbols is not None:
            try:
                symbol = self.resolve_symbol(file.package, name)
            except RefactorError:
                symbol = None

        if symbol is None:
            for pkg in self.workspace.packages.values():
                if pkg.symbols is None:
                    continue
                try:
                    candidate = self.resolve_symbol(pkg, name)
                except RefactorError:
                    continue
                if candidate.exported:
                    symbol = candidate
                    break

        if symbol is None:
            basic = RefactorError.symbol_not_found(
                f"could not resolve identifier: {name}", file=file.path, name=name
            )
            raise self.diagnostics.analyze_resolution_failure(file, name, pos, basic)
        self.cache.set_resolved_ref(cache_key, symbol)
        return symbol

    # -- reference queries ---------------------------------------------------

    def reference_index(self, max_workers: int | None = None) -> ReferenceIndex:
        """Workspace reference index, built once and reused until invalidated."""
        with self._index_lock:
            if self._index is None:
                self._index = build_reference_index(self.workspace, max_workers=max_workers)
            return self._index

    def build_reference_index(self, max_workers: int | None = None) -> ReferenceIndex:
        index = build_reference_index(self.workspace, max_workers=max_workers)
        with self._index_lock:
            self._index = index
        return index

    def find_references(self, symbol: Symbol) -> list[Reference]:
        return self.find_references_indexed(symbol, self.reference_index())

    def find_references_indexed(
        self,
        symbol: Symbol,
        index: ReferenceIndex,
        allowed_packages: Iterable[Package] | None = None,
    ) -> list[Reference]:
        """Every non-declaring reference to ``symbol``, in index order."""
        allowed = list(allowed_packages) if allowed_packages is not None else None
        target = self.canonical_object(symbol)

        refs: list[Reference] = []
        entries = index.entries(symbol.name)
        typed = target is not None and index.has_objects
        if typed:
            assert target is not None
            for obj_entry in index.object_entries(target):
                if obj_entry.pos == symbol.pos or obj_entry.is_declaration:
                    continue
                if allowed is not None and not _in_allowed(obj_entry.file, allowed):
                    continue
                refs.append(self._reference(symbol, obj_entry.file, obj_entry.pos))
            # uses the checker could not bind are matched by name
            entries = [e for e in entries if e.obj is None]

        skipped: dict[str, int] = {}
        for entry in entries:
            reason = self._skip_reason(entry, symbol, target, allowed)
            if reason is not None:
                skipped[reason] = skipped.get(reason, 0) + 1
                continue
            refs.append(self._reference(symbol, entry.file, entry.pos))
        if skipped:
            log.debug(
                "symbol_references_skipped",
                symbol=f"{symbol.package}.{symbol.name}",
                found=len(refs),
                total=len(entries),
                reasons=skipped,
            )
        return refs

    def has_non_declaration_reference(self, symbol: Symbol, index: ReferenceIndex) -> bool:
        """True as soon as one non-declaring reference is accepted."""
        target = self.canonical_object(symbol)
        entries = index.entries(symbol.name)
        if target is not None and index.has_objects:
            if any(e.pos != symbol.pos and not e.is_declaration for e in index.object_entries(target)):
                return True
            entries = [e for e in entries if e.obj is None]
        return any(self._skip_reason(e, symbol, target, None) is None for e in entries)

    def entry_in_symbol_package(self, entry: IndexEntry, symbol: Symbol) -> bool:
        """Whether an index entry could name ``symbol`` by package alone."""
        if entry.is_selector:
            return self._alias_refers_to_package(entry.package_alias, entry.file, symbol.package)
        return self._is_same_package(entry.file.package, symbol.package)

    def canonical_object(self, symbol: Symbol) -> TypedObject | None:
        """The typed object defined at the symbol's position, if type info exists."""
        pkg = self.workspace.package_by_identifier(symbol.package)
        if pkg is None or pkg.type_info is None:
            return None
        return pkg.type_info.def_at(symbol.pos)

    def _skip_reason(
        self,
        entry: IndexEntry,
        symbol: Symbol,
        target: TypedObject | None,
        allowed: list[Package] | None,
    ) -> str | None:
        if entry.pos == symbol.pos:
            return "same_position"
        if entry.is_declaration:
            return "is_declaration"
        if allowed is not None and not _in_allowed(entry.file, allowed):
            return "not_in_allowed_packages"
        if entry.obj is not None and target is not None:
            return None if entry.obj is target else "object_mismatch"
        if entry.is_selector:
            if entry.is_method_call and symbol.kind == SymbolKind.METHOD:
                if not self._is_method_call_match(entry, symbol):
                    return "method_call_no_match"
            elif not self._alias_refers_to_package(entry.package_alias, entry.file, symbol.package):
                return "import_alias_mismatch"
        elif not self._is_same_package(entry.file.package, symbol.package):
            return "package_mismatch"
        return None

    def _reference(self, symbol: Symbol, file: File, pos: int) -> Reference:
        offset = file.offset(pos)
        line, column = file.line_col(offset)
        return Reference(
            symbol=symbol,
            pos=pos,
            offset=offset,
            file=file.path,
            line=line,
            column=column,
            context=file.line_text(line).strip(),
        )

    def _alias_refers_to_package(self, alias: str, file: File, target: str) -> bool:
        for spec in import_specs(file.root):
            if spec.local_name != alias:
                continue
            if spec.path == target or self.workspace.import_to_path.get(spec.path) == target:
                return True
            pkg = self.workspace.packages.get(target)
            if pkg is not None and pkg.import_path == spec.path:
                return True
        return False

    def _is_same_package(self, file_pkg: Package | None, target: str) -> bool:
        if file_pkg is None:
            return False
        if file_pkg.path == target or (file_pkg.import_path and file_pkg.import_path == target):
            return True
        return self.workspace.package_by_identifier(target) is file_pkg

    def _is_method_call_match(self, entry: IndexEntry, method: Symbol) -> bool:
        if method.kind != SymbolKind.METHOD or not entry.is_method_call:
            return False
        receiver_type = self.scopes.get_identifier_type(entry.file, entry.receiver_name, entry.receiver_pos)
        if receiver_type is None:
            return False
        return self.method_belongs_to_type(method, receiver_type)

    # -- method sets and interfaces ------------------------------------------

    def method_belongs_to_type(self, method: Symbol, typ: Symbol) -> bool:
        """Whether ``method`` can be called on a value of ``typ``."""
        owner = method.parent
        if owner is None:
            return False
        key = f"{method.package}:{owner.name}.{method.name}:{typ.package}:{typ.name}"
        cached = self.cache.get_method_type(key)
        if cached is not None:
            return cached
        result = self._method_belongs_to_type(method, owner, typ)
        self.cache.set_method_type(key, result)
        return result

    def _method_belongs_to_type(self, method: Symbol, owner: Symbol, typ: Symbol) -> bool:
        if owner.package == typ.package and owner.name.lstrip("*") == typ.name.lstrip("*"):
            return True
        if owner.kind != SymbolKind.INTERFACE:
            return False
        try:
            if typ.kind == SymbolKind.INTERFACE:
                candidates = self.get_interface_methods(typ)
            else:
                candidates = self.resolve_method_set(typ)
        except RefactorError:
            return False
        return any(m.name == method.name and m.package == method.package for m in candidates)

    def resolve_method_set(self, symbol: Symbol) -> list[Symbol]:
        """Direct methods plus methods promoted from embedded fields."""
        return self._method_set(symbol, frozenset())

    def _method_set(self, symbol: Symbol, seen: frozenset[int]) -> list[Symbol]:
        if symbol.kind != SymbolKind.TYPE:
            raise RefactorError.invalid_operation(
                "can only resolve method set for types", file=symbol.file
            )
        key = f"{METHOD_SET_PREFIX}{symbol.package}:{symbol.name}"
        cached = self.cache.get_method_set(key)
        if cached is not None:
            return cached

        pkg = self.workspace.package_by_identifier(symbol.package)
        if pkg is None:
            return []
        table = self.symbol_table(pkg)
        methods = list(table.methods.get(symbol.name, []))
        methods.extend(self._promoted_methods(symbol, seen | {symbol.pos}))
        self.cache.set_method_set(key, methods)
        return methods

    def find_promoted_methods(self, symbol: Symbol) -> list[Symbol]:
        return self._promoted_methods(symbol, frozenset({symbol.pos}))

    def _promoted_methods(self, symbol: Symbol, seen: frozenset[int]) -> list[Symbol]:
        promoted: list[Symbol] = []
        if len(seen) > _MAX_EMBED_DEPTH:
            return promoted
        for embedded in self.resolve_embedded_fields(symbol):
            if embedded.pos in seen:
                continue
            try:
                if embedded.kind == SymbolKind.INTERFACE:
                    candidates = self.get_interface_methods(embedded)
                else:
                    candidates = self._method_set(embedded, seen)
            except RefactorError:
                continue
            for method in candidates:
                if method.exported or method.package == symbol.package:
                    promoted.append(method)
        return promoted

    def resolve_embedded_fields(self, symbol: Symbol) -> list[Symbol]:
        """Type symbols of the anonymous fields of a struct type."""
        if symbol.kind != SymbolKind.TYPE:
            raise RefactorError.invalid_operation(
                "can only resolve embedded fields for types", file=symbol.file
            )
        file = self.workspace.find_file(symbol.file)
        if file is None:
            raise RefactorError.symbol_not_found(
                "could not find file containing symbol", file=symbol.file
            )
        spec = _declaring_spec(file, symbol)
        if spec is None:
            return []
        body = spec.child_by_field_name("type")
        if body is None or body.type != "struct_type":
            return []

        embedded: list[Symbol] = []
        for decl_list in body.named_children:
            if decl_list.type != "field_declaration_list":
                continue
            for decl in decl_list.named_children:
                if decl.type != "field_declaration" or decl.child_by_field_name("name") is not None:
                    continue
                resolved = self._resolve_field_type(decl.child_by_field_name("type"), file)
                if resolved is not None:
                    embedded.append(resolved)
        return embedded

    def _resolve_field_type(self, type_node: Any, file: File) -> Symbol | None:
        if type_node is None:
            return None
        if type_node.type == "qualified_type":
            alias = text(type_node.child_by_field_name("package"))
            binding = self.scopes.import_binding(file, alias)
            if binding is None:
                return None
            pkg = self.workspace.package_by_identifier(binding.package)
            name = text(type_node.child_by_field_name("name"))
        else:
            pkg = file.package
            name = base_type_name(type_node)
        if pkg is None or not name:
            return None
        self.symbol_table(pkg)
        try:
            return self.resolve_symbol(pkg, name)
        except RefactorError:
            return None

    def get_interface_methods(self, iface: Symbol) -> list[Symbol]:
        """Declared methods of an interface plus those of embedded interfaces."""
        return self._interface_methods(iface, frozenset())

    def _interface_methods(self, iface: Symbol, seen: frozenset[int]) -> list[Symbol]:
        file = self.workspace.find_file(iface.file)
        if file is None:
            if iface.file.endswith("_test.go"):
                return []
            raise RefactorError.symbol_not_found(
                "could not find file containing interface", file=iface.file
            )
        spec = _declaring_spec(file, iface)
        body = interface_body(spec) if spec is not None else None
        if body is None:
            return []

        pkg = self.workspace.package_by_identifier(iface.package)
        table = self.symbol_table(pkg) if pkg is not None else None
        declared = {m.pos: m for m in table.methods.get(iface.name, [])} if table else {}

        methods: list[Symbol] = []
        seen = seen | {iface.pos}
        for child in body.named_children:
            if child.type in ("method_elem", "method_spec"):
                name = child.child_by_field_name("name")
                if name is None:
                    continue
                known = declared.get(file.pos(name))
                if known is not None:
                    methods.append(known)
            elif child.type in ("type_elem", "interface_type_name", "constraint_elem"):
                embedded = self._embedded_interface(child, file)
                if embedded is not None and embedded.pos not in seen:
                    methods.extend(self._interface_methods(embedded, seen))
        return methods

    def _embedded_interface(self, elem: Any, file: File) -> Symbol | None:
        target = elem
        while target is not None and target.type not in ("type_identifier", "qualified_type"):
            named = [c for c in target.named_children if c.type != "comment"]
            if len(named) != 1:
                return None
            target = named[0]
        resolved = self._resolve_field_type(target, file)
        if resolved is None or resolved.kind != SymbolKind.INTERFACE:
            return None
        return resolved

    def find_interface_implementations(self, iface: Symbol) -> list[Symbol]:
        """Types whose method set name-matches every interface method."""
        if iface.kind != SymbolKind.INTERFACE:
            raise RefactorError.invalid_operation(
                "can only find implementations for interfaces", file=iface.file
            )
        wanted = self.get_interface_methods(iface)
        found: list[Symbol] = []
        checked = 0
        for pkg in self.workspace.packages.values():
            for typ in self.symbol_table(pkg).types.values():
                if typ.kind != SymbolKind.TYPE:
                    continue
                checked += 1
                names = {m.name for m in self.resolve_method_set(typ)}
                if all(m.name in names for m in wanted):
                    found.append(typ)
        log.debug(
            "interface_implementations_found",
            interface=iface.name,
            checked_types=checked,
            found=len(found),
        )
        return found

    def check_interface_compliance(self, typ: Symbol, iface: Symbol) -> tuple[bool, list[str]]:
        """``(compliant, missing method names)``."""
        if iface.kind != SymbolKind.INTERFACE:
            return False, ["target is not an interface"]
        try:
            wanted = self.get_interface_methods(iface)
        except RefactorError:
            return False, ["could not get interface methods"]
        try:
            have = {m.name for m in self.resolve_method_set(typ)}
        except RefactorError:
            return False, ["could not get type methods"]
        missing = [m.name for m in wanted if m.name not in have]
        return not missing, missing

    # -- invalidation --------------------------------------------------------

    def invalidate_cache_for_package(self, package: str) -> None:
        self.cache.invalidate_package(package)
        self._drop_index()

    def invalidate_cache_for_file(self, path: str) -> None:
        self.cache.invalidate_file(path)
        self.scopes.invalidate(path)
        self._drop_index()

    def _drop_index(self) -> None:
        with self._index_lock:
            self._index = None


def _in_allowed(file: File, allowed: list[Package]) -> bool:
    return any(pkg.owns(file) for pkg in allowed)


def _declaring_spec(file: File, symbol: Symbol) -> Any:
    """The type_spec whose name sits at the symbol's position."""
    node = node_at(file.root, file.offset(symbol.pos))
    spec = node.parent if node is not None else None
    if spec is None or spec.type not in ("type_spec", "type_alias"):
        return None
    return spec
