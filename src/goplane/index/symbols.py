"""Symbol extraction: one pass over each file's top-level declarations.

Produces the package symbol table. Symbol positions come from the name
identifier, never from the whole declaration. Methods are keyed by the bare
receiver type name; their Parent is wired in a second pass once every type
of the package is known.
"""

from __future__ import annotations

from typing import Any

from goplane.core.logging import get_logger
from goplane.syntax.inspector import text
from goplane.workspace.models import File, Package, Symbol, SymbolKind, SymbolTable, is_exported

log = get_logger("index.symbols")


def receiver_type_name(receiver: Any) -> str:
    """Bare receiver type name of a method's receiver parameter list.

    ``(s *Server)``, ``(Server)`` and ``(l *List[T])`` all give the base name.
    """
    for param in receiver.named_children:
        if param.type != "parameter_declaration":
            continue
        return base_type_name(param.child_by_field_name("type"))
    return ""


def base_type_name(type_node: Any) -> str:
    """Type name with pointers and type arguments stripped."""
    node = type_node
    while node is not None:
        if node.type == "pointer_type":
            node = _first_named(node)
        elif node.type == "generic_type":
            node = node.child_by_field_name("type")
        elif node.type == "parenthesized_type":
            node = _first_named(node)
        elif node.type == "type_identifier":
            return text(node)
        elif node.type == "qualified_type":
            return text(node.child_by_field_name("name"))
        else:
            return text(node).lstrip("*")
    return ""


def _first_named(node: Any) -> Any:
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


def function_signature(decl: Any) -> str:
    """``name(p1, p2)``: the first name of each parameter field, no types."""
    names: list[str] = []
    params = decl.child_by_field_name("parameters")
    if params is not None:
        for param in params.named_children:
            if param.type not in ("parameter_declaration", "variadic_parameter_declaration"):
                continue
            first = param.child_by_field_name("name")
            if first is not None:
                names.append(text(first))
    return f"{function_name_text(decl)}({', '.join(names)})"


def function_name_text(decl: Any) -> str:
    return text(decl.child_by_field_name("name"))


def doc_comment(node: Any) -> str | None:
    """Text of the comment block directly above a declaration.

    Comment markers are removed and lines are joined with newlines; a blank
    line between comment and declaration detaches the comment.
    """
    lines: list[str] = []
    expected_row = node.start_point[0] - 1
    prev = node.prev_sibling
    while prev is not None and prev.type == "comment" and prev.end_point[0] == expected_row:
        lines.insert(0, _strip_comment(text(prev)))
        expected_row = prev.start_point[0] - 1
        prev = prev.prev_sibling
    if not lines:
        return None
    return "\n".join(lines) + "\n"


def _strip_comment(raw: str) -> str:
    if raw.startswith("//"):
        body = raw[2:]
        return body[1:] if body.startswith(" ") else body
    if raw.startswith("/*"):
        return raw[2:-2].strip()
    return raw


def interface_body(type_spec: Any) -> Any:
    """The ``interface_type`` node of a type spec, or None."""
    typ = type_spec.child_by_field_name("type")
    if typ is not None and typ.type == "interface_type":
        return typ
    return None


def interface_method_names(iface: Any) -> list[Any]:
    """Name nodes of explicitly declared interface methods."""
    out: list[Any] = []
    for child in iface.named_children:
        if child.type in ("method_elem", "method_spec"):
            name = child.child_by_field_name("name")
            if name is not None:
                out.append(name)
    return out


def type_specs(decl: Any) -> list[Any]:
    """type_spec / type_alias nodes of a type declaration."""
    out: list[Any] = []
    for child in decl.named_children:
        if child.type in ("type_spec", "type_alias"):
            out.append(child)
    return out


def value_specs(decl: Any) -> list[Any]:
    """var_spec / const_spec nodes of a var or const declaration."""
    out: list[Any] = []
    for child in decl.named_children:
        if child.type in ("var_spec", "const_spec"):
            out.append(child)
        elif child.type in ("var_spec_list", "const_spec_list"):
            out.extend(c for c in child.named_children if c.type in ("var_spec", "const_spec"))
    return out


def spec_names(spec: Any) -> list[Any]:
    return [n for n in spec.children_by_field_name("name") if n.type == "identifier"]


class SymbolExtractor:
    """Builds the symbol table of one package."""

    def __init__(self, package: Package) -> None:
        self._pkg = package
        self._table = SymbolTable(package=package)

    def extract(self) -> SymbolTable:
        for file in self._pkg.files.values():
            self._extract_file(file)
        for file in self._pkg.test_files.values():
            self._extract_file(file)
        self._wire_method_parents()
        return self._table

    def _make(self, name_node: Any, kind: SymbolKind, file: File) -> Symbol:
        name = text(name_node)
        row, col = name_node.start_point
        return Symbol(
            name=name,
            kind=kind,
            package=self._pkg.identifier,
            file=file.path,
            pos=file.pos(name_node),
            end=file.pos(name_node.end_byte),
            line=row + 1,
            column=col + 1,
            exported=is_exported(name),
        )

    def _extract_file(self, file: File) -> None:
        for decl in file.root.named_children:
            if decl.type == "function_declaration":
                self._add_function(decl, file)
            elif decl.type == "method_declaration":
                self._add_method(decl, file)
            elif decl.type == "type_declaration":
                for spec in type_specs(decl):
                    self._add_type(spec, decl, file)
            elif decl.type in ("var_declaration", "const_declaration"):
                self._add_values(decl, file)

    def _add_function(self, decl: Any, file: File) -> None:
        name_node = decl.child_by_field_name("name")
        if name_node is None:
            return
        sym = self._make(name_node, SymbolKind.FUNCTION, file)
        sym.signature = function_signature(decl)
        sym.doc = doc_comment(decl)
        if self._keeps_existing(self._table.functions.get(sym.name), file):
            return
        self._table.functions[sym.name] = sym

    def _add_method(self, decl: Any, file: File) -> None:
        name_node = decl.child_by_field_name("name")
        receiver = decl.child_by_field_name("receiver")
        if name_node is None or receiver is None:
            return
        recv_name = receiver_type_name(receiver)
        sym = self._make(name_node, SymbolKind.METHOD, file)
        sym.signature = function_signature(decl)
        sym.doc = doc_comment(decl)
        sym.parent = self._table.types.get(recv_name)
        self._table.methods.setdefault(recv_name, []).append(sym)

    def _add_type(self, spec: Any, decl: Any, file: File) -> None:
        name_node = spec.child_by_field_name("name")
        if name_node is None:
            return
        iface = interface_body(spec)
        kind = SymbolKind.INTERFACE if iface is not None else SymbolKind.TYPE
        sym = self._make(name_node, kind, file)
        sym.doc = doc_comment(decl if len(type_specs(decl)) == 1 else spec)
        if self._keeps_existing(self._table.types.get(sym.name), file):
            return
        self._table.types[sym.name] = sym
        if iface is not None:
            methods = self._table.methods.setdefault(sym.name, [])
            for method_name in interface_method_names(iface):
                method = self._make(method_name, SymbolKind.METHOD, file)
                method.parent = sym
                methods.append(method)

    def _add_values(self, decl: Any, file: File) -> None:
        is_const = decl.type == "const_declaration"
        kind = SymbolKind.CONSTANT if is_const else SymbolKind.VARIABLE
        target = self._table.constants if is_const else self._table.variables
        doc = doc_comment(decl)
        for spec in value_specs(decl):
            for name_node in spec_names(spec):
                if text(name_node) == "_":
                    continue
                sym = self._make(name_node, kind, file)
                sym.doc = doc
                if self._keeps_existing(target.get(sym.name), file):
                    continue
                target[sym.name] = sym

    @staticmethod
    def _keeps_existing(existing: Symbol | None, file: File) -> bool:
        """Test-file declarations never replace non-test ones."""
        return existing is not None and not existing.file.endswith("_test.go") and file.is_test

    def _wire_method_parents(self) -> None:
        for recv_name, methods in self._table.methods.items():
            for method in methods:
                if method.parent is None:
                    method.parent = self._table.types.get(recv_name)


def extract_symbols(package: Package) -> SymbolTable:
    """Build and attach the symbol table of a package."""
    table = SymbolExtractor(package).extract()
    package.symbols = table
    log.debug(
        "symbol_table_built",
        package=package.identifier,
        functions=len(table.functions),
        types=len(table.types),
        methods=sum(len(m) for m in table.methods.values()),
    )
    return table
