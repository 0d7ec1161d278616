"""Workspace-wide reference index.

One pass per file, run on a thread pool. Each worker fills private maps;
a serial merge concatenates them per key, so no lock is taken while files
are being indexed.

Two maps are produced:

- name index: identifier name -> occurrences (declaration, selector and
  method-call flags, optional canonical object)
- object index: canonical object -> (file, pos, is_declaration), filled only
  for files whose package carries type info
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from goplane.core.logging import get_logger
from goplane.index.symbols import interface_body, interface_method_names, spec_names, value_specs
from goplane.index.typeinfo import TypedObject
from goplane.syntax.inspector import IDENTIFIER_TYPES, Inspector, text
from goplane.workspace.models import File, Workspace

log = get_logger("index.references")


@dataclass(slots=True)
class IndexEntry:
    """One identifier occurrence."""

    file: File
    pos: int
    is_declaration: bool = False
    is_selector: bool = False
    package_alias: str = ""  # left operand name when is_selector
    is_method_call: bool = False
    receiver_name: str = ""
    receiver_pos: int = 0
    obj: TypedObject | None = None


@dataclass(frozen=True, slots=True)
class ObjectEntry:
    file: File
    pos: int
    is_declaration: bool


@dataclass
class ReferenceIndex:
    """Read-only after construction."""

    names: dict[str, list[IndexEntry]] = field(default_factory=dict)
    objects: dict[TypedObject, list[ObjectEntry]] = field(default_factory=dict)

    def entries(self, name: str) -> list[IndexEntry]:
        return self.names.get(name, [])

    def object_entries(self, obj: TypedObject) -> list[ObjectEntry]:
        return self.objects.get(obj, [])

    @property
    def has_objects(self) -> bool:
        return bool(self.objects)

    def without_objects(self) -> ReferenceIndex:
        """Same name index with the object index suppressed."""
        return ReferenceIndex(names=self.names, objects={})


@dataclass(frozen=True, slots=True)
class _SelectorInfo:
    alias: str
    is_method_call: bool = False
    receiver_name: str = ""
    receiver_pos: int = 0


def _selector_info(file: File, node: Any, parent: Any, grandparent: Any) -> _SelectorInfo | None:
    """Selector/method-call classification of a selected name, read off its parents."""
    if parent is None or parent.type != "selector_expression":
        return None
    selected = parent.child_by_field_name("field")
    operand = parent.child_by_field_name("operand")
    if selected is None or selected.start_byte != node.start_byte or operand is None:
        return None
    if operand.type != "identifier":
        return None
    alias = text(operand)
    if grandparent is not None and grandparent.type == "call_expression":
        callee = grandparent.child_by_field_name("function")
        if callee is not None and callee.start_byte == parent.start_byte:
            return _SelectorInfo(
                alias=alias,
                is_method_call=True,
                receiver_name=alias,
                receiver_pos=file.pos(operand),
            )
    return _SelectorInfo(alias=alias)


def _declaration_offsets(node: Any) -> set[int] | None:
    """Defining-name offsets introduced by a declaration node, if it is one."""
    kind = node.type
    if kind in ("function_declaration", "method_declaration"):
        name = node.child_by_field_name("name")
        return {name.start_byte} if name is not None else set()
    if kind in ("type_spec", "type_alias"):
        out = set()
        name = node.child_by_field_name("name")
        if name is not None:
            out.add(name.start_byte)
        iface = interface_body(node)
        if iface is not None:
            out.update(n.start_byte for n in interface_method_names(iface))
        return out
    if kind in ("var_declaration", "const_declaration"):
        return {n.start_byte for spec in value_specs(node) for n in spec_names(spec)}
    return None


def index_file_untyped(
    file: File, names: dict[str, list[IndexEntry]], skip: frozenset[int] = frozenset()
) -> None:
    """Single traversal: declarations are seen before their names in preorder.

    Identifiers at positions in ``skip`` are left out.
    """
    decl_offsets: set[int] = set()
    for cursor in Inspector(file.root).preorder():
        node = cursor.node
        found = _declaration_offsets(node)
        if found:
            decl_offsets.update(found)
            continue
        if node.type not in IDENTIFIER_TYPES or file.pos(node) in skip:
            continue
        parent = cursor.parent.node if cursor.parent is not None else None
        grandparent = (
            cursor.parent.parent.node
            if cursor.parent is not None and cursor.parent.parent is not None
            else None
        )
        entry = IndexEntry(
            file=file,
            pos=file.pos(node),
            is_declaration=node.start_byte in decl_offsets,
        )
        info = _selector_info(file, node, parent, grandparent)
        if info is not None:
            entry.is_selector = True
            entry.package_alias = info.alias
            entry.is_method_call = info.is_method_call
            entry.receiver_name = info.receiver_name
            entry.receiver_pos = info.receiver_pos
        names.setdefault(text(node), []).append(entry)


def index_file_typed(
    file: File,
    names: dict[str, list[IndexEntry]],
    objects: dict[TypedObject, list[ObjectEntry]],
) -> None:
    """Index a file from its package's Defs/Uses maps.

    Identifiers the checker left unbound (chained selectors, calls on call
    results, composite-literal receivers) still get object-less name entries.
    """
    assert file.package is not None and file.package.type_info is not None
    info = file.package.type_info

    selectors: dict[int, _SelectorInfo] = {}
    for cursor in Inspector(file.root).preorder("field_identifier"):
        parent = cursor.parent.node if cursor.parent is not None else None
        grandparent = (
            cursor.parent.parent.node
            if cursor.parent is not None and cursor.parent.parent is not None
            else None
        )
        sel = _selector_info(file, cursor.node, parent, grandparent)
        if sel is not None:
            selectors[file.pos(cursor.node)] = sel

    bound: set[int] = set()
    for ident, obj, is_def in info.entries_in(file):
        bound.add(ident.pos)
        entry = IndexEntry(file=file, pos=ident.pos, is_declaration=is_def, obj=obj)
        sel = selectors.get(ident.pos)
        if sel is not None:
            entry.is_selector = True
            entry.package_alias = sel.alias
            entry.is_method_call = sel.is_method_call
            entry.receiver_name = sel.receiver_name
            entry.receiver_pos = sel.receiver_pos
        names.setdefault(ident.name, []).append(entry)
        objects.setdefault(obj, []).append(ObjectEntry(file=file, pos=ident.pos, is_declaration=is_def))

    index_file_untyped(file, names, skip=frozenset(bound))


def _index_chunk(
    files: list[File],
) -> tuple[dict[str, list[IndexEntry]], dict[TypedObject, list[ObjectEntry]]]:
    names: dict[str, list[IndexEntry]] = {}
    objects: dict[TypedObject, list[ObjectEntry]] = {}
    for file in files:
        if file.package is not None and file.package.type_info is not None:
            index_file_typed(file, names, objects)
        else:
            index_file_untyped(file, names)
    return names, objects


def build_reference_index(workspace: Workspace, max_workers: int | None = None) -> ReferenceIndex:
    """Index every file of the workspace.

    Worker count is ``min(cpu count, file count)``, further capped by
    ``max_workers`` when given.
    """
    log.info("reference_index_build_start", packages=len(workspace.packages))
    files = workspace.all_files()

    workers = min(os.cpu_count() or 1, len(files))
    if max_workers is not None:
        workers = min(workers, max_workers)
    if workers == 0:
        return ReferenceIndex()

    chunks: list[list[File]] = [files[i::workers] for i in range(workers)]
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="goplane-index") as pool:
        results = list(pool.map(_index_chunk, chunks))

    index = ReferenceIndex()
    for names, objects in results:
        for name, entries in names.items():
            index.names.setdefault(name, []).extend(entries)
        for obj, obj_entries in objects.items():
            index.objects.setdefault(obj, []).extend(obj_entries)

    log.info(
        "reference_index_built",
        files=len(files),
        workers=workers,
        names=len(index.names),
        objects=len(index.objects),
    )
    return index
