"""Workspace model and loading."""

from goplane.workspace.loader import load_sources, load_workspace, update_file
from goplane.workspace.models import (
    File,
    Modification,
    ModificationKind,
    Module,
    Package,
    Reference,
    Symbol,
    SymbolKind,
    SymbolTable,
    Workspace,
)
from goplane.workspace.paths import resolve_package_path
from goplane.workspace.positions import FileSet, Position

__all__ = [
    "File",
    "FileSet",
    "Modification",
    "ModificationKind",
    "Module",
    "Package",
    "Position",
    "Reference",
    "Symbol",
    "SymbolKind",
    "SymbolTable",
    "Workspace",
    "load_sources",
    "load_workspace",
    "resolve_package_path",
    "update_file",
]
