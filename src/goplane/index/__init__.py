"""Symbol tables, scopes, type info, reference index and resolution."""

from goplane.index.cache import CacheSizes, CacheStats, SymbolCache
from goplane.index.dependencies import DependencyAnalyzer, DependencyGraph
from goplane.index.diagnostics import DiagnosticEngine, ResolutionContext, ResolutionError
from goplane.index.references import IndexEntry, ObjectEntry, ReferenceIndex, build_reference_index
from goplane.index.resolver import SymbolResolver
from goplane.index.scope import UNIVERSE, Scope, ScopeAnalyzer, ScopeKind
from goplane.index.symbols import SymbolExtractor, extract_symbols
from goplane.index.typeinfo import Ident, ObjectKind, TypeChecker, TypedObject, TypeInfo, check_workspace

__all__ = [
    "CacheSizes",
    "CacheStats",
    "DependencyAnalyzer",
    "DependencyGraph",
    "DiagnosticEngine",
    "Ident",
    "IndexEntry",
    "ObjectEntry",
    "ObjectKind",
    "ReferenceIndex",
    "ResolutionContext",
    "ResolutionError",
    "Scope",
    "ScopeAnalyzer",
    "ScopeKind",
    "SymbolCache",
    "SymbolExtractor",
    "SymbolResolver",
    "TypeChecker",
    "TypeInfo",
    "TypedObject",
    "UNIVERSE",
    "build_reference_index",
    "check_workspace",
    "extract_symbols",
]
