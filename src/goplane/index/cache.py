"""Thread-safe memoization for the symbol resolver.

Five independent categories, each behind its own lock, plus a statistics
sidecar with a separate lock so counting never contends with lookups:

- resolved references (arbitrary string keys)
- method sets (``methodset:<package>:<type>``)
- package symbol tables (package identifier)
- identifier types (``<file>:<name>:<pos>``)
- method-belongs-to-type decisions
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Generic, TypeVar

from goplane.workspace.models import Symbol, SymbolTable

V = TypeVar("V")

METHOD_SET_PREFIX = "methodset:"


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class CacheStats:
    """Hit/miss counters per category."""

    resolved_ref_hits: int = 0
    resolved_ref_misses: int = 0
    method_set_hits: int = 0
    method_set_misses: int = 0
    package_hits: int = 0
    package_misses: int = 0
    identifier_type_hits: int = 0
    identifier_type_misses: int = 0
    method_type_hits: int = 0
    method_type_misses: int = 0
    last_reset: datetime = field(default_factory=_now)

    @property
    def total_hits(self) -> int:
        return (
            self.resolved_ref_hits
            + self.method_set_hits
            + self.package_hits
            + self.identifier_type_hits
            + self.method_type_hits
        )

    @property
    def total_misses(self) -> int:
        return (
            self.resolved_ref_misses
            + self.method_set_misses
            + self.package_misses
            + self.identifier_type_misses
            + self.method_type_misses
        )


@dataclass(frozen=True)
class CacheSizes:
    resolved_refs: int
    method_sets: int
    package_symbols: int
    identifier_types: int
    method_types: int

    @property
    def total(self) -> int:
        return (
            self.resolved_refs
            + self.method_sets
            + self.package_symbols
            + self.identifier_types
            + self.method_types
        )


class _Category(Generic[V]):
    """One lock-guarded map."""

    def __init__(self) -> None:
        self._data: dict[str, V] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> tuple[V | None, bool]:
        with self._lock:
            if key in self._data:
                return self._data[key], True
            return None, False

    def set(self, key: str, value: V) -> None:
        with self._lock:
            self._data[key] = value

    def remove_where(self, predicate: Callable[[str], bool]) -> int:
        with self._lock:
            doomed = [k for k in self._data if predicate(k)]
            for k in doomed:
                del self._data[k]
            return len(doomed)

    def pop(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)


class SymbolCache:
    """Memoization shared by resolver, scope analyzer and reference queries."""

    def __init__(self) -> None:
        self._resolved: _Category[Symbol] = _Category()
        self._method_sets: _Category[list[Symbol]] = _Category()
        self._packages: _Category[SymbolTable] = _Category()
        self._identifier_types: _Category[Symbol] = _Category()
        self._method_types: _Category[bool] = _Category()
        self._stats = CacheStats()
        self._stats_lock = threading.Lock()

    def _count(self, name: str, hit: bool) -> None:
        attr = f"{name}_{'hits' if hit else 'misses'}"
        with self._stats_lock:
            setattr(self._stats, attr, getattr(self._stats, attr) + 1)

    # resolved references

    def get_resolved_ref(self, key: str) -> Symbol | None:
        value, hit = self._resolved.get(key)
        self._count("resolved_ref", hit)
        return value

    def set_resolved_ref(self, key: str, symbol: Symbol) -> None:
        self._resolved.set(key, symbol)

    # method sets

    def get_method_set(self, key: str) -> list[Symbol] | None:
        value, hit = self._method_sets.get(key)
        self._count("method_set", hit)
        return list(value) if value is not None else None

    def set_method_set(self, key: str, methods: list[Symbol]) -> None:
        self._method_sets.set(key, list(methods))

    # package symbol tables

    def get_package_symbols(self, package: str) -> SymbolTable | None:
        value, hit = self._packages.get(package)
        self._count("package", hit)
        return value

    def set_package_symbols(self, package: str, table: SymbolTable) -> None:
        self._packages.set(package, table)

    # identifier types

    def get_identifier_type(self, key: str) -> Symbol | None:
        value, hit = self._identifier_types.get(key)
        self._count("identifier_type", hit)
        return value

    def set_identifier_type(self, key: str, symbol: Symbol) -> None:
        self._identifier_types.set(key, symbol)

    # method-belongs-to-type decisions

    def get_method_type(self, key: str) -> bool | None:
        value, hit = self._method_types.get(key)
        self._count("method_type", hit)
        return value

    def set_method_type(self, key: str, matches: bool) -> None:
        self._method_types.set(key, matches)

    # invalidation

    def invalidate_package(self, package: str) -> None:
        """Drop the package's table, resolved keys mentioning it and its method sets."""
        self._packages.pop(package)
        self._resolved.remove_where(lambda k: package in k)
        prefix = f"{METHOD_SET_PREFIX}{package}"
        self._method_sets.remove_where(lambda k: k.startswith(prefix))

    def invalidate_file(self, path: str) -> None:
        """Drop resolved keys prefixed with ``<path>:``."""
        prefix = f"{path}:"
        self._resolved.remove_where(lambda k: k.startswith(prefix))
        self._identifier_types.remove_where(lambda k: k.startswith(prefix))

    def clear(self) -> None:
        self._resolved.clear()
        self._method_sets.clear()
        self._packages.clear()
        self._identifier_types.clear()
        self._method_types.clear()

    # statistics

    def get_stats(self) -> CacheStats:
        with self._stats_lock:
            return replace(self._stats)

    def reset_stats(self) -> None:
        with self._stats_lock:
            self._stats = CacheStats()

    def cache_sizes(self) -> CacheSizes:
        return CacheSizes(
            resolved_refs=len(self._resolved),
            method_sets=len(self._method_sets),
            package_symbols=len(self._packages),
            identifier_types=len(self._identifier_types),
            method_types=len(self._method_types),
        )

    def hit_rate(self) -> float:
        """Overall hit rate in percent."""
        stats = self.get_stats()
        return _rate(stats.total_hits, stats.total_misses)

    def resolved_ref_hit_rate(self) -> float:
        stats = self.get_stats()
        return _rate(stats.resolved_ref_hits, stats.resolved_ref_misses)

    def method_set_hit_rate(self) -> float:
        stats = self.get_stats()
        return _rate(stats.method_set_hits, stats.method_set_misses)

    def package_hit_rate(self) -> float:
        stats = self.get_stats()
        return _rate(stats.package_hits, stats.package_misses)


def _rate(hits: int, misses: int) -> float:
    total = hits + misses
    if total == 0:
        return 0.0
    return hits / total * 100.0
