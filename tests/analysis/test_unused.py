"""Tests for unused symbol detection."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from goplane.analysis.unused import (
    NO_REFERENCES,
    ONLY_DECLARATIONS,
    UnusedAnalyzer,
    UnusedSymbol,
    format_unused_symbol,
    is_test_function,
)
from goplane.index.resolver import SymbolResolver

LIB_GO = """package p

func Foo() {}

func Bar() { Foo() }

func helper() {}

func used() {}

var _ = used

func shadowed() {}

func local() int {
	shadowed := 1
	return shadowed
}

type reader interface {
	fetch() string
}

type source struct{}

func (s source) fetch() string { return "" }

func (s source) String() string { return "" }

func (s source) unusedMethod() {}

func init() {}
"""

LIB_TEST_GO = """package p

import "testing"

func TestHelper(t *testing.T) {}
"""


def _names(found: list[UnusedSymbol]) -> list[str]:
    return [u.symbol.qualified_name for u in found]


@pytest.fixture
def lib(make_resolver: Callable[..., SymbolResolver]) -> SymbolResolver:
    return make_resolver({"p/p.go": LIB_GO, "p/p_test.go": LIB_TEST_GO}, typed=True)


class TestUnusedAnalyzer:
    """Exported filtering and the object path."""

    def test_given_defaults_when_analyzed_then_exported_skipped(self, lib: SymbolResolver) -> None:
        """Foo and Bar are exported and so never reported by default."""
        # When
        found = UnusedAnalyzer(lib.workspace, lib).find_unused_symbols()

        # Then
        assert _names(found) == ["helper", "shadowed", "local", "reader", "source.unusedMethod"]

    def test_given_include_exported_when_analyzed_then_caller_counts_as_use(
        self, lib: SymbolResolver
    ) -> None:
        """Bar's call keeps Foo alive; nothing calls Bar."""
        # When
        found = UnusedAnalyzer(lib.workspace, lib, include_exported=True).find_unused_symbols()

        # Then
        names = _names(found)
        assert "Foo" not in names
        assert "Bar" in names
        bar = next(u for u in found if u.symbol.name == "Bar")
        assert not bar.safe_to_delete
        assert bar.reason == NO_REFERENCES

    def test_given_same_named_local_when_typed_then_only_declarations(self, lib: SymbolResolver) -> None:
        """A local variable sharing the name is a different object."""
        found = UnusedAnalyzer(lib.workspace, lib).find_unused_symbols()

        shadowed = next(u for u in found if u.symbol.name == "shadowed")
        helper = next(u for u in found if u.symbol.name == "helper")

        assert shadowed.reason == ONLY_DECLARATIONS
        assert helper.reason == NO_REFERENCES
        assert helper.safe_to_delete

    def test_given_interface_method_names_when_analyzed_then_skipped(self, lib: SymbolResolver) -> None:
        analyzer = UnusedAnalyzer(lib.workspace, lib)

        names = analyzer.collect_interface_method_names()

        assert "fetch" in names
        assert "String" in names
        assert "source.fetch" not in _names(analyzer.find_unused_symbols())

    def test_unused_unexported_only(self, lib: SymbolResolver) -> None:
        found = UnusedAnalyzer(lib.workspace, lib, include_exported=True).unused_unexported_symbols()

        assert all(not u.symbol.exported and u.safe_to_delete for u in found)
        assert "Bar" not in _names(found)

    def test_untyped_workspace_still_analyzed(self, make_resolver: Callable[..., SymbolResolver]) -> None:
        resolver = make_resolver({"p/p.go": "package p\n\nfunc a() { b() }\n\nfunc b() {}\n"})

        found = UnusedAnalyzer(resolver.workspace, resolver).find_unused_symbols()

        assert _names(found) == ["a"]

    def test_zero_packages(self, make_resolver: Callable[..., SymbolResolver]) -> None:
        resolver = make_resolver({})

        assert UnusedAnalyzer(resolver.workspace, resolver).find_unused_symbols() == []

    def test_format(self, lib: SymbolResolver) -> None:
        found = UnusedAnalyzer(lib.workspace, lib).find_unused_symbols()
        helper = next(u for u in found if u.symbol.name == "helper")

        assert format_unused_symbol(helper) == (
            f"Function helper ({helper.symbol.file}:7:6) - No references found"
        )
        assert (helper.file, helper.line, helper.column) == (helper.symbol.file, 7, 6)


class TestIsTestFunction:
    def test_prefixes_and_files(self, lib: SymbolResolver) -> None:
        table = next(iter(lib.workspace.packages.values())).symbols
        assert table is not None

        assert is_test_function(table.functions["TestHelper"])
        assert not is_test_function(table.functions["helper"])
        assert not is_test_function(table.types["source"])


RECEIVERS_GO = """package store

type Store struct{}

func (s *Store) get() int { return 0 }

type holder struct {
	inner *Store
}

type wrapper struct{}

func (w wrapper) value() int { return 1 }

func pick() *Store { return &Store{} }

func Run(items []*Store, w holder) int {
	total := 0
	for _, s := range items {
		total += s.get()
	}
	total += w.inner.get()
	total += pick().get()
	total += wrapper{}.value()
	return total
}
"""


class TestReceiverShapes:
    """Method calls through receivers the checker cannot type."""

    @pytest.mark.parametrize("typed", [True, False])
    def test_given_untyped_receivers_when_analyzed_then_methods_used(
        self, make_resolver: Callable[..., SymbolResolver], typed: bool
    ) -> None:
        """Chained selectors, call results, range variables and literals all count as uses."""
        # Given
        resolver = make_resolver({"store/store.go": RECEIVERS_GO}, typed=typed)

        # When
        found = UnusedAnalyzer(resolver.workspace, resolver).find_unused_symbols()

        # Then
        assert _names(found) == []

    def test_given_type_info_when_queried_then_unbound_uses_found_by_name(
        self, make_resolver: Callable[..., SymbolResolver]
    ) -> None:
        resolver = make_resolver({"store/store.go": RECEIVERS_GO}, typed=True)
        table = next(iter(resolver.workspace.packages.values())).symbols
        assert table is not None
        get = next(m for m in table.methods["Store"] if m.name == "get")
        value = next(m for m in table.methods["wrapper"] if m.name == "value")
        index = resolver.build_reference_index()

        assert index.has_objects
        assert resolver.has_non_declaration_reference(get, index)
        assert resolver.has_non_declaration_reference(value, index)
        lines = {ref.line for ref in resolver.find_references_indexed(get, index)}
        assert {22, 23} <= lines
        assert [ref.line for ref in resolver.find_references_indexed(value, index)] == [24]
