"""Tests for the tree-sitter Go front-end."""

from pathlib import Path

from goplane.syntax.parser import GoParser, import_specs, package_name

SOURCE = """package server

import (
	"fmt"
	log "github.com/sirupsen/logrus"
	_ "embed"
)

func Run() { fmt.Println("x"); log.Info("y") }
"""


class TestGoParser:
    """GoParser.parse tests."""

    def test_clean_source_has_no_errors(self) -> None:
        result = GoParser().parse_text(SOURCE)

        assert not result.has_errors
        assert result.error_count == 0
        assert result.first_error is None
        assert result.total_nodes > 10
        assert result.root_node.type == "source_file"

    def test_syntax_error_is_located(self) -> None:
        """The first error node position is reported 1-based."""
        result = GoParser().parse_text("package main\n\nfunc f( {\n")

        assert result.has_errors
        assert result.first_error is not None
        line, column = result.first_error
        assert line >= 3
        assert column >= 1

    def test_reads_file_when_no_content(self, tmp_path: Path) -> None:
        path = tmp_path / "a.go"
        path.write_text("package a\n")

        result = GoParser().parse(path)

        assert result.content == b"package a\n"
        assert not result.has_errors


class TestPackageClause:
    """package_name and import_specs tests."""

    def test_package_name(self) -> None:
        root = GoParser().parse_text(SOURCE).root_node
        assert package_name(root) == "server"

    def test_missing_package_clause(self) -> None:
        root = GoParser().parse_text("").root_node
        assert package_name(root) == ""

    def test_import_specs_in_source_order(self) -> None:
        root = GoParser().parse_text(SOURCE).root_node

        specs = import_specs(root)

        assert [s.path for s in specs] == ["fmt", "github.com/sirupsen/logrus", "embed"]
        assert [s.alias for s in specs] == [None, "log", "_"]

    def test_local_name(self) -> None:
        """Local name is the alias, else the last path segment."""
        specs = import_specs(GoParser().parse_text(SOURCE).root_node)

        assert [s.local_name for s in specs] == ["fmt", "log", "_"]

    def test_single_import(self) -> None:
        root = GoParser().parse_text('package a\n\nimport "net/http"\n').root_node

        specs = import_specs(root)

        assert len(specs) == 1
        assert specs[0].local_name == "http"
