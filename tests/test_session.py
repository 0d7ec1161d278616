"""Tests for Session: config plus workspace plus every analyzer and fixer."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from goplane.core.errors import ConfigError
from goplane.core.logging import get_run_id
from goplane.session import Session

GO_MOD = "module example.com/app\n\ngo 1.22\n"

SVC_GO = """package svc

import "errors"

func Find(db DB, id int) (string, error) {
	user, err := db.Get(id)
	if err == nil {
		if user != nil {
			return doWork(user)
		} else {
			return "", errors.New("not found")
		}
	} else {
		return "", errors.New("db error")
	}
}
"""

ORDERS_GO = """package orders

func CreateOrder(id int) error {
	if err := save(id); err != nil {
		return err
	}
	return nil
}

func save(id int) error { return nil }
"""

API_GO = """package api

import "example.com/app/orders"

func Handle() error {
	return orders.CreateOrder(1)
}
"""


@pytest.fixture
def repo(tmp_path: Path) -> Path:
    (tmp_path / "go.mod").write_text(GO_MOD)
    for rel, source in {
        "svc/svc.go": SVC_GO,
        "orders/orders.go": ORDERS_GO,
        "api/api.go": API_GO,
    }.items():
        path = tmp_path / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source)
    return tmp_path


@pytest.fixture(autouse=True)
def no_global_config(tmp_path: Path) -> Iterator[None]:
    with patch("goplane.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "missing.yaml"):
        yield


class TestSessionOpen:
    """Loading and preparing a session."""

    def test_given_repo_when_opened_then_tables_built(self, repo: Path) -> None:
        """Every package has a symbol table and the run id is set."""
        # When
        session = Session.open(repo)

        # Then
        assert len(session.workspace.packages) == 3
        assert all(pkg.symbols is not None for pkg in session.workspace.packages.values())
        assert session.workspace.module is not None
        assert session.workspace.module.path == "example.com/app"
        assert session.run_id == get_run_id()

    def test_given_overrides_when_opened_then_applied(self, repo: Path) -> None:
        session = Session.open(
            repo,
            analyzers={"deep_if_else": {"max_nesting": 1, "min_else_lines": 1}},
            index={"type_check": False},
        )

        assert session.config.analyzers.deep_if_else.max_nesting == 1
        assert session.config.analyzers.boolean_branching.min_branches == 2
        assert session.config.index.type_check is False

    def test_given_invalid_override_when_opened_then_config_error(self, repo: Path) -> None:
        with pytest.raises(ConfigError):
            Session.open(repo, analyzers={"deep_if_else": {"max_nesting": -1}})


class TestSessionAnalysis:
    def test_analyze_all_runs_every_analyzer(self, repo: Path) -> None:
        session = Session.open(repo, analyzers={"deep_if_else": {"max_nesting": 1, "min_else_lines": 1}})

        results = session.analyze_all()

        assert set(results) == {
            "deep_if_else",
            "boolean_branching",
            "error_wrapping",
            "missing_context",
            "env_booleans",
            "if_init",
            "complexity",
            "unused",
        }
        assert [v.function for v in results["deep_if_else"]] == ["Find"]
        assert [v.function for v in results["error_wrapping"]] == ["CreateOrder"]
        assert [v.function for v in results["if_init"]] == ["CreateOrder"]
        assert [u.symbol.name for u in results["unused"]] == []
        assert results["complexity"] == []

    def test_complexity_threshold_from_config(self, repo: Path) -> None:
        session = Session.open(repo, analyzers={"complexity": {"min_complexity": 2}})

        found = session.complexity()

        assert [(v.function, v.metrics.cyclomatic) for v in found] == [
            ("Find", 5),
            ("CreateOrder", 2),
        ]
        assert session.complexity("orders")[0].level == "low"
        assert session.complexity("api") == []

    def test_package_selector(self, repo: Path) -> None:
        session = Session.open(repo)

        assert [v.function for v in session.if_init("orders")] == ["CreateOrder"]
        assert session.if_init("svc") == []
        assert session.if_init("nowhere") == []

    def test_dependencies(self, repo: Path) -> None:
        session = Session.open(repo)

        graph = session.dependencies()

        assert graph.depends_on("example.com/app/api", "example.com/app/orders")
        assert not graph.depends_on("example.com/app/orders", "example.com/app/api")
        assert graph.cycles == []


class TestSessionFixers:
    def test_fixers_use_configured_thresholds(self, repo: Path) -> None:
        session = Session.open(repo, analyzers={"deep_if_else": {"max_nesting": 1, "min_else_lines": 1}})

        plan, results = session.fix_deep_if_else()

        assert [r.function for r in results] == ["Find"]
        assert len(plan.affected_files) == 1
        plan.validate(session.workspace)

    def test_fix_error_wrapping_and_if_init(self, repo: Path) -> None:
        session = Session.open(repo)

        wrap_plan, wrapped = session.fix_error_wrapping("orders")
        split_plan, split = session.fix_if_init("orders")

        assert wrapped.errors_wrapped == 1
        assert wrap_plan.changes[0].new_text == 'fmt.Errorf("create order: %w", err)'
        assert [v.variables for v in split] == [["err"]]
        assert split_plan.affected_files == wrap_plan.affected_files

    def test_fix_boolean_branching_without_matches(self, repo: Path) -> None:
        plan, results = Session.open(repo).fix_boolean_branching()

        assert plan.changes == []
        assert results == []
