"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence: kwargs > env > repo yaml > global yaml > defaults
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from goplane.config.loader import (
    GLOBAL_CONFIG_PATH,
    _deep_merge,
    _load_yaml,
    config_files,
    find_repo_config,
    load_config,
)
from goplane.config.models import LoggingConfig
from goplane.core.errors import ConfigError


def _write_repo_config(root: Path, text: str) -> None:
    config_dir = root / ".goplane"
    config_dir.mkdir()
    (config_dir / "config.yaml").write_text(text)


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        """Returns empty dict when file doesn't exist."""
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        """Loads valid YAML content."""
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("analyzers:\n  unused:\n    include_exported: true\n")

        assert _load_yaml(yaml_file) == {"analyzers": {"unused": {"include_exported": True}}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        """Returns empty dict for empty file."""
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid YAML syntax."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("logging:\n  level:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        """A top-level list is not a config document."""
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_override_wins(self) -> None:
        """Override values replace base values."""
        assert _deep_merge({"a": 1, "b": 2}, {"b": 3}) == {"a": 1, "b": 3}

    def test_nested_merge(self) -> None:
        """Nested dicts are merged recursively."""
        base = {"analyzers": {"deep_if_else": {"max_nesting": 2, "min_else_lines": 3}}}
        override = {"analyzers": {"deep_if_else": {"max_nesting": 4}}}

        result = _deep_merge(base, override)

        assert result == {"analyzers": {"deep_if_else": {"max_nesting": 4, "min_else_lines": 3}}}

    def test_override_replaces_non_dict(self) -> None:
        """Non-dict override replaces dict base."""
        base: dict[str, Any] = {"a": {"nested": 1}}
        override: dict[str, Any] = {"a": "simple"}
        assert _deep_merge(base, override) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        """Base dict is not mutated."""
        base = {"a": 1}
        _deep_merge(base, {"b": 2})
        assert base == {"a": 1}


class TestLoadConfig:
    """Tests for load_config function."""

    def test_returns_default_config_when_no_files(self, tmp_path: Path) -> None:
        """Returns default config when no config files exist."""
        with patch("goplane.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)

        assert config.logging.level == "INFO"
        assert config.analyzers.deep_if_else.max_nesting == 2
        assert config.analyzers.deep_if_else.min_else_lines == 3
        assert config.analyzers.boolean_branching.min_branches == 2
        assert config.analyzers.error_wrapping.severity == "critical"
        assert config.analyzers.env_booleans.max_depth == 1
        assert config.analyzers.unused.include_exported is False
        assert config.index.type_check is True

    def test_loads_repo_config(self, tmp_path: Path) -> None:
        """Loads config from repo .goplane directory."""
        _write_repo_config(tmp_path, "analyzers:\n  deep_if_else:\n    max_nesting: 4\n")

        with patch("goplane.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)

        assert config.analyzers.deep_if_else.max_nesting == 4
        assert config.analyzers.deep_if_else.min_else_lines == 3

    def test_repo_config_overrides_global(self, tmp_path: Path) -> None:
        """Repo YAML wins over global YAML key by key."""
        global_file = tmp_path / "global.yaml"
        global_file.write_text("logging:\n  level: DEBUG\nindex:\n  max_workers: 2\n")
        repo = tmp_path / "repo"
        repo.mkdir()
        _write_repo_config(repo, "logging:\n  level: ERROR\n")

        with patch("goplane.config.loader.GLOBAL_CONFIG_PATH", global_file):
            config = load_config(repo)

        assert config.logging.level == "ERROR"
        assert config.index.max_workers == 2

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        """Environment variables override YAML config."""
        _write_repo_config(tmp_path, "analyzers:\n  env_booleans:\n    max_depth: 1\n")

        with (
            patch("goplane.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            patch.dict(os.environ, {"GOPLANE__ANALYZERS__ENV_BOOLEANS__MAX_DEPTH": "3"}),
        ):
            config = load_config(tmp_path)

        assert config.analyzers.env_booleans.max_depth == 3

    def test_kwargs_override_all(self, tmp_path: Path) -> None:
        """Keyword arguments override everything."""
        with (
            patch("goplane.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            patch.dict(os.environ, {"GOPLANE__LOGGING__LEVEL": "WARNING"}),
        ):
            config = load_config(tmp_path, logging=LoggingConfig(level="ERROR"))

        assert config.logging.level == "ERROR"

    def test_raises_config_error_for_invalid_value(self, tmp_path: Path) -> None:
        """Raises ConfigError for invalid config values."""
        _write_repo_config(tmp_path, "index:\n  max_workers: 0\n")

        with (
            patch("goplane.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            pytest.raises(ConfigError) as exc_info,
        ):
            load_config(tmp_path)

        assert "max_workers" in exc_info.value.message

    def test_raises_config_error_for_unknown_severity(self, tmp_path: Path) -> None:
        """Severity is restricted to critical, warning and info."""
        with (
            patch("goplane.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            pytest.raises(ConfigError),
        ):
            load_config(tmp_path, analyzers={"error_wrapping": {"severity": "fatal"}})


class TestGlobalConfigPath:
    """Tests for GLOBAL_CONFIG_PATH constant."""

    def test_is_in_user_config(self) -> None:
        """Path is in the user config directory."""
        assert isinstance(GLOBAL_CONFIG_PATH, Path)
        assert "goplane" in str(GLOBAL_CONFIG_PATH)


class TestFindRepoConfig:
    """Repo config lookup from a workspace root."""

    def test_given_subdirectory_when_searched_then_module_config_found(self, tmp_path: Path) -> None:
        """A session on a sub-package still picks up the module's config."""
        # Given
        (tmp_path / "go.mod").write_text("module example.com/m\n")
        _write_repo_config(tmp_path, "index:\n  type_check: false\n")
        sub = tmp_path / "internal" / "store"
        sub.mkdir(parents=True)

        # When
        found = find_repo_config(sub)

        # Then
        assert found == (tmp_path / ".goplane" / "config.yaml").resolve()

    def test_given_config_above_module_root_when_searched_then_ignored(self, tmp_path: Path) -> None:
        """The search stops at the directory holding go.mod."""
        _write_repo_config(tmp_path, "index:\n  type_check: false\n")
        module = tmp_path / "mod"
        module.mkdir()
        (module / "go.mod").write_text("module example.com/m\n")

        assert find_repo_config(module) is None

    def test_given_nested_module_config_when_loaded_then_applied(self, tmp_path: Path) -> None:
        (tmp_path / "go.mod").write_text("module example.com/m\n")
        _write_repo_config(tmp_path, "analyzers:\n  unused:\n    include_exported: true\n")
        sub = tmp_path / "pkg"
        sub.mkdir()

        with patch("goplane.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(sub)

        assert config.analyzers.unused.include_exported is True

    def test_config_files_order(self, tmp_path: Path) -> None:
        """Global first, repo second."""
        global_file = tmp_path / "global.yaml"
        global_file.write_text("{}\n")
        repo = tmp_path / "repo"
        repo.mkdir()
        (repo / "go.mod").write_text("module example.com/m\n")
        _write_repo_config(repo, "{}\n")

        with patch("goplane.config.loader.GLOBAL_CONFIG_PATH", global_file):
            files = config_files(repo)

        assert files == [global_file, (repo / ".goplane" / "config.yaml").resolve()]
