"""Configuration loading with pydantic-settings.

Sources, highest precedence first:
1. Keyword overrides passed to ``load_config``
2. Environment variables (GOPLANE__SECTION__KEY)
3. Repo config: the nearest ``.goplane/config.yaml`` between the workspace
   root and the enclosing module root (the directory holding go.mod)
4. Global config (~/.config/goplane/config.yaml)
5. Built-in defaults
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from goplane.config.models import (
    AnalyzersConfig,
    GoPlaneConfig,
    IndexConfig,
    LoggingConfig,
    WorkspaceConfig,
)
from goplane.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/goplane/config.yaml").expanduser()
REPO_CONFIG_RELPATH = Path(".goplane") / "config.yaml"
GO_MOD = "go.mod"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level YAML value must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def find_repo_config(start: Path) -> Path | None:
    """Nearest repo config at or above ``start``, not looking past the module root."""
    current = start.resolve()
    while True:
        candidate = current / REPO_CONFIG_RELPATH
        if candidate.is_file():
            return candidate
        if (current / GO_MOD).is_file() or current.parent == current:
            return None
        current = current.parent


def config_files(repo_root: Path) -> list[Path]:
    """Existing YAML config files, lowest precedence first."""
    files = [GLOBAL_CONFIG_PATH] if GLOBAL_CONFIG_PATH.is_file() else []
    repo = find_repo_config(repo_root)
    if repo is not None:
        files.append(repo)
    return files


class _YamlSource(PydanticBaseSettingsSource):
    """Merged YAML documents as one settings source."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._data = data

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        value = self._data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return {k: v for k, v in self._data.items() if k in self.settings_cls.model_fields}


def _settings_class(yaml_data: dict[str, Any]) -> type[BaseSettings]:
    """Settings class bound to one load's YAML data."""

    class GoPlaneSettings(BaseSettings):
        """Env vars: GOPLANE__INDEX__TYPE_CHECK, GOPLANE__ANALYZERS__UNUSED__INCLUDE_EXPORTED, etc."""

        model_config = SettingsConfigDict(
            env_prefix="GOPLANE__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        workspace: WorkspaceConfig = WorkspaceConfig()
        index: IndexConfig = IndexConfig()
        analyzers: AnalyzersConfig = AnalyzersConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # first source wins
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_data))

    return GoPlaneSettings


GoPlaneSettings = _settings_class({})


def load_config(repo_root: Path | None = None, **overrides: Any) -> GoPlaneConfig:
    """Resolve configuration for a workspace.

    Args:
        repo_root: Workspace root; repo config is searched from here up to
                   the module root. Defaults to the current directory.
        **overrides: Section values with the highest precedence, e.g.
                     ``analyzers={"deep_if_else": {"max_nesting": 3}}``.

    Raises:
        ConfigError: On unreadable YAML or values that fail validation.
    """
    yaml_data: dict[str, Any] = {}
    for path in config_files(repo_root or Path.cwd()):
        yaml_data = _deep_merge(yaml_data, _load_yaml(path))

    try:
        settings = _settings_class(yaml_data)(**overrides)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return GoPlaneConfig.model_validate(settings.model_dump())
