"""Config module exports."""

from goplane.config.loader import GoPlaneSettings, load_config
from goplane.config.models import (
    AnalyzersConfig,
    GoPlaneConfig,
    IndexConfig,
    LoggingConfig,
    WorkspaceConfig,
)

__all__ = [
    "load_config",
    "GoPlaneConfig",
    "GoPlaneSettings",
    "AnalyzersConfig",
    "IndexConfig",
    "LoggingConfig",
    "WorkspaceConfig",
]
