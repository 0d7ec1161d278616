"""Core module exports."""

from goplane.core.errors import (
    ConfigError,
    ErrorCode,
    GoPlaneError,
    InternalError,
    RefactorError,
)
from goplane.core.logging import (
    bind_run,
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "ErrorCode",
    "GoPlaneError",
    "RefactorError",
    "ConfigError",
    "InternalError",
    # Logging
    "bind_run",
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
