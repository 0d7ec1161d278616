"""Structured logging for analysis runs.

Events go through structlog and end up on handlers attached to the
``goplane`` stdlib logger only, so an embedding application's root logger
is left alone. Each event carries the run id and, once a session binds
it, the workspace root.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from goplane.config.models import LoggingConfig, LogOutputConfig

LOGGER_NAME = "goplane"

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)


def get_run_id() -> str | None:
    return _run_id.get()


def set_run_id(run_id: str | None = None) -> str:
    """Set or generate the run correlation ID."""
    rid = run_id or uuid4().hex[:12]
    _run_id.set(rid)
    return rid


def clear_run_id() -> None:
    _run_id.set(None)
    structlog.contextvars.unbind_contextvars("workspace")


def bind_run(workspace_root: str, run_id: str | None = None) -> str:
    """Start a run: new run id, and the workspace root on every later event."""
    rid = set_run_id(run_id)
    structlog.contextvars.bind_contextvars(workspace=workspace_root)
    return rid


def _add_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if rid := get_run_id():
        event_dict["run_id"] = rid
    return event_dict


def _level(name: str | None, default: int = logging.INFO) -> int:
    if not name:
        return default
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else default


def configure_logging(
    config: LoggingConfig | None = None,
    *,
    json_format: bool = False,
    level: str | None = None,
) -> None:
    """Install handlers for every configured output.

    Args:
        config: Outputs and root level. Defaults to one console output on stderr.
        json_format: Render every output as JSON regardless of its configured format.
        level: Overrides ``config.level`` (e.g. from a verbosity flag).
    """
    from goplane.config.models import LoggingConfig

    config = config or LoggingConfig()
    root_level = _level(level or config.level)

    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_run_id,  # type: ignore[list-item]
    ]
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # reconfiguration must reach loggers created earlier
        cache_logger_on_first_use=False,
    )

    target = logging.getLogger(LOGGER_NAME)
    for handler in list(target.handlers):
        target.removeHandler(handler)
        handler.close()
    target.setLevel(root_level)
    target.propagate = False

    for output in config.outputs:
        handler = _handler(output)
        handler.setLevel(_level(output.level, root_level))
        handler.setFormatter(_formatter(output, shared, json_format=json_format))
        target.addHandler(handler)


def _handler(output: LogOutputConfig) -> logging.Handler:
    if output.destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if output.destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(output.destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a")


def _formatter(
    output: LogOutputConfig,
    shared: list[structlog.types.Processor],
    *,
    json_format: bool = False,
) -> logging.Formatter:
    if json_format or output.format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        stream = sys.stdout if output.destination == "stdout" else sys.stderr
        renderer = structlog.dev.ConsoleRenderer(
            colors=output.destination in ("stderr", "stdout") and stream.isatty(),
            pad_event_to=0,
            pad_level=False,
        )
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger for a goplane component, e.g. ``get_logger("index.references")``."""
    qualified = f"{LOGGER_NAME}.{name}" if name else LOGGER_NAME
    return structlog.get_logger(qualified).bind(logger=name or LOGGER_NAME)  # type: ignore[no-any-return]
