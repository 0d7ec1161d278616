"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (GOPLANE__SECTION__KEY)
3. Repo YAML (.goplane/config.yaml)
4. Global YAML (~/.config/goplane/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    GOPLANE__<SECTION>__<KEY>=<VALUE>

Examples:
    GOPLANE__LOGGING__LEVEL=DEBUG
    GOPLANE__INDEX__MAX_WORKERS=4
    GOPLANE__ANALYZERS__DEEP_IF_ELSE__MAX_NESTING=3
    GOPLANE__ANALYZERS__UNUSED__INCLUDE_EXPORTED=true
    GOPLANE__ANALYZERS__COMPLEXITY__MIN_COMPLEXITY=15
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
Severity = Literal["critical", "warning", "info"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        GOPLANE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every skipped reference candidate.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class WorkspaceConfig(BaseModel):
    """Workspace loading configuration.

    Env vars:
        GOPLANE__WORKSPACE__ALLOW_SYNTAX_ERRORS: Keep files that fail to parse cleanly
    """

    skip_dirs: list[str] = Field(
        default_factory=lambda: ["vendor", "testdata"],
        description="Directory names never descended into. Dot-directories are always skipped.",
    )
    allow_syntax_errors: bool = Field(
        default=False,
        description="Keep files whose syntax tree contains errors instead of failing the load. "
        "Fixers may then see partial trees.",
    )


class IndexConfig(BaseModel):
    """Reference index configuration.

    Env vars:
        GOPLANE__INDEX__MAX_WORKERS: Upper bound on index worker threads
        GOPLANE__INDEX__TYPE_CHECK: Populate type info before indexing
    """

    max_workers: int | None = Field(
        default=None,
        description="Upper bound on index worker threads. Default: CPU count. "
        "The effective count never exceeds the number of files.",
    )
    type_check: bool = Field(
        default=True,
        description="Run the built-in type checker so reference queries use the object index.",
    )

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int | None) -> int | None:
        if v is not None and v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v


class DeepIfElseConfig(BaseModel):
    """Deep if-else analyzer options."""

    max_nesting: int = Field(
        default=2,
        description="Maximum acceptable if-else nesting depth before reporting.",
    )
    min_else_lines: int = Field(
        default=3,
        description="Minimum total else-branch lines for a chain to be reported.",
    )

    @field_validator("max_nesting")
    @classmethod
    def validate_max_nesting(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_nesting must be >= 0, got {v}")
        return v

    @field_validator("min_else_lines")
    @classmethod
    def validate_min_else_lines(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"min_else_lines must be >= 1, got {v}")
        return v


class BooleanBranchingConfig(BaseModel):
    """Boolean-branching analyzer options."""

    min_branches: int = Field(
        default=2,
        description="Minimum booleans derived from one expression before suggesting a switch.",
    )

    @field_validator("min_branches")
    @classmethod
    def validate_min_branches(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"min_branches must be >= 1, got {v}")
        return v


class ErrorWrappingConfig(BaseModel):
    """Error-wrapping analyzer options."""

    severity: Severity = Field(
        default="critical",
        description="Minimum severity reported. 'warning' includes critical, 'info' includes both.",
    )


class EnvBooleansConfig(BaseModel):
    """Environment-boolean analyzer options."""

    max_depth: int = Field(
        default=1,
        description="Propagation depth (callees receiving the flag) required before reporting. "
        "0 reports every environment boolean parameter.",
    )

    @field_validator("max_depth")
    @classmethod
    def validate_max_depth(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_depth must be >= 0, got {v}")
        return v


class UnusedConfig(BaseModel):
    """Unused-symbol analyzer options."""

    include_exported: bool = Field(
        default=False,
        description="Also report exported symbols. Exported symbols may be used outside the "
        "workspace, so results need review.",
    )


class ComplexityConfig(BaseModel):
    """Complexity analyzer options."""

    min_complexity: int = Field(
        default=10,
        description="Cyclomatic complexity at or above which a function is reported.",
    )

    @field_validator("min_complexity")
    @classmethod
    def validate_min_complexity(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"min_complexity must be >= 1, got {v}")
        return v


class AnalyzersConfig(BaseModel):
    """Per-analyzer options.

    Env vars:
        GOPLANE__ANALYZERS__<ANALYZER>__<OPTION>
    """

    deep_if_else: DeepIfElseConfig = Field(default_factory=DeepIfElseConfig)
    boolean_branching: BooleanBranchingConfig = Field(default_factory=BooleanBranchingConfig)
    error_wrapping: ErrorWrappingConfig = Field(default_factory=ErrorWrappingConfig)
    env_booleans: EnvBooleansConfig = Field(default_factory=EnvBooleansConfig)
    unused: UnusedConfig = Field(default_factory=UnusedConfig)
    complexity: ComplexityConfig = Field(default_factory=ComplexityConfig)


class GoPlaneConfig(BaseModel):
    """Root configuration.

    Use for type hints. The actual loading uses the settings class in loader.py
    which has the same fields plus env/YAML sources.
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    index: IndexConfig = Field(default_factory=IndexConfig)
    analyzers: AnalyzersConfig = Field(default_factory=AnalyzersConfig)
