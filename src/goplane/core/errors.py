"""goplane error types with typed error codes.

Error code ranges:
- 1xxx: Resolution (symbols, visibility)
- 2xxx: Operation (request invalid for its subject)
- 3xxx: Source (parsing, filesystem)
- 4xxx: Config
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Resolution (1xxx)
    SYMBOL_NOT_FOUND = 1001
    VISIBILITY_VIOLATION = 1002

    # Operation (2xxx)
    INVALID_OPERATION = 2001

    # Source (3xxx)
    PARSE_ERROR = 3001
    FILE_SYSTEM_ERROR = 3002

    # Config (4xxx)
    CONFIG_PARSE_ERROR = 4001
    CONFIG_INVALID_VALUE = 4002
    CONFIG_FILE_NOT_FOUND = 4003

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class GoPlaneError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'SYMBOL_NOT_FOUND')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON reports."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


@dataclass(frozen=True, slots=True)
class RefactorError(GoPlaneError):
    """Error raised by analysis and refactoring operations.

    Carries the source location the failure relates to (when known) and the
    underlying exception, if any. ``code`` is the error kind callers branch on.
    """

    file: str = ""
    line: int = 0
    column: int = 0
    cause: BaseException | None = None

    @property
    def location(self) -> str:
        """``file:line:col`` (or just ``file``) for located errors, else empty."""
        if not self.file:
            return ""
        if self.line > 0:
            return f"{self.file}:{self.line}:{self.column}"
        return self.file

    def to_dict(self) -> dict[str, Any]:
        result = GoPlaneError.to_dict(self)
        result.update(
            {
                "file": self.file,
                "line": self.line,
                "column": self.column,
                "cause": str(self.cause) if self.cause is not None else None,
            }
        )
        return result

    def __str__(self) -> str:
        base = GoPlaneError.__str__(self)
        if self.location:
            return f"{self.location}: {base}"
        return base

    @classmethod
    def symbol_not_found(
        cls,
        message: str,
        *,
        file: str = "",
        line: int = 0,
        column: int = 0,
        name: str | None = None,
    ) -> "RefactorError":
        return cls(
            code=ErrorCode.SYMBOL_NOT_FOUND,
            message=message,
            details={"name": name} if name is not None else {},
            file=file,
            line=line,
            column=column,
        )

    @classmethod
    def invalid_operation(
        cls, message: str, *, file: str = "", line: int = 0, column: int = 0
    ) -> "RefactorError":
        return cls(
            code=ErrorCode.INVALID_OPERATION,
            message=message,
            file=file,
            line=line,
            column=column,
        )

    @classmethod
    def visibility_violation(
        cls, message: str, *, file: str = "", line: int = 0, column: int = 0
    ) -> "RefactorError":
        return cls(
            code=ErrorCode.VISIBILITY_VIOLATION,
            message=message,
            file=file,
            line=line,
            column=column,
        )

    @classmethod
    def parse_error(
        cls,
        path: str,
        reason: str,
        *,
        line: int = 0,
        column: int = 0,
        cause: BaseException | None = None,
    ) -> "RefactorError":
        return cls(
            code=ErrorCode.PARSE_ERROR,
            message=f"Failed to parse {path}: {reason}",
            details={"path": path, "reason": reason},
            file=path,
            line=line,
            column=column,
            cause=cause,
        )

    @classmethod
    def file_system_error(
        cls, path: str, reason: str, *, cause: BaseException | None = None
    ) -> "RefactorError":
        return cls(
            code=ErrorCode.FILE_SYSTEM_ERROR,
            message=f"Cannot access {path}: {reason}",
            details={"path": path, "reason": reason},
            file=path,
            cause=cause,
        )


class ConfigError(GoPlaneError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class InternalError(GoPlaneError):
    """Internal/unexpected errors, including broken model invariants."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
