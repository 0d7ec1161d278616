"""Error returns that lose context: bare ``return err``, ``%v`` instead of
``%w``, and ``fmt.Errorf`` messages that say nothing ("error: %w")."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from goplane.analysis.base import (
    Analyzer,
    call_arguments,
    is_package_call,
    return_values,
    returns_error,
)
from goplane.syntax.inspector import Inspector, function_name, line_col, text
from goplane.workspace.models import File, Workspace

STRING_LITERALS = ("interpreted_string_literal", "raw_string_literal")

GENERIC_MESSAGES = frozenset(
    {"", "error", "err", "failed", "failure", "fail", "something went wrong", "unexpected error"}
)

DEFAULT_CONTEXT = "operation failed"


class ViolationType(str, Enum):
    BARE_RETURN = "bare_return"
    FORMAT_VERB_V = "format_verb_v_instead_of_w"
    NO_CONTEXT = "no_context"

    def __str__(self) -> str:
        return self.value


class Severity(str, Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"

    def __str__(self) -> str:
        return self.value


# inclusive thresholds: warning also shows critical, info shows everything
_SEVERITY_RANK = {Severity.CRITICAL: 0, Severity.WARNING: 1, Severity.INFO: 2}


@dataclass
class ErrorWrappingViolation:
    file: str
    line: int
    column: int
    function: str
    violation_type: ViolationType
    current_code: str
    context_suggestion: str
    severity: Severity
    start: int = 0  # byte range of the expression a fix rewrites
    end: int = 0


def is_error_var_name(name: str) -> bool:
    lower = name.lower()
    return lower.endswith("err") or lower.endswith("error") or lower.startswith("err")


def is_generic_message(message: str) -> bool:
    return message.lower() in GENERIC_MESSAGES


def suggest_context(func_name: str) -> str:
    """Lower-cased words of a camel-case name: ``CreateOrder`` -> ``create order``."""
    if not func_name:
        return ""
    words: list[str] = []
    current = ""
    for i, ch in enumerate(func_name):
        if i > 0 and "A" <= ch <= "Z" and current:
            words.append(current.lower())
            current = ""
        current += ch
    if current:
        words.append(current.lower())
    return " ".join(words)


def message_without_verb(literal: str) -> str:
    inner = literal.strip('"`').replace("%w", "", 1).strip()
    return inner.rstrip(": ")


def fmt_errorf_call(node: Any) -> tuple[Any, Any] | None:
    """(format literal, last argument) of ``fmt.Errorf(<literal>, ...)``."""
    if not is_package_call(node, "fmt", "Errorf"):
        return None
    args = call_arguments(node)
    if len(args) < 2 or args[0].type not in STRING_LITERALS:
        return None
    return args[0], args[-1]


def _enclosing_function(cursor: Any) -> tuple[Any, str]:
    """Nearest function (literal or declared) and the declared function's name."""
    nearest = None
    for anc in cursor.ancestors():
        if anc.type == "func_literal" and nearest is None:
            nearest = anc.node
        elif anc.type in ("function_declaration", "method_declaration"):
            return (nearest if nearest is not None else anc.node), function_name(anc.node)
    return nearest, ""


class ErrorWrappingAnalyzer(Analyzer[ErrorWrappingViolation]):
    """Only functions declaring an ``error`` result are inspected."""

    def __init__(self, workspace: Workspace, severity: Severity | str = Severity.CRITICAL) -> None:
        super().__init__(workspace)
        self.severity = Severity(severity) if severity else Severity.CRITICAL

    def analyze_file(self, file: File) -> list[ErrorWrappingViolation]:
        results: list[ErrorWrappingViolation] = []
        for cursor in Inspector(file.root).preorder("return_statement"):
            fn, func = _enclosing_function(cursor)
            if fn is None or not returns_error(fn):
                continue
            for expr in return_values(cursor.node):
                for violation in (
                    self._check_bare_return(file, cursor.node, expr, func),
                    self._check_errorf(file, cursor.node, expr, func),
                ):
                    if violation is not None and self.matches_severity(violation.severity):
                        results.append(violation)
        return results

    def matches_severity(self, severity: Severity) -> bool:
        return _SEVERITY_RANK[severity] <= _SEVERITY_RANK[self.severity]

    def _violation(
        self,
        file: File,
        ret: Any,
        target: Any,
        func: str,
        kind: ViolationType,
        severity: Severity,
    ) -> ErrorWrappingViolation:
        line, column = line_col(ret)
        return ErrorWrappingViolation(
            file=file.path,
            line=line,
            column=column,
            function=func,
            violation_type=kind,
            current_code=text(ret).strip(),
            context_suggestion=suggest_context(func),
            severity=severity,
            start=target.start_byte,
            end=target.end_byte,
        )

    def _check_bare_return(self, file: File, ret: Any, expr: Any, func: str) -> ErrorWrappingViolation | None:
        if expr.type != "identifier" or not is_error_var_name(text(expr)):
            return None
        return self._violation(file, ret, expr, func, ViolationType.BARE_RETURN, Severity.CRITICAL)

    def _check_errorf(self, file: File, ret: Any, expr: Any, func: str) -> ErrorWrappingViolation | None:
        call = fmt_errorf_call(expr)
        if call is None:
            return None
        literal, last = call
        fmt = text(literal)

        if "%v" in fmt and "%w" not in fmt:
            if last.type == "identifier" and is_error_var_name(text(last)):
                return self._violation(
                    file, ret, literal, func, ViolationType.FORMAT_VERB_V, Severity.CRITICAL
                )

        if "%w" in fmt and is_generic_message(message_without_verb(fmt)):
            return self._violation(file, ret, literal, func, ViolationType.NO_CONTEXT, Severity.WARNING)
        return None
