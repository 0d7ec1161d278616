"""Add context to error returns using ``fmt.Errorf`` with ``%w``."""

from __future__ import annotations

from dataclasses import dataclass

from goplane.analysis.error_wrapping import (
    DEFAULT_CONTEXT,
    ErrorWrappingAnalyzer,
    ErrorWrappingViolation,
    Severity,
    ViolationType,
)
from goplane.core.logging import get_logger
from goplane.refactor.plan import Change, RefactoringPlan, select_package
from goplane.workspace.models import Workspace

log = get_logger("refactor.error_wrapping")


@dataclass
class ErrorWrappingFixResult:
    errors_wrapped: int = 0
    format_verbs_fixed: int = 0
    contexts_added: int = 0


class ErrorWrappingFixer:
    def __init__(self, workspace: Workspace, severity: Severity | str = Severity.CRITICAL) -> None:
        self.workspace = workspace
        self.severity = severity

    def fix(self, package: str | None = None) -> tuple[RefactoringPlan, ErrorWrappingFixResult]:
        analyzer = ErrorWrappingAnalyzer(self.workspace, self.severity)
        plan = RefactoringPlan()
        result = ErrorWrappingFixResult()
        for pkg in select_package(self.workspace, package):
            for violation in analyzer.analyze_package(pkg):
                change = self.build_change(violation)
                if change is None:
                    continue
                plan.add(change)
                if violation.violation_type == ViolationType.BARE_RETURN:
                    result.errors_wrapped += 1
                elif violation.violation_type == ViolationType.FORMAT_VERB_V:
                    result.format_verbs_fixed += 1
                else:
                    result.contexts_added += 1
        return plan, result

    def build_change(self, violation: ErrorWrappingViolation) -> Change | None:
        file = self.workspace.find_file(violation.file)
        if file is None or violation.start >= violation.end:
            return None
        old = file.slice(violation.start, violation.end)
        context = violation.context_suggestion or DEFAULT_CONTEXT

        if violation.violation_type == ViolationType.BARE_RETURN:
            new = f'fmt.Errorf("{context}: %w", {old})'
            description = "Wrap bare error return with context"
        elif violation.violation_type == ViolationType.FORMAT_VERB_V:
            new = old.replace("%v", "%w", 1)
            description = "Replace %v with %w in error format string"
        elif violation.violation_type == ViolationType.NO_CONTEXT:
            new = f'"{context}: %w"'
            description = "Replace generic error message with descriptive context"
        else:
            log.debug("error_wrapping_fix_skipped", file=file.path, line=violation.line)
            return None

        return Change(
            file=file.path,
            start=violation.start,
            end=violation.end,
            old_text=old,
            new_text=new,
            description=description,
        )
