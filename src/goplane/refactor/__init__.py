"""Fixers and the refactoring plans they produce."""

from goplane.refactor.boolean_branching import BooleanBranchingFixer, BooleanBranchingFixResult
from goplane.refactor.deep_if_else import DeepIfElseFixer, DeepIfElseFixResult, invert_condition
from goplane.refactor.error_wrapping import ErrorWrappingFixer, ErrorWrappingFixResult
from goplane.refactor.if_init import IfInitFixer
from goplane.refactor.plan import Change, RefactoringPlan, apply_changes, extract_indentation

__all__ = [
    "BooleanBranchingFixResult",
    "BooleanBranchingFixer",
    "Change",
    "DeepIfElseFixResult",
    "DeepIfElseFixer",
    "ErrorWrappingFixResult",
    "ErrorWrappingFixer",
    "IfInitFixer",
    "RefactoringPlan",
    "apply_changes",
    "extract_indentation",
    "invert_condition",
]
