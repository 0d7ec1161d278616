"""Code-quality analyzers over a loaded workspace."""

from goplane.analysis.base import Analyzer, sort_violations
from goplane.analysis.boolean_branching import BooleanBranchingAnalyzer, BooleanBranchingViolation
from goplane.analysis.complexity import (
    ComplexityAnalyzer,
    ComplexityMetrics,
    ComplexityViolation,
    classify_complexity,
    format_complexity_report,
)
from goplane.analysis.deep_if_else import DeepIfElseAnalyzer, DeepIfElseViolation
from goplane.analysis.env_booleans import EnvBooleanAnalyzer, EnvBooleanViolation
from goplane.analysis.error_wrapping import (
    ErrorWrappingAnalyzer,
    ErrorWrappingViolation,
    Severity,
    ViolationType,
    suggest_context,
)
from goplane.analysis.if_init import IfInitAnalyzer, IfInitViolation
from goplane.analysis.missing_context import MissingContextAnalyzer, MissingContextViolation
from goplane.analysis.unused import UnusedAnalyzer, UnusedSymbol, format_unused_symbol

__all__ = [
    "Analyzer",
    "BooleanBranchingAnalyzer",
    "BooleanBranchingViolation",
    "ComplexityAnalyzer",
    "ComplexityMetrics",
    "ComplexityViolation",
    "DeepIfElseAnalyzer",
    "DeepIfElseViolation",
    "EnvBooleanAnalyzer",
    "EnvBooleanViolation",
    "ErrorWrappingAnalyzer",
    "ErrorWrappingViolation",
    "IfInitAnalyzer",
    "IfInitViolation",
    "MissingContextAnalyzer",
    "MissingContextViolation",
    "Severity",
    "UnusedAnalyzer",
    "UnusedSymbol",
    "ViolationType",
    "classify_complexity",
    "format_complexity_report",
    "format_unused_symbol",
    "sort_violations",
]
