"""One analysis run over a workspace with resolved configuration.

``Session.open`` loads config and the workspace, builds symbol tables and
(optionally) type info, and tags every log line of the run with a run id.
Analyzer and fixer methods read their options from ``config.analyzers``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from goplane.analysis import (
    BooleanBranchingAnalyzer,
    BooleanBranchingViolation,
    ComplexityAnalyzer,
    ComplexityViolation,
    DeepIfElseAnalyzer,
    DeepIfElseViolation,
    EnvBooleanAnalyzer,
    EnvBooleanViolation,
    ErrorWrappingAnalyzer,
    ErrorWrappingViolation,
    IfInitAnalyzer,
    IfInitViolation,
    MissingContextAnalyzer,
    MissingContextViolation,
    UnusedAnalyzer,
    UnusedSymbol,
    sort_violations,
)
from goplane.analysis.base import Analyzer
from goplane.analysis.complexity import sort_by_complexity
from goplane.config.loader import load_config
from goplane.config.models import GoPlaneConfig
from goplane.core.logging import bind_run, get_logger
from goplane.index.dependencies import DependencyAnalyzer, DependencyGraph
from goplane.index.resolver import SymbolResolver
from goplane.index.typeinfo import check_workspace
from goplane.refactor import (
    BooleanBranchingFixer,
    BooleanBranchingFixResult,
    DeepIfElseFixer,
    DeepIfElseFixResult,
    ErrorWrappingFixer,
    ErrorWrappingFixResult,
    IfInitFixer,
    RefactoringPlan,
)
from goplane.workspace.loader import load_workspace
from goplane.workspace.models import Workspace
from goplane.workspace.paths import resolve_package_path

log = get_logger("session")


class Session:
    """Analyzers and fixers bound to one workspace and one configuration."""

    def __init__(
        self,
        workspace: Workspace,
        config: GoPlaneConfig | None = None,
        resolver: SymbolResolver | None = None,
    ) -> None:
        self.workspace = workspace
        self.config = config or GoPlaneConfig()
        self.resolver = resolver or SymbolResolver(workspace)
        self.run_id = bind_run(workspace.root)

    @classmethod
    def open(cls, root: str | Path, **overrides: Any) -> Session:
        """Load config and workspace from ``root`` and prepare the index layer."""
        root = Path(root)
        config = load_config(root, **overrides)
        workspace = load_workspace(root, config.workspace)
        session = cls(workspace, config)
        session.prepare()
        return session

    def prepare(self) -> None:
        """Build symbol tables, and type info when enabled."""
        self.resolver.build_all_symbol_tables()
        if self.config.index.type_check:
            check_workspace(self.workspace, self.resolver)
        log.info(
            "session_ready",
            root=self.workspace.root,
            packages=len(self.workspace.packages),
            type_check=self.config.index.type_check,
        )

    # -- analyzers -----------------------------------------------------------

    def _run(self, analyzer: Analyzer[Any], package: str | None) -> list[Any]:
        if not package:
            return sort_violations(analyzer.analyze_workspace())
        pkg = self.workspace.packages.get(resolve_package_path(self.workspace, package))
        if pkg is None:
            return []
        return sort_violations(analyzer.analyze_package(pkg))

    def deep_if_else(self, package: str | None = None) -> list[DeepIfElseViolation]:
        opts = self.config.analyzers.deep_if_else
        return self._run(DeepIfElseAnalyzer(self.workspace, opts.max_nesting, opts.min_else_lines), package)

    def boolean_branching(self, package: str | None = None) -> list[BooleanBranchingViolation]:
        opts = self.config.analyzers.boolean_branching
        return self._run(BooleanBranchingAnalyzer(self.workspace, opts.min_branches), package)

    def error_wrapping(self, package: str | None = None) -> list[ErrorWrappingViolation]:
        opts = self.config.analyzers.error_wrapping
        return self._run(ErrorWrappingAnalyzer(self.workspace, opts.severity), package)

    def missing_context(self, package: str | None = None) -> list[MissingContextViolation]:
        return self._run(MissingContextAnalyzer(self.workspace), package)

    def env_booleans(self, package: str | None = None) -> list[EnvBooleanViolation]:
        opts = self.config.analyzers.env_booleans
        return self._run(EnvBooleanAnalyzer(self.workspace, opts.max_depth), package)

    def if_init(self, package: str | None = None) -> list[IfInitViolation]:
        return self._run(IfInitAnalyzer(self.workspace), package)

    def complexity(self, package: str | None = None) -> list[ComplexityViolation]:
        """Functions at or above the configured complexity, most complex first."""
        opts = self.config.analyzers.complexity
        analyzer = ComplexityAnalyzer(self.workspace, opts.min_complexity)
        return sort_by_complexity(self._run(analyzer, package))

    def unused(self) -> list[UnusedSymbol]:
        analyzer = UnusedAnalyzer(
            self.workspace,
            self.resolver,
            include_exported=self.config.analyzers.unused.include_exported,
            max_workers=self.config.index.max_workers,
        )
        return sort_violations(analyzer.find_unused_symbols())

    def dependencies(self) -> DependencyGraph:
        return DependencyAnalyzer(self.workspace).build_dependency_graph()

    def analyze_all(self) -> dict[str, list[Any]]:
        """Every analyzer's findings keyed by analyzer name."""
        results: dict[str, list[Any]] = {
            "deep_if_else": self.deep_if_else(),
            "boolean_branching": self.boolean_branching(),
            "error_wrapping": self.error_wrapping(),
            "missing_context": self.missing_context(),
            "env_booleans": self.env_booleans(),
            "if_init": self.if_init(),
            "complexity": self.complexity(),
            "unused": self.unused(),
        }
        log.info("analysis_done", **{name: len(found) for name, found in results.items()})
        return results

    # -- fixers --------------------------------------------------------------

    def fix_if_init(self, package: str | None = None) -> tuple[RefactoringPlan, list[IfInitViolation]]:
        return IfInitFixer(self.workspace).fix(package)

    def fix_boolean_branching(
        self, package: str | None = None
    ) -> tuple[RefactoringPlan, list[BooleanBranchingFixResult]]:
        opts = self.config.analyzers.boolean_branching
        return BooleanBranchingFixer(self.workspace, opts.min_branches).fix(package)

    def fix_deep_if_else(
        self, package: str | None = None
    ) -> tuple[RefactoringPlan, list[DeepIfElseFixResult]]:
        opts = self.config.analyzers.deep_if_else
        return DeepIfElseFixer(self.workspace, opts.max_nesting, opts.min_else_lines).fix(package)

    def fix_error_wrapping(
        self, package: str | None = None
    ) -> tuple[RefactoringPlan, ErrorWrappingFixResult]:
        opts = self.config.analyzers.error_wrapping
        return ErrorWrappingFixer(self.workspace, opts.severity).fix(package)
