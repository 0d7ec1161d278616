"""Package dependency graph: direct imports, transitive closure, import cycles."""

from __future__ import annotations

from dataclasses import dataclass, field

from goplane.core.logging import get_logger
from goplane.syntax.parser import import_specs
from goplane.workspace.models import Package, Workspace

log = get_logger("index.dependencies")


@dataclass
class DependencyGraph:
    """Keys are package identifiers (import path, else directory)."""

    direct: dict[str, list[str]] = field(default_factory=dict)
    transitive: dict[str, list[str]] = field(default_factory=dict)
    cycles: list[list[str]] = field(default_factory=list)

    def imports_of(self, package: str) -> list[str]:
        return self.direct.get(package, [])

    def depends_on(self, package: str, other: str) -> bool:
        return other in self.transitive.get(package, [])


class DependencyAnalyzer:
    def __init__(self, workspace: Workspace) -> None:
        self._ws = workspace

    def build_dependency_graph(self) -> DependencyGraph:
        log.info("dependency_graph_build_start", packages=len(self._ws.packages))
        direct: dict[str, list[str]] = {}
        for pkg in self._ws.packages.values():
            imports = _package_imports(pkg)
            if imports:
                direct[pkg.identifier] = imports

        graph = DependencyGraph(
            direct=direct,
            transitive=transitive_closure(direct),
            cycles=find_cycles(direct),
        )
        for cycle in graph.cycles:
            log.warning("import_cycle_detected", cycle=" -> ".join([*cycle, cycle[0]]))
        self._ws.dependency_graph = graph
        log.info("dependency_graph_built", packages=len(direct), cycles=len(graph.cycles))
        return graph

    def detect_cycles(self) -> list[list[str]]:
        """Import cycles, building the graph first if needed."""
        if self._ws.dependency_graph is None:
            self.build_dependency_graph()
        assert self._ws.dependency_graph is not None
        return self._ws.dependency_graph.cycles


def _package_imports(pkg: Package) -> list[str]:
    """Deduplicated imports of the non-test files, first-seen order."""
    seen: dict[str, None] = {}
    for file in pkg.files.values():
        for spec in import_specs(file.root):
            seen.setdefault(spec.path, None)
    return list(seen)


def transitive_closure(direct: dict[str, list[str]]) -> dict[str, list[str]]:
    """Saturate until no edge is added. A package never lists itself."""
    result = {pkg: list(deps) for pkg, deps in direct.items()}
    changed = True
    while changed:
        changed = False
        for pkg, deps in result.items():
            for intermediate in list(deps):
                for dep in result.get(intermediate, []):
                    if dep != pkg and dep not in deps:
                        deps.append(dep)
                        changed = True
    return result


def find_cycles(direct: dict[str, list[str]]) -> list[list[str]]:
    """Depth-first search with a recursion stack; at most one cycle per root.

    A cycle is the path suffix starting at the first occurrence of the node
    that closed it.
    """
    visited: set[str] = set()
    on_stack: set[str] = set()
    cycles: list[list[str]] = []

    def dfs(pkg: str, path: list[str]) -> list[str] | None:
        visited.add(pkg)
        on_stack.add(pkg)
        path = [*path, pkg]
        for imp in direct.get(pkg, []):
            if imp not in visited:
                cycle = dfs(imp, path)
                if cycle is not None:
                    return cycle
            elif imp in on_stack:
                return path[path.index(imp) :]
        on_stack.discard(pkg)
        return None

    for pkg in direct:
        if pkg not in visited:
            cycle = dfs(pkg, [])
            if cycle is not None:
                cycles.append(cycle)
    return cycles
