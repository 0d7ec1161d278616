"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages,
and provides helpers that build workspaces from in-memory Go sources.
"""

import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# Insert local src directory at the beginning of sys.path
# This ensures that the local goplane package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

# Force reimport of goplane modules if already imported
for module_name in list(sys.modules.keys()):
    if module_name.startswith("goplane"):
        del sys.modules[module_name]

from goplane.index.resolver import SymbolResolver  # noqa: E402
from goplane.index.typeinfo import check_workspace  # noqa: E402
from goplane.workspace.loader import load_sources  # noqa: E402
from goplane.workspace.models import Workspace  # noqa: E402

MODULE_PATH = "example.com/m"

WorkspaceFactory = Callable[..., Workspace]


@pytest.fixture
def make_workspace(tmp_path: Path) -> WorkspaceFactory:
    """Build a workspace from ``{relative path: source}`` under tmp_path."""

    def _make(sources: dict[str, str], module_path: str | None = MODULE_PATH) -> Workspace:
        return load_sources(tmp_path, sources, module_path=module_path)

    return _make


@pytest.fixture
def make_resolver(make_workspace: WorkspaceFactory) -> Callable[..., SymbolResolver]:
    """Workspace plus resolver with symbol tables built; ``typed`` also runs the checker."""

    def _make(sources: dict[str, str], typed: bool = False) -> SymbolResolver:
        resolver = SymbolResolver(make_workspace(sources))
        resolver.build_all_symbol_tables()
        if typed:
            check_workspace(resolver.workspace, resolver)
        return resolver

    return _make
