"""Map user-supplied package selectors to workspace package keys."""

from __future__ import annotations

import os

from goplane.workspace.models import Workspace


def resolve_package_path(workspace: Workspace, user_path: str) -> str:
    """Resolve a package selector.

    Tried in order: exact key, path relative to the workspace root, ``"."``
    for the root package, then a package name if exactly one package has it.
    Unmatched input is returned unchanged so callers can report it.
    """
    if user_path in workspace.packages:
        return user_path

    joined = os.path.normpath(os.path.join(workspace.root, user_path))
    if joined in workspace.packages:
        return joined

    if user_path == "." and workspace.root in workspace.packages:
        return workspace.root

    matches = [path for path, pkg in workspace.packages.items() if pkg.name == user_path]
    if len(matches) == 1:
        return matches[0]

    return user_path
