"""Workspace loading from disk or from in-memory sources.

Directories are walked in sorted order; every directory holding ``.go``
files becomes a Package keyed by its absolute path. Files are parsed
sequentially with one tree-sitter parser and registered in one shared
file set.
"""

from __future__ import annotations

import os
from pathlib import Path

from goplane.config.models import WorkspaceConfig
from goplane.core.errors import RefactorError
from goplane.core.logging import get_logger
from goplane.syntax.parser import GoParser, ParseResult, import_specs, package_name
from goplane.workspace.models import File, Modification, ModificationKind, Module, Package, Workspace
from goplane.workspace.positions import FileSet

log = get_logger("workspace.loader")

GO_MOD = "go.mod"


def parse_go_mod(content: str) -> Module:
    """Module record from go.mod text. Only the ``module`` line is interpreted."""
    module_path = ""
    for raw in content.splitlines():
        line = raw.strip()
        if line.startswith("module ") or line.startswith("module\t"):
            module_path = line[len("module") :].strip().strip('"')
    return Module(path=module_path, go_mod=content)


def compute_import_path(workspace: Workspace, package_dir: str) -> str:
    """Import path of a package directory.

    Module path joined with the root-relative directory; without a module,
    the root-relative directory itself.
    """
    rel = os.path.relpath(package_dir, workspace.root).replace(os.sep, "/")
    if workspace.module is None or not workspace.module.path:
        return "" if rel == "." else rel
    if rel == ".":
        return workspace.module.path
    return f"{workspace.module.path}/{rel}"


class _Builder:
    """Accumulates parsed files into a Workspace."""

    def __init__(self, root: str, *, allow_syntax_errors: bool) -> None:
        self.parser = GoParser()
        self.workspace = Workspace(
            root=root,
            file_set=FileSet(),
            allow_syntax_errors=allow_syntax_errors,
        )

    def add_file(self, path: str, content: bytes) -> File:
        result = self.parser.parse(Path(path), content)
        self._check_syntax(path, result)
        source = self.workspace.file_set.add_file(path, content)
        file = File(
            path=path,
            content=content,
            tree=result.tree,
            source=source,
            is_test=path.endswith("_test.go"),
        )

        pkg_dir = os.path.dirname(path)
        pkg = self.workspace.packages.get(pkg_dir)
        if pkg is None:
            pkg = Package(name="", path=pkg_dir, import_path="")
            self.workspace.packages[pkg_dir] = pkg
        file.package = pkg
        if file.is_test:
            pkg.test_files[path] = file
        else:
            pkg.files[path] = file
            if not pkg.name:
                pkg.name = package_name(file.root)
        for spec in import_specs(file.root):
            if spec.path not in pkg.imports:
                pkg.imports.append(spec.path)
        return file

    def _check_syntax(self, path: str, result: ParseResult) -> None:
        if not result.has_errors:
            return
        line, col = result.first_error or (0, 0)
        if self.workspace.allow_syntax_errors:
            log.warning("syntax_errors_kept", file=path, errors=result.error_count, line=line)
            return
        raise RefactorError.parse_error(path, "syntax error", line=line, column=col)

    def finish(self) -> Workspace:
        ws = self.workspace
        for pkg in ws.packages.values():
            if not pkg.name:
                for file in pkg.test_files.values():
                    pkg.name = package_name(file.root)
                    if pkg.name:
                        break
            pkg.import_path = compute_import_path(ws, pkg.path)
            if pkg.import_path:
                ws.import_to_path[pkg.import_path] = pkg.path
        return ws


def load_workspace(root: str | Path, config: WorkspaceConfig | None = None) -> Workspace:
    """Load every Go package under ``root``.

    Raises:
        RefactorError: FILE_SYSTEM_ERROR when the tree cannot be read,
            PARSE_ERROR for files with syntax errors (unless allowed).
    """
    config = config or WorkspaceConfig()
    root_path = Path(root).resolve()
    if not root_path.is_dir():
        raise RefactorError.file_system_error(str(root_path), "not a directory")

    log.info("workspace_load_start", root=str(root_path))
    builder = _Builder(str(root_path), allow_syntax_errors=config.allow_syntax_errors)

    go_mod = root_path / GO_MOD
    if go_mod.is_file():
        try:
            builder.workspace.module = parse_go_mod(go_mod.read_text(encoding="utf-8"))
        except OSError as e:
            raise RefactorError.file_system_error(str(go_mod), str(e), cause=e) from e

    skip = set(config.skip_dirs)

    def _on_error(err: OSError) -> None:
        raise RefactorError.file_system_error(str(err.filename), err.strerror or str(err), cause=err)

    for dirpath, dirnames, filenames in os.walk(root_path, onerror=_on_error):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in skip)
        for filename in sorted(filenames):
            if not filename.endswith(".go"):
                continue
            path = os.path.join(dirpath, filename)
            try:
                content = Path(path).read_bytes()
            except OSError as e:
                raise RefactorError.file_system_error(path, str(e), cause=e) from e
            builder.add_file(path, content)

    ws = builder.finish()
    log.info(
        "workspace_loaded",
        packages=len(ws.packages),
        files=len(ws.file_set),
        module=ws.module.path if ws.module else None,
    )
    return ws


def load_sources(
    root: str | Path,
    sources: dict[str, str],
    *,
    module_path: str | None = None,
    allow_syntax_errors: bool = False,
) -> Workspace:
    """Build a workspace from in-memory sources keyed by root-relative path.

    A ``go.mod`` entry in ``sources`` is honoured; ``module_path`` overrides it.
    """
    root_str = str(Path(root))
    builder = _Builder(root_str, allow_syntax_errors=allow_syntax_errors)
    if GO_MOD in sources:
        builder.workspace.module = parse_go_mod(sources[GO_MOD])
    if module_path is not None:
        builder.workspace.module = Module(path=module_path)
    for rel in sorted(sources):
        if not rel.endswith(".go"):
            continue
        builder.add_file(str(Path(root_str) / rel), sources[rel].encode("utf-8"))
    ws = builder.finish()
    log.debug("workspace_built_from_sources", packages=len(ws.packages), files=len(ws.file_set))
    return ws


def apply_modifications(content: bytes, modifications: list[Modification]) -> bytes:
    """Apply modifications in order; each offset refers to the content at that step."""
    result = content
    for mod in modifications:
        new = mod.new_text.encode("utf-8")
        if mod.kind == ModificationKind.INSERT:
            result = result[: mod.start] + new + result[mod.start :]
        elif mod.kind == ModificationKind.DELETE:
            result = result[: mod.start] + result[mod.end :]
        else:
            result = result[: mod.start] + new + result[mod.end :]
    return result


def update_file(
    workspace: Workspace, path: str, modifications: list[Modification] | None = None
) -> File:
    """Apply pending modifications to a file and re-parse it in place.

    The file receives a fresh base in the workspace file set, so symbol tables
    and scope trees for its package must be rebuilt afterwards.
    """
    file = workspace.find_file(path)
    if file is None:
        raise RefactorError.file_system_error(path, "file is not part of the workspace")
    if modifications:
        file.modifications.extend(modifications)
    if not file.modifications:
        return file

    content = apply_modifications(file.content, file.modifications)
    parser = GoParser()
    result = parser.parse(Path(path), content)
    if result.has_errors and not workspace.allow_syntax_errors:
        line, col = result.first_error or (0, 0)
        raise RefactorError.parse_error(path, "re-parse of modified file failed", line=line, column=col)

    file.content = content
    file.tree = result.tree
    file.source = workspace.file_set.add_file(path, content)
    file.modifications = []
    log.debug("file_updated", file=path, size=len(content))
    return file
