"""Refactoring plans: byte-range edits against original file content.

Offsets are 0-based byte offsets into a file's original content with an
exclusive end. ``old_text`` is the original slice, so an applier can check
the file has not drifted before writing.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from goplane.core.errors import InternalError
from goplane.workspace.models import File, Package, Workspace
from goplane.workspace.paths import resolve_package_path


@dataclass(frozen=True)
class Change:
    file: str
    start: int
    end: int
    old_text: str
    new_text: str
    description: str


@dataclass
class RefactoringPlan:
    changes: list[Change] = field(default_factory=list)
    affected_files: list[str] = field(default_factory=list)

    def add(self, change: Change) -> None:
        self.changes.append(change)
        if change.file not in self.affected_files:
            self.affected_files.append(change.file)

    def changes_for(self, path: str) -> list[Change]:
        return [c for c in self.changes if c.file == path]

    def validate(self, workspace: Workspace) -> None:
        """Raise InternalError if changes overlap or no longer match the source."""
        by_file: dict[str, list[Change]] = {}
        for change in self.changes:
            by_file.setdefault(change.file, []).append(change)

        for path, changes in by_file.items():
            file = workspace.find_file(path)
            if file is None:
                raise InternalError.unexpected("change targets unknown file", file=path)
            ordered = sorted(changes, key=lambda c: (c.start, c.end))
            for prev, cur in zip(ordered, ordered[1:]):
                if cur.start < prev.end:
                    raise InternalError.unexpected(
                        "overlapping changes",
                        file=path,
                        first=[prev.start, prev.end],
                        second=[cur.start, cur.end],
                    )
            for change in ordered:
                if file.slice(change.start, change.end) != change.old_text:
                    raise InternalError.unexpected(
                        "change text does not match source",
                        file=path,
                        start=change.start,
                        end=change.end,
                    )


def apply_changes(content: bytes, changes: Iterable[Change]) -> bytes:
    """Apply one file's changes, last offset first so earlier offsets stay valid."""
    result = content
    for change in sorted(changes, key=lambda c: c.start, reverse=True):
        result = result[: change.start] + change.new_text.encode("utf-8") + result[change.end :]
    return result


def extract_indentation(content: bytes, offset: int) -> str:
    """Leading whitespace of the line containing ``offset``."""
    line_start = content.rfind(b"\n", 0, offset) + 1
    end = line_start
    while end < len(content) and content[end] in b" \t":
        end += 1
    return content[line_start:end].decode("utf-8")


def line_span(content: bytes, start: int, end: int) -> tuple[int, int]:
    """Whole lines covering ``[start, end)``, trailing newline included."""
    line_start = content.rfind(b"\n", 0, start) + 1
    newline = content.find(b"\n", end)
    line_end = len(content) if newline == -1 else newline + 1
    return line_start, line_end


def reindent(body: str, old_indent: str, new_indent: str) -> str:
    """Move the lines after the first from ``old_indent`` to ``new_indent``.

    The first line is assumed to start right where the text is inserted.
    Blank lines stay empty.
    """
    lines = body.split("\n")
    out = [lines[0]]
    for line in lines[1:]:
        if not line.strip():
            out.append("")
            continue
        if old_indent and line.startswith(old_indent):
            line = line[len(old_indent) :]
        out.append(new_indent + line)
    return "\n".join(out)


def block_text(file: File, block: Any) -> tuple[str, str]:
    """Everything between a block's braces, comments included, and its indentation.

    Leading and trailing blank space is dropped. The indentation is taken
    from the first statement, so a comment sharing the line of ``{`` does
    not shift the rest of the body.
    """
    if block is None:
        return "", ""
    items: list[Any] = []
    for child in block.named_children:
        if child.type == "statement_list":
            items.extend(child.named_children)
        else:
            items.append(child)
    if not items:
        return "", ""
    statements = [n for n in items if n.type != "comment"]
    anchor = statements[0] if statements else items[0]
    return (
        file.slice(items[0].start_byte, items[-1].end_byte),
        extract_indentation(file.content, anchor.start_byte),
    )


def select_package(workspace: Workspace, package: str | None) -> list[Package]:
    """Packages a fixer runs over: all, one, or none when the selector is unknown."""
    if not package:
        return list(workspace.packages.values())
    resolved = resolve_package_path(workspace, package)
    pkg = workspace.packages.get(resolved)
    return [pkg] if pkg is not None else []
