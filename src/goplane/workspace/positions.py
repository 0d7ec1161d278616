"""Workspace-wide positional index.

Every file gets a base in one shared file set, so a single integer ``Pos``
identifies a byte in a specific file and positions from different files are
comparable. ``Pos = base + byte offset``; the first base is 1 and ``0`` means
"no position".
"""

from __future__ import annotations

import bisect
import threading
from dataclasses import dataclass, field

NO_POS = 0


@dataclass(frozen=True, slots=True)
class Position:
    """Decoded position: 1-based line and byte column."""

    filename: str
    offset: int
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


@dataclass
class SourceFile:
    """Positional record for one file."""

    name: str
    base: int
    size: int
    line_starts: list[int] = field(default_factory=lambda: [0])

    def pos(self, offset: int) -> int:
        return self.base + offset

    def offset(self, pos: int) -> int:
        return pos - self.base

    def contains(self, pos: int) -> bool:
        return self.base <= pos <= self.base + self.size

    def line_col(self, offset: int) -> tuple[int, int]:
        idx = bisect.bisect_right(self.line_starts, offset) - 1
        return idx + 1, offset - self.line_starts[idx] + 1

    def line_start(self, line: int) -> int:
        return self.line_starts[line - 1]


class FileSet:
    """Assigns bases to files and decodes positions."""

    def __init__(self) -> None:
        self._files: list[SourceFile] = []
        self._by_name: dict[str, SourceFile] = {}
        self._next_base = 1
        self._lock = threading.Lock()

    def add_file(self, name: str, content: bytes) -> SourceFile:
        """Register a file and return its record. Re-adding replaces the old record."""
        with self._lock:
            starts = [0]
            for i, byte in enumerate(content):
                if byte == 0x0A:
                    starts.append(i + 1)
            sf = SourceFile(name=name, base=self._next_base, size=len(content), line_starts=starts)
            self._next_base += len(content) + 1
            old = self._by_name.get(name)
            if old is not None:
                self._files.remove(old)
            self._files.append(sf)
            self._by_name[name] = sf
            return sf

    def file(self, name: str) -> SourceFile | None:
        return self._by_name.get(name)

    def file_for_pos(self, pos: int) -> SourceFile | None:
        for sf in self._files:
            if sf.contains(pos):
                return sf
        return None

    def position(self, pos: int) -> Position | None:
        sf = self.file_for_pos(pos)
        if sf is None:
            return None
        offset = sf.offset(pos)
        line, col = sf.line_col(offset)
        return Position(filename=sf.name, offset=offset, line=line, column=col)

    def __len__(self) -> int:
        return len(self._files)
