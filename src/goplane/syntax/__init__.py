"""Go syntax front-end: tree-sitter parsing and cursor inspection."""

from goplane.syntax.inspector import Cursor, Inspector
from goplane.syntax.parser import GoParser, ImportSpec, ParseResult, import_specs, package_name

__all__ = [
    "Cursor",
    "GoParser",
    "ImportSpec",
    "Inspector",
    "ParseResult",
    "import_specs",
    "package_name",
]
