"""If statements carrying a short-declare initializer (``if v, err := f(); err != nil``)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from goplane.analysis.base import Analyzer
from goplane.syntax.inspector import Inspector, enclosing_function, expressions, function_name, line_col, text
from goplane.workspace.models import File


@dataclass
class IfInitViolation:
    file: str
    line: int
    column: int
    variables: list[str]
    expression: str
    snippet: str
    function: str
    node: Any = field(default=None, repr=False, compare=False)


class IfInitAnalyzer(Analyzer[IfInitViolation]):
    def analyze_file(self, file: File) -> list[IfInitViolation]:
        results = []
        for cursor in Inspector(file.root).preorder("if_statement"):
            init = cursor.node.child_by_field_name("initializer")
            if init is None or init.type != "short_var_declaration":
                continue
            left = expressions(init.child_by_field_name("left"))
            line, column = line_col(cursor.node)
            fn = enclosing_function(cursor)
            results.append(
                IfInitViolation(
                    file=file.path,
                    line=line,
                    column=column,
                    variables=[text(n) for n in left if n.type == "identifier"],
                    expression=text(init.child_by_field_name("right")),
                    snippet=file.line_text(line).strip(),
                    function=function_name(fn) if fn is not None else "",
                    node=cursor.node,
                )
            )
        return results
