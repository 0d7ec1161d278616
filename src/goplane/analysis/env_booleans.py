"""Environment booleans (``isProd``, ``debug``...) threaded through call stacks."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from goplane.analysis.base import Analyzer, call_arguments, function_declarations, parameters
from goplane.syntax.inspector import Inspector, function_name, line_col, text
from goplane.workspace.models import File, Workspace

DEFAULT_MAX_DEPTH = 1

ENV_BOOL_PATTERNS = frozenset(
    {
        "istest",
        "isprod",
        "isproduction",
        "isdev",
        "isdevelopment",
        "islocal",
        "isstaging",
        "isdebug",
        "testmode",
        "devmode",
        "debugmode",
        "prodmode",
        "production",
        "debug",
        "testing",
    }
)

INTERFACE_IMPLEMENTATION = "interface_implementation"
CONCRETE_VALUE = "concrete_value"

_MODE_HINTS = ("mode", "prod", "test", "dev", "staging", "local")


@dataclass
class EnvBooleanViolation:
    file: str
    line: int
    column: int
    function: str
    parameter_name: str
    parameter_type: str
    propagation_depth: int
    call_chain: list[str] = field(default_factory=list)
    suggested_pattern: str = INTERFACE_IMPLEMENTATION
    suggestion: str = ""


def is_env_bool_name(name: str) -> bool:
    return name.lower() in ENV_BOOL_PATTERNS


def suggest_env_pattern(name: str) -> str:
    lower = name.lower()
    if any(hint in lower for hint in _MODE_HINTS):
        return INTERFACE_IMPLEMENTATION
    if "debug" in lower:
        return CONCRETE_VALUE
    return INTERFACE_IMPLEMENTATION


def build_env_suggestion(name: str, pattern: str) -> str:
    if pattern == INTERFACE_IMPLEMENTATION:
        return (
            f"Replace '{name}' parameter with an interface. Define separate implementations "
            "for each environment (e.g., ProdService, TestService)"
        )
    if pattern == CONCRETE_VALUE:
        return (
            f"Replace '{name}' parameter with the concrete value it controls. "
            "Resolve the value at initialization time"
        )
    return f"Replace '{name}' with an interface or concrete value"


def callee_name(call: Any) -> str:
    fn = call.child_by_field_name("function")
    if fn is None:
        return ""
    if fn.type == "identifier":
        return text(fn)
    if fn.type == "selector_expression":
        operand = fn.child_by_field_name("operand")
        field_name = text(fn.child_by_field_name("field"))
        if operand is not None and operand.type == "identifier":
            return f"{text(operand)}.{field_name}"
        return field_name
    return ""


class EnvBooleanAnalyzer(Analyzer[EnvBooleanViolation]):
    """Flags ``bool`` parameters named after an environment mode.

    ``max_depth`` is the number of callees that must receive the flag
    unchanged before it is reported; 0 reports every such parameter.
    """

    def __init__(self, workspace: Workspace, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        super().__init__(workspace)
        self.max_depth = max_depth if max_depth >= 0 else DEFAULT_MAX_DEPTH

    def analyze_file(self, file: File) -> list[EnvBooleanViolation]:
        results = []
        for fn in function_declarations(file):
            results.extend(self._analyze_function(file, fn))
        return results

    def _analyze_function(self, file: File, fn: Any) -> list[EnvBooleanViolation]:
        results = []
        func = function_name(fn)
        for name_node, typ in parameters(fn):
            if typ is None or text(typ) != "bool":
                continue
            name = text(name_node)
            if not is_env_bool_name(name):
                continue
            chain = self.trace_propagation(fn, name)
            depth = len(chain) - 1
            if depth < self.max_depth:
                continue
            pattern = suggest_env_pattern(name)
            line, column = line_col(name_node)
            results.append(
                EnvBooleanViolation(
                    file=file.path,
                    line=line,
                    column=column,
                    function=func,
                    parameter_name=name,
                    parameter_type="bool",
                    propagation_depth=depth,
                    call_chain=chain,
                    suggested_pattern=pattern,
                    suggestion=build_env_suggestion(name, pattern),
                )
            )
        return results

    def trace_propagation(self, fn: Any, param: str) -> list[str]:
        """The function followed by every callee that receives ``param`` as-is."""
        chain = [function_name(fn)]
        body = fn.child_by_field_name("body")
        for cursor in Inspector(body).preorder("call_expression"):
            for arg in call_arguments(cursor.node):
                if arg.type == "identifier" and text(arg) == param:
                    callee = callee_name(cursor.node)
                    if callee:
                        chain.append(callee)
        return chain
