from __future__ import annotations

from typing import Any, Iterable

from .models import Symbol, VariableBinding


def _quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def format_value(value: Any) -> str:
    """
    Render a header value as a clingo term.

    Numbers are printed as literals, Symbol values verbatim, strings as quoted
    clingo strings and sequences as tuples. Anything else is quoted via str().
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Symbol):
        return str(value)
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return _quote(value)
    if isinstance(value, (list, tuple)):
        items = [format_value(item) for item in value]
        if len(items) == 1:
            return f"({items[0]},)"
        return "(" + ",".join(items) + ")"
    return _quote(str(value))


def declare_const(name: str, value: Any) -> str:
    return f"#const {name} = {format_value(value)}."


def expand_body(body: str, bindings: Iterable[VariableBinding]) -> str:
    lines = [declare_const(name, value) for name, value in bindings]
    lines.append(body)
    return "\n".join(lines) + "\n"
