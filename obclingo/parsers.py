from __future__ import annotations

import re
import textwrap
from pathlib import Path
from typing import Any, Dict, List

from .config import Config
from .models import BlockParams, SourceBlock, Symbol, VariableBinding

TOKEN_RE = re.compile(r'(?:"(?:[^"\\]|\\.)*"|[^\s"])+')
BINDING_RE = re.compile(r'([A-Za-z_][\w\']*)\s*=\s*("(?:[^"\\]|\\.)*"|[^,\s]+)')
INT_RE = re.compile(r"^[+-]?\d+$")
FLOAT_RE = re.compile(r"^[+-]?(\d+\.\d*|\.\d+)([eE][+-]?\d+)?$")

BEGIN_RE = re.compile(r"^[ \t]*#\+begin_src[ \t]+(?P<lang>\S+)(?P<header>.*)$", re.IGNORECASE)
END_RE = re.compile(r"^[ \t]*#\+end_src\b", re.IGNORECASE)
NAME_RE = re.compile(r"^[ \t]*#\+name:[ \t]*(?P<name>.*?)[ \t]*$", re.IGNORECASE)
RESULTS_RE = re.compile(r"^[ \t]*#\+results(?:\[[^\]]*\])?:", re.IGNORECASE)
FIXED_WIDTH_RE = re.compile(r"^[ \t]*:( |$)")
BEGIN_EXAMPLE_RE = re.compile(r"^[ \t]*#\+begin_example\b", re.IGNORECASE)
END_EXAMPLE_RE = re.compile(r"^[ \t]*#\+end_example\b", re.IGNORECASE)

FALSE_VALUES = {"no", "nil", "never", "false"}


ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}
COMMA_ESCAPE_RE = re.compile(r"^([ \t]*),(?=\*|#\+)", re.MULTILINE)


def _unescape(match: re.Match) -> str:
    char = match.group(1)
    return ESCAPES.get(char, "\\" + char)


def _unquote(token: str) -> str:
    if len(token) >= 2 and token.startswith('"') and token.endswith('"'):
        return re.sub(r"\\(.)", _unescape, token[1:-1])
    return token


def parse_header_args(text: str) -> Dict[str, Any]:
    """
    Parse an Org header argument string such as
    ``:n 0 :options "--opt-mode=optN" :var x=5, y="a"``.

    Values are joined back with single spaces; a value made of one quoted
    token is unquoted. ``:var`` may repeat and is collected as a list of raw
    binding strings. Flags without a value map to an empty string.
    """
    params: Dict[str, Any] = {}
    key: str | None = None
    values: List[str] = []

    def flush() -> None:
        if key is None:
            return
        if key == "var":
            if values:
                params.setdefault("var", []).append(" ".join(values))
            return
        if len(values) == 1:
            params[key] = _unquote(values[0])
        else:
            params[key] = " ".join(values)

    for token in TOKEN_RE.findall(text or ""):
        if token.startswith(":") and len(token) > 1:
            flush()
            key = token[1:].lower()
            values = []
        elif key is not None:
            values.append(token)
    flush()
    return params


def parse_value(raw: str) -> Any:
    if raw.startswith('"'):
        return _unquote(raw)
    if INT_RE.match(raw):
        return int(raw)
    if FLOAT_RE.match(raw):
        return float(raw)
    return Symbol(raw)


def parse_var_bindings(text: str) -> List[VariableBinding]:
    return [(m.group(1), parse_value(m.group(2))) for m in BINDING_RE.finditer(text or "")]


def _collect_bindings(raw: Any) -> List[VariableBinding]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return parse_var_bindings(raw)
    if isinstance(raw, dict):
        return list(raw.items())
    bindings: List[VariableBinding] = []
    for item in raw:
        if isinstance(item, (tuple, list)) and len(item) == 2:
            bindings.append((str(item[0]), item[1]))
        else:
            bindings.extend(_collect_bindings(item))
    return bindings


def parse_count(value: Any) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid model count: {value!r}")
    if isinstance(value, int):
        count = value
    elif isinstance(value, str) and INT_RE.match(value.strip()):
        count = int(value.strip())
    else:
        raise ValueError(f"Invalid model count: {value!r}")
    if count < 0:
        raise ValueError(f"Model count must be non-negative: {count}")
    return count


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def resolve_params(params: Dict[str, Any], config: Config) -> BlockParams:
    """Merge block header arguments over the configured defaults."""
    defaults = config.defaults
    merged: Dict[str, Any] = dict(defaults)
    merged.update({k: v for k, v in params.items() if k != "var"})

    bindings = _collect_bindings(defaults.get("var")) + _collect_bindings(params.get("var"))

    instance = _optional_str(merged.get("instance"))
    tangle = _optional_str(merged.get("tangle"))
    if tangle is not None and tangle.lower() in FALSE_VALUES:
        tangle = None
    eval_value = str(merged.get("eval", "yes")).strip().lower()

    return BlockParams(
        n=parse_count(merged.get("n")),
        options=_optional_str(merged.get("options")),
        instance=Path(instance) if instance else None,
        results=str(merged.get("results") or "output"),
        exports=str(merged.get("exports") or "both"),
        bindings=bindings,
        eval=eval_value not in FALSE_VALUES,
        tangle=tangle,
    )


def _results_span(lines: List[str], start: int) -> tuple[int, int] | None:
    j = start
    while j < len(lines) and not lines[j].strip():
        j += 1
    if j >= len(lines) or not RESULTS_RE.match(lines[j]):
        return None
    k = j + 1
    if k < len(lines) and BEGIN_EXAMPLE_RE.match(lines[k]):
        while k < len(lines) and not END_EXAMPLE_RE.match(lines[k]):
            k += 1
        if k >= len(lines):
            raise ValueError(f"Unterminated example block in results starting at line {j + 1}")
        return j, k + 1
    while k < len(lines) and FIXED_WIDTH_RE.match(lines[k]):
        k += 1
    return j, k


def find_blocks(text: str, language: str = "clingo") -> List[SourceBlock]:
    lines = text.splitlines()
    blocks: List[SourceBlock] = []
    name: str | None = None
    i = 0
    while i < len(lines):
        line = lines[i]
        name_match = NAME_RE.match(line)
        if name_match:
            name = name_match.group("name") or None
            i += 1
            continue

        begin = BEGIN_RE.match(line)
        if not begin:
            if line.strip():
                name = None
            i += 1
            continue

        end = i + 1
        while end < len(lines) and not END_RE.match(lines[end]):
            end += 1
        if end >= len(lines):
            raise ValueError(f"Unterminated source block starting at line {i + 1}")

        if begin.group("lang").lower() == language.lower():
            header = begin.group("header").strip()
            body = textwrap.dedent("\n".join(lines[i + 1 : end]))
            body = COMMA_ESCAPE_RE.sub(r"\1", body)
            blocks.append(
                SourceBlock(
                    language=begin.group("lang"),
                    header=header,
                    params=parse_header_args(header),
                    body=body,
                    begin=i,
                    end=end,
                    name=name,
                    results_span=_results_span(lines, end + 1),
                )
            )
        name = None
        i = end + 1
    return blocks


STATUS_PATTERNS = [
    ("UNSAT", re.compile(r"^UNSATISFIABLE\b", re.MULTILINE)),
    ("OPTIMUM", re.compile(r"^OPTIMUM FOUND\b", re.MULTILINE)),
    ("SAT", re.compile(r"^SATISFIABLE\b", re.MULTILINE)),
    ("UNKNOWN", re.compile(r"^UNKNOWN\b", re.MULTILINE)),
]
ANSWER_RE = re.compile(r"^Answer:\s*(\d+)")


def parse_solver_output(stdout: str) -> str:
    if not stdout:
        return "UNKNOWN"
    for status, pattern in STATUS_PATTERNS:
        if pattern.search(stdout):
            return status
    return "UNKNOWN"


def extract_answer_sets(stdout: str) -> List[List[str]]:
    answers: List[List[str]] = []
    lines = (stdout or "").splitlines()
    for idx, line in enumerate(lines):
        if ANSWER_RE.match(line.strip()):
            atoms = lines[idx + 1].split() if idx + 1 < len(lines) else []
            answers.append(atoms)
    return answers


def exit_code_status(code: int | None) -> str:
    """
    Map a clingo exit code to a status.

    clingo adds 1 (interrupted), 10 (satisfiable) and 20 (search space
    exhausted); codes from 33 up report memory errors, errors or no run.
    """
    if code is None or code < 0 or code >= 33:
        return "ERROR"
    satisfiable = code % 20 >= 10
    exhausted = code >= 20
    if satisfiable:
        return "SAT"
    if exhausted:
        return "UNSAT"
    return "UNKNOWN"


def summarize(stdout: str, exit_code: int | None) -> str:
    result = parse_solver_output(stdout)
    if result == "UNKNOWN":
        by_code = exit_code_status(exit_code)
        if by_code in {"SAT", "UNSAT"}:
            result = by_code
    return result
