from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .errors import ExecutionError


class Symbol(str):
    """Bare header value, emitted verbatim in declarations."""

    def __repr__(self) -> str:
        return f"Symbol({str.__repr__(self)})"


VariableBinding = Tuple[str, Any]


@dataclass
class BlockParams:
    n: int | None = None
    options: str | None = None
    instance: Path | None = None
    results: str = "output"
    # declarative only; shown by the blocks command
    exports: str = "both"
    bindings: List[VariableBinding] = field(default_factory=list)
    eval: bool = True
    tangle: str | None = None

    @property
    def silent(self) -> bool:
        return "silent" in self.results.split()


@dataclass
class Invocation:
    executable: str
    source_path: Path
    n: int | None = None
    options: str | None = None
    instance: Path | None = None


@dataclass
class ExecutionResult:
    stdout: str
    stderr: str
    exit_code: int | None
    command: str = ""
    wall_time: float = 0.0

    @property
    def failed(self) -> bool:
        # Positive exit codes carry the solver's satisfiability result.
        if not isinstance(self.exit_code, int) or isinstance(self.exit_code, bool):
            return True
        return self.exit_code < 0 or bool(self.stderr)

    def check(self) -> "ExecutionResult":
        if self.failed:
            raise ExecutionError(self.exit_code, self.stderr, self.command)
        return self


@dataclass
class BlockResult:
    output: str
    execution: ExecutionResult | None = None
    error: ExecutionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SourceBlock:
    language: str
    header: str
    params: Dict[str, Any]
    body: str
    begin: int
    end: int
    name: str | None = None
    results_span: Tuple[int, int] | None = None
