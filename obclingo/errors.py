from __future__ import annotations


class SolverError(RuntimeError):
    """Base error for solver invocation problems."""


class ToolNotFound(SolverError):
    def __init__(self, executable: str, reason: str = "not found") -> None:
        super().__init__(f"Solver executable {reason}: {executable}")
        self.executable = executable


class ExecutionError(SolverError):
    """Solver run classified as failed. Carries the exit code and stderr."""

    def __init__(self, exit_code: int | None, stderr: str, command: str = "") -> None:
        detail = stderr.strip() or "<no stderr>"
        super().__init__(f"Solver exited with code {exit_code}: {detail}")
        self.exit_code = exit_code
        self.stderr = stderr
        self.command = command
