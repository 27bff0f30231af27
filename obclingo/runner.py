from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import time
from pathlib import Path
from typing import Any, Dict

from .config import Config
from .errors import ExecutionError, SolverError, ToolNotFound
from .expand import expand_body
from .models import BlockParams, BlockResult, ExecutionResult, Invocation
from .parsers import resolve_params
from .utils import temp_source

__all__ = [
    "ExecutionError",
    "SolverError",
    "ToolNotFound",
    "build_command",
    "build_invocation_argv",
    "evaluate_block",
    "resolve_executable",
    "run_solver",
]

logger = logging.getLogger(__name__)


def split_options(options: str) -> list[str]:
    return shlex.split(options, posix=os.name != "nt")


def resolve_executable(executable: str) -> str:
    if not executable:
        raise ToolNotFound(executable)
    found = shutil.which(executable)
    if found is not None:
        return found
    if os.path.dirname(executable) and Path(executable).exists():
        raise ToolNotFound(executable, reason="is not executable")
    raise ToolNotFound(executable)


def build_command(
    executable: str,
    n: int | None,
    options: str | None,
    instance: str | Path | None,
    source_path: str | Path,
) -> list[str]:
    command = [executable]
    if n is not None:
        command += ["-n", str(n)]
    if options:
        command += split_options(options)
    if instance:
        command.append(str(instance))
    command.append(str(source_path))
    return command


def build_invocation_argv(invocation: Invocation) -> list[str]:
    return build_command(
        invocation.executable,
        invocation.n,
        invocation.options,
        invocation.instance,
        invocation.source_path,
    )


def run_solver(
    source: str,
    executable: str,
    n: int | None = None,
    options: str | None = None,
    instance: str | Path | None = None,
    cwd: Path | None = None,
    suffix: str = ".lp",
    encoding: str = "utf-8",
) -> ExecutionResult:
    resolved = resolve_executable(executable)

    with temp_source(source, suffix=suffix, encoding=encoding) as source_path:
        invocation = Invocation(
            executable=resolved,
            source_path=source_path,
            n=n,
            options=options,
            instance=Path(instance) if instance else None,
        )
        command = build_invocation_argv(invocation)
        command_str = shlex.join(command)
        logger.debug("Running %s", command_str)

        start_time = time.perf_counter()
        proc = subprocess.run(
            command,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            encoding=encoding,
            errors="replace",
            check=False,
        )
        wall_time = time.perf_counter() - start_time

    result = ExecutionResult(
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
        exit_code=proc.returncode,
        command=command_str,
        wall_time=wall_time,
    )
    logger.debug("Solver exited with %s after %.3fs", result.exit_code, wall_time)
    return result


def evaluate_block(
    body: str,
    params: BlockParams | Dict[str, Any],
    config: Config,
    cwd: Path | None = None,
) -> BlockResult:
    if not isinstance(params, BlockParams):
        params = resolve_params(params, config)

    source = expand_body(body, params.bindings)
    execution = run_solver(
        source,
        config.executable,
        n=params.n,
        options=params.options,
        instance=params.instance,
        cwd=cwd,
        suffix=config.extension,
        encoding=config.encoding,
    )

    error = None
    if execution.failed:
        error = ExecutionError(execution.exit_code, execution.stderr, execution.command)
        logger.warning("%s", error)
    return BlockResult(output=execution.stdout, execution=execution, error=error)
