from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

import typer

from .config import CONFIG_FILENAME, Config, load_config, write_default_config
from .document import evaluate_document, tangle_document
from .parsers import find_blocks, parse_var_bindings, resolve_params, summarize
from .runner import ToolNotFound, evaluate_block, resolve_executable
from .utils import ensure_dir

app = typer.Typer(no_args_is_help=True)


def setup_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    config: Optional[Path] = typer.Option(None, "--config", help=f"Config file (default ./{CONFIG_FILENAME})"),
):
    setup_logging(debug)
    ctx.obj = {"config_path": config}


def get_config(ctx: typer.Context) -> Config:
    config_path = (ctx.obj or {}).get("config_path")
    try:
        return load_config(config_path)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))


def _read_text(path: Path, config: Config) -> str:
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}")
    return path.read_text(encoding=config.encoding)


@app.command()
def init(force: bool = typer.Option(False, "--force", help="Overwrite existing config")):
    cfg_path = Path.cwd() / CONFIG_FILENAME
    if cfg_path.exists() and not force:
        typer.echo(f"{cfg_path.name} already exists (use --force to overwrite)")
        return
    write_default_config(cfg_path)
    typer.echo(f"Wrote {cfg_path.name}")


@app.command()
def check(ctx: typer.Context):
    config = get_config(ctx)
    try:
        exe = resolve_executable(config.executable)
    except ToolNotFound as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)

    version = ""
    try:
        result = subprocess.run([exe, "--version"], capture_output=True, text=True, check=False)
        version = result.stdout.splitlines()[0] if result.stdout else ""
    except OSError as exc:
        typer.echo(f"Could not run {exe}: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"{exe} {version}".strip())


@app.command()
def run(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Logic program to evaluate as a block body"),
    n: Optional[int] = typer.Option(None, "-n", "--models", help="Number of models, 0 for all"),
    options: Optional[str] = typer.Option(None, "--options", help="Extra solver options"),
    instance: Optional[Path] = typer.Option(None, "--instance", help="Instance file"),
    var: List[str] = typer.Option([], "--var", help="Binding, e.g. x=5 or s=\"text\""),
    strict: bool = typer.Option(False, "--strict", help="Exit 1 when the run is classified as failed"),
    summary: bool = typer.Option(False, "--summary", help="Print the result status after the output"),
):
    config = get_config(ctx)
    body = _read_text(file, config)

    header = {}
    if n is not None:
        header["n"] = n
    if options is not None:
        header["options"] = options
    if instance is not None:
        header["instance"] = str(instance)
    bindings = []
    for item in var:
        parsed = parse_var_bindings(item)
        if not parsed:
            raise typer.BadParameter(f"Invalid binding: {item}")
        bindings.extend(parsed)
    if bindings:
        header["var"] = bindings

    try:
        params = resolve_params(header, config)
        result = evaluate_block(body, params, config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    except ToolNotFound as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)

    typer.echo(result.output, nl=False)
    if summary and result.execution is not None:
        execution = result.execution
        status = summarize(result.output, execution.exit_code)
        typer.echo(f"% {status} (exit {execution.exit_code}, {execution.wall_time:.3f}s)")
    if result.error is not None:
        typer.echo(str(result.error), err=True)
        if strict:
            raise typer.Exit(code=1)


@app.command()
def blocks(ctx: typer.Context, doc: Path = typer.Argument(..., help="Org document")):
    config = get_config(ctx)
    text = _read_text(doc, config)
    try:
        found = find_blocks(text, config.language)
        resolved = [resolve_params(block.params, config) for block in found]
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    if not found:
        typer.echo(f"No {config.language} blocks found")
        return
    for block, params in zip(found, resolved):
        parts = [f"{block.begin + 1}:", block.name or "-"]
        if block.header:
            parts.append(block.header)
        parts.append("[results]" if block.results_span else "[no results]")
        parts.append(f"exports={params.exports}")
        typer.echo(" ".join(parts))


@app.command("eval")
def eval_doc(
    ctx: typer.Context,
    doc: Path = typer.Argument(..., help="Org document"),
    in_place: bool = typer.Option(False, "--in-place", "-i", help="Write results back into the document"),
    strict: bool = typer.Option(False, "--strict", help="Exit 1 when any block failed"),
):
    config = get_config(ctx)
    text = _read_text(doc, config)
    try:
        new_text, reports = evaluate_document(text, config, base_dir=doc.resolve().parent)
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    except ToolNotFound as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)

    failed = 0
    for report in reports:
        if report.result is not None and report.result.error is not None:
            failed += 1
            typer.echo(f"{report.label}: {report.result.error}", err=True)

    if in_place:
        doc.write_text(new_text, encoding=config.encoding)
        typer.echo(f"Evaluated {len(reports)} blocks in {doc}")
    else:
        typer.echo(new_text, nl=False)

    if strict and failed:
        raise typer.Exit(code=1)


@app.command()
def tangle(ctx: typer.Context, doc: Path = typer.Argument(..., help="Org document")):
    config = get_config(ctx)
    text = _read_text(doc, config)
    try:
        outputs = tangle_document(text, config, doc.resolve())
    except ValueError as exc:
        raise typer.BadParameter(str(exc))
    if not outputs:
        typer.echo("Nothing to tangle")
        return
    for path, content in outputs.items():
        ensure_dir(path.parent)
        path.write_text(content, encoding=config.encoding)
        typer.echo(f"Tangled {path}")


if __name__ == "__main__":
    app()
