from __future__ import annotations

from pathlib import Path

import yaml
from typer.testing import CliRunner

from obclingo.cli import app

cli = CliRunner()


def _write_config(tmp_path: Path, solver: Path) -> Path:
    path = tmp_path / "obclingo.yaml"
    path.write_text(yaml.safe_dump({"solver": {"executable": str(solver)}}), encoding="utf-8")
    return path


def test_run_command(make_solver, tmp_path: Path):
    solver = make_solver("print('SATISFIABLE')\nsys.exit(10)")
    cfg = _write_config(tmp_path, solver)
    program = tmp_path / "p.lp"
    program.write_text("a.", encoding="utf-8")

    result = cli.invoke(app, ["--config", str(cfg), "run", str(program), "-n", "0", "--var", "x=5", "--summary"])

    assert result.exit_code == 0, result.output
    assert "ARGS -n 0 " in result.output
    assert "#const x = 5." in result.output
    assert "% SAT (exit 10" in result.output


def test_run_command_strict_failure(make_solver, tmp_path: Path):
    solver = make_solver("sys.stderr.write('error\\n')\nsys.exit(65)")
    cfg = _write_config(tmp_path, solver)
    program = tmp_path / "p.lp"
    program.write_text("a", encoding="utf-8")

    result = cli.invoke(app, ["--config", str(cfg), "run", str(program), "--strict"])

    assert result.exit_code == 1
    assert "ARGS" in result.output


def test_run_command_missing_solver(tmp_path: Path):
    cfg = _write_config(tmp_path, tmp_path / "missing-clingo")
    program = tmp_path / "p.lp"
    program.write_text("a.", encoding="utf-8")

    result = cli.invoke(app, ["--config", str(cfg), "run", str(program)])

    assert result.exit_code == 1


def test_eval_in_place_and_blocks(make_solver, tmp_path: Path):
    solver = make_solver("print('SATISFIABLE')")
    cfg = _write_config(tmp_path, solver)
    doc = tmp_path / "notes.org"
    doc.write_text("#+name: demo\n#+begin_src clingo :n 1\na.\n#+end_src\n", encoding="utf-8")

    listed = cli.invoke(app, ["--config", str(cfg), "blocks", str(doc)])
    assert listed.exit_code == 0
    assert "2: demo :n 1 [no results] exports=both" in listed.output

    result = cli.invoke(app, ["--config", str(cfg), "eval", str(doc), "--in-place"])
    assert result.exit_code == 0, result.output
    text = doc.read_text(encoding="utf-8")
    assert "#+RESULTS:\n: ARGS -n 1 " in text
    assert ": SATISFIABLE" in text


def test_tangle_command(tmp_path: Path):
    doc = tmp_path / "notes.org"
    doc.write_text("#+begin_src clingo :tangle yes\na.\n#+end_src\n", encoding="utf-8")

    result = cli.invoke(app, ["--config", str(tmp_path / "none.yaml"), "tangle", str(doc)])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "notes.lp").read_text(encoding="utf-8") == "a.\n"


def test_init_writes_config(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = cli.invoke(app, ["init"])
    assert result.exit_code == 0
    assert yaml.safe_load((tmp_path / "obclingo.yaml").read_text(encoding="utf-8"))["solver"]["executable"] == "clingo"
