from __future__ import annotations

import os
import stat
import sys
from pathlib import Path

import pytest

SOLVER_TEMPLATE = """#!{python}
import os
import sys

args = sys.argv[1:]
source = args[-1] if args else ""
record = os.environ.get("FAKE_SOLVER_RECORD")
if record:
    with open(record, "w", encoding="utf-8") as f:
        f.write(source)
print("ARGS " + " ".join(args))
if source:
    with open(source, encoding="utf-8") as f:
        sys.stdout.write(f.read())
{extra}
"""


@pytest.fixture
def make_solver(tmp_path: Path):
    """Create an executable script standing in for clingo."""
    if os.name == "nt":
        pytest.skip("fake solver scripts need a POSIX shebang")

    def _make(extra: str = "sys.exit(0)", name: str = "fake-clingo") -> Path:
        script = tmp_path / name
        script.write_text(SOLVER_TEMPLATE.format(python=sys.executable, extra=extra), encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


@pytest.fixture
def record_file(tmp_path: Path, monkeypatch) -> Path:
    path = tmp_path / "source-path.txt"
    monkeypatch.setenv("FAKE_SOLVER_RECORD", str(path))
    return path
