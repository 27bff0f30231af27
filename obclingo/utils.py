from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


@contextmanager
def temp_source(text: str, suffix: str = ".lp", encoding: str = "utf-8") -> Iterator[Path]:
    """
    Write text to a fresh temporary file and yield its path.

    The file is closed before the caller runs anything against it and is
    removed on exit, whether the body returned or raised.
    """
    fd, name = tempfile.mkstemp(prefix="obclingo-", suffix=suffix)
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="\n") as f:
            f.write(text)
        yield path
    finally:
        try:
            path.unlink()
        except FileNotFoundError:
            pass

