from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

CONFIG_FILENAME = "obclingo.yaml"


@dataclass
class Config:
    base_dir: Path
    executable: str
    language: str
    extension: str
    encoding: str
    defaults: Dict[str, Any] = field(default_factory=dict)
    version: str = "0.1.0"


DEFAULT_CONFIG = {
    "version": "0.1.0",
    "solver": {
        "executable": "clingo",
        "language": "clingo",
        "extension": ".lp",
        "encoding": "utf-8",
    },
    "defaults": {
        "results": "output",
        "exports": "both",
    },
}


def default_config(base_dir: Path | None = None) -> Config:
    return _from_data(DEFAULT_CONFIG, base_dir or Path.cwd())


def load_config(config_path: Path | None = None) -> Config:
    base_dir = Path.cwd()
    if config_path is None:
        config_path = base_dir / CONFIG_FILENAME
    else:
        base_dir = config_path.resolve().parent

    if config_path.exists():
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Invalid config format: {config_path}")
    else:
        data = DEFAULT_CONFIG

    return _from_data(data, base_dir)


def _from_data(data: Dict[str, Any], base_dir: Path) -> Config:
    solver: Dict[str, Any] = data.get("solver", {}) or {}
    defaults: Dict[str, Any] = dict(DEFAULT_CONFIG["defaults"])
    defaults.update(data.get("defaults", {}) or {})

    extension = str(solver.get("extension", ".lp"))
    if not extension.startswith("."):
        extension = f".{extension}"

    return Config(
        base_dir=base_dir,
        executable=str(solver.get("executable", "clingo")),
        language=str(solver.get("language", "clingo")),
        extension=extension,
        encoding=str(solver.get("encoding", "utf-8")),
        defaults=defaults,
        version=str(data.get("version", "0.1.0")),
    )


def write_default_config(path: Path) -> None:
    path.write_text(yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False), encoding="utf-8")
