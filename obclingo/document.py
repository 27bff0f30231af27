from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple

from .config import Config
from .expand import expand_body
from .models import BlockResult, SourceBlock
from .parsers import find_blocks, resolve_params
from .runner import evaluate_block

logger = logging.getLogger(__name__)


@dataclass
class BlockReport:
    block: SourceBlock
    result: BlockResult | None
    skipped: bool = False

    @property
    def label(self) -> str:
        return self.block.name or f"line {self.block.begin + 1}"


def format_results(output: str) -> List[str]:
    lines = ["#+RESULTS:"]
    for line in output.rstrip("\n").splitlines():
        lines.append(f": {line}" if line else ":")
    return lines


def evaluate_document(text: str, config: Config, base_dir: Path | None = None) -> Tuple[str, List[BlockReport]]:
    """
    Evaluate every block of the configured language in an Org document.

    Returns the document with each block's ``#+RESULTS:`` section replaced
    (or inserted after ``#+end_src``) and one report per block. Blocks with
    ``:eval no`` are skipped; ``:results silent`` blocks run but leave the
    text untouched.
    """
    lines = text.splitlines()
    blocks = find_blocks(text, config.language)
    reports: List[BlockReport] = []
    edits: List[Tuple[int, int, List[str]]] = []

    for block in blocks:
        params = resolve_params(block.params, config)
        if not params.eval:
            report = BlockReport(block=block, result=None, skipped=True)
            logger.info("Skipping %s (:eval %s)", report.label, block.params.get("eval"))
            reports.append(report)
            continue

        result = evaluate_block(block.body, params, config, cwd=base_dir)
        reports.append(BlockReport(block=block, result=result))
        if params.silent:
            continue

        stop = block.results_span[1] if block.results_span is not None else block.end + 1
        new_lines = [""] + format_results(result.output)
        if stop < len(lines) and lines[stop].strip():
            new_lines.append("")
        edits.append((block.end + 1, stop, new_lines))

    for (_, prev_stop, _), (start, _, _) in zip(edits, edits[1:]):
        if start < prev_stop:
            raise ValueError(f"Results section overlaps the block ending at line {start}")

    # apply bottom-up so earlier line numbers stay valid
    for start, stop, new_lines in reversed(edits):
        lines[start:stop] = new_lines

    new_text = "\n".join(lines)
    if text.endswith("\n"):
        new_text += "\n"
    return new_text, reports


def tangle_document(text: str, config: Config, doc_path: Path) -> Dict[Path, str]:
    """Collect the expanded bodies of blocks marked with ``:tangle``."""
    outputs: Dict[Path, List[str]] = {}
    for block in find_blocks(text, config.language):
        params = resolve_params(block.params, config)
        if params.tangle is None:
            continue
        if params.tangle.lower() == "yes":
            target = doc_path.with_suffix(config.extension)
        else:
            target = doc_path.parent / params.tangle
        outputs.setdefault(target, []).append(expand_body(block.body, params.bindings))
    return {path: "\n".join(chunks) for path, chunks in outputs.items()}
