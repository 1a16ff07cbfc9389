from __future__ import annotations

from pathlib import Path
from typing import Iterable

from loguru import logger

from .config import FileResolution


def format_manifest(resolutions: Iterable[FileResolution]) -> str:
    """
    aria2 input file: one URL line per download, followed by an indented
    ``out=`` option naming the saved file.
    """
    lines = []
    for r in resolutions:
        if not r.resolved_url:
            continue
        lines.append(r.resolved_url)
        lines.append(f" out={r.filename}")
    return "".join(f"{line}\n" for line in lines)


def write_manifest(resolutions: Iterable[FileResolution], path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_manifest(resolutions), encoding="utf-8")
    logger.info("Written aria2 input file to {}", path)
    return path
