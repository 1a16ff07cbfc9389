from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

from loguru import logger

from .config import REPORT_SUFFIX
from .constants import PATCH_DIR_NAME, SKIPPED_EXTENSIONS
from .pipeline_types import DiscoveredPatch


def patch_name(filename: str) -> str:
    """Name of the patched binary; sidecar reports stand in for their patch."""
    if filename.endswith(REPORT_SUFFIX) and len(filename) > len(REPORT_SUFFIX):
        return filename[: -len(REPORT_SUFFIX)]
    return filename


def _label(root: Path, directory: Path) -> str:
    try:
        rel = directory.relative_to(root)
    except ValueError:
        return str(directory)
    return rel.as_posix() or "."


def discover_patches(root: Path) -> Iterator[DiscoveredPatch]:
    """
    Yield every candidate patch file under ``root``.

    A file qualifies when one of its ancestor directories (below ``root``)
    is named ``f``; everything underneath such a directory is taken.  The
    label is the directory above the file's own directory, relative to root.
    """
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Directory not found: {root}")

    def on_error(err: OSError) -> None:
        logger.warning("Cannot read {}: {}", err.filename, err.strerror)

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        directory = Path(dirpath)
        dirnames.sort()
        rel_parts = directory.relative_to(root).parts
        if PATCH_DIR_NAME not in rel_parts:
            continue

        label = _label(root, directory.parent)
        for name in sorted(filenames):
            filename = patch_name(name)
            if Path(filename).suffix.lower() in SKIPPED_EXTENSIONS:
                continue
            path = directory / name
            try:
                raw = path.read_bytes()
            except OSError as e:
                logger.warning("Cannot read {}: {}", path, e)
                continue
            yield DiscoveredPatch(parent_label=label, filename=filename, raw=raw)
