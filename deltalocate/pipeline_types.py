"""Typed containers passed between discovery, decoding and resolution."""

from __future__ import annotations

from dataclasses import dataclass

from .config import PatchHeader


@dataclass
class DiscoveredPatch:
    """One file found under a patch directory, not yet decoded."""

    parent_label: str
    filename: str
    raw: bytes


@dataclass
class PendingFile:
    """A decoded patch whose original binary still has to be located."""

    source_dir: str
    filename: str
    header: PatchHeader
