# deltalocate/utils/urls.py
from __future__ import annotations
from .. import config
from ..config import SizeCandidate

__all__ = ["build_symbol_url", "candidate_url"]


def build_symbol_url(filename: str, timestamp: int, image_size: int) -> str:
    """
    Build the symbol server download URL for a PE image.

    Layout (the "file index" for binaries):
      <server>/<filename>/<TimeDateStamp as 8 hex digits><SizeOfImage as hex>/<filename>

    Both hex fields are lowercase; the timestamp is zero padded, the size is not.
    e.g. ntdll.dll, 0x1a2b3c4d, 0x1f0000 ->
      https://msdl.microsoft.com/download/symbols/ntdll.dll/1a2b3c4d1f0000/ntdll.dll
    """
    return f"{config.SYMBOL_SERVER_URL}/{filename}/{timestamp:08x}{image_size:x}/{filename}"


def candidate_url(candidate: SizeCandidate) -> str:
    return build_symbol_url(candidate.filename, candidate.timestamp, candidate.image_size)
