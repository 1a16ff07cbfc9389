from __future__ import annotations

"""
Boundary to the delta-codec library.

Decoding the PA30/PA31 container is not done here.  A *decoder* is any
callable turning the bytes of a patch file into a :class:`DeltaInfo`; it is
looked up by dotted path (``DELTA_DECODER`` / ``--decoder``) so a real codec
binding can be plugged in.  The built-in default reads the textual header
reports produced by :mod:`deltalocate.report`.

This module then filters what the locator can use:

* raw deltas (no PE preprocessing) carry no timestamp or rift table;
* patches without a file-type header or without a rift table cannot be
  sized.

Both cases surface as :class:`AdapterDecodeFailure` and the file is skipped.
"""

import importlib
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from .config import DELTA_DECODER, PatchHeader
from .constants import FILE_TYPE_RAW
from .errors import AdapterDecodeFailure


class FileTypeHeader(BaseModel):
    """PE preprocessing header of a delta (present for non-raw file types)."""

    image_base: int = 0
    global_pointer: int = 0
    time_stamp: int = Field(default=0, ge=0, le=0xFFFFFFFF)
    # (VirtualAddress, PointerToRawData) for each section
    rift_table: Optional[List[Tuple[int, int]]] = None
    cli_metadata: Optional[Dict[str, int]] = None


class DeltaInfo(BaseModel):
    """Decoded delta header, as exposed by a delta-codec library."""

    file_time: int = 0
    version: int = 0
    code: int = 0
    flags: int = 0
    target_size: int = Field(default=0, ge=0)
    hash_algorithm: int = 0
    hash: bytes = b""
    header_info_size: int = 0
    is_pa31: bool = False
    delta_client_min_version: int = 0
    additional_hash: bytes = b""
    file_type_header: Optional[FileTypeHeader] = None


Decoder = Callable[[bytes], DeltaInfo]


def load_decoder(dotted: str = DELTA_DECODER) -> Decoder:
    """
    Import a decoder from ``"package.module:callable"``.

    Raises ImportError / AttributeError for bad paths; this is a startup
    error, not a per-file one.
    """
    module_name, sep, attr = dotted.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Decoder must look like 'package.module:callable', got {dotted!r}")
    module = importlib.import_module(module_name)
    decoder = getattr(module, attr)
    if not callable(decoder):
        raise TypeError(f"Decoder {dotted!r} is not callable")
    return decoder


def to_patch_header(info: DeltaInfo) -> PatchHeader:
    if info.code & FILE_TYPE_RAW:
        raise AdapterDecodeFailure("Raw delta, no PE header")
    fth = info.file_type_header
    if fth is None:
        raise AdapterDecodeFailure("No file type header")
    if not fth.rift_table:
        raise AdapterDecodeFailure("No rift table")
    return PatchHeader(
        target_size=info.target_size,
        timestamp=fth.time_stamp,
        sections=tuple(fth.rift_table),
    )


def decode_patch(raw: bytes, decoder: Decoder) -> PatchHeader:
    """Decode ``raw`` and keep only what size reconstruction needs."""
    try:
        info = decoder(raw)
    except AdapterDecodeFailure:
        raise
    except Exception as e:
        raise AdapterDecodeFailure(f"Not a decodable delta: {e}") from e
    return to_patch_header(info)
