from __future__ import annotations

"""
Reconstruct plausible ``SizeOfImage`` values from a delta patch header.

The patch records where each section sits in memory and on disk (the rift
table) and how large the target file is, but not the image size the symbol
server keys its paths on.  What we can bound:

* upper bound: everything from the last section's raw offset to the end of
  the file (last section + trailing signature) mapped at the last section's
  virtual address, rounded up to a page;
* lower bound: one page past the last section's virtual address.

Every page-aligned size in between is a candidate.  Page rounding keeps the
list short, usually a handful of entries.
"""

from typing import Tuple

from loguru import logger

from .config import PatchHeader, SizeCandidate
from .constants import MAX_IMAGE_SIZE, PAGE_SIZE
from .errors import MalformedHeader


def round_up_to_page(size: int) -> int:
    """Round ``size`` up to the next multiple of PAGE_SIZE; aligned sizes are unchanged."""
    page = size & ~(PAGE_SIZE - 1)
    if page == size:
        return page
    return page + PAGE_SIZE


def image_size_bounds(header: PatchHeader) -> Tuple[int, int]:
    """
    Return ``(max_image_size, min_image_size)`` for a header.

    Raises MalformedHeader when the target file is shorter than the last
    section's raw offset, or when the upper bound does not fit the 32-bit
    SizeOfImage field.
    """
    mapped_offset, raw_offset = header.last_section
    if header.target_size < raw_offset:
        raise MalformedHeader(
            f"Target size {header.target_size} is below last section raw offset {raw_offset}"
        )

    # last section plus any signature data the rift table does not cover
    tail_size = header.target_size - raw_offset
    max_image_size = round_up_to_page(mapped_offset + tail_size)
    min_image_size = mapped_offset + PAGE_SIZE

    if max_image_size > MAX_IMAGE_SIZE:
        raise MalformedHeader(f"Image size upper bound {max_image_size:#x} exceeds 32 bits")
    return max_image_size, min_image_size


def generate_size_candidates(filename: str, header: PatchHeader) -> Tuple[SizeCandidate, ...]:
    """Candidates for ``filename`` from largest to smallest, one page apart."""
    max_image_size, min_image_size = image_size_bounds(header)

    candidates = []
    size = max_image_size
    while size >= min_image_size:
        candidates.append(
            SizeCandidate(filename=filename, timestamp=header.timestamp, image_size=size)
        )
        size -= PAGE_SIZE

    if not candidates:
        logger.debug(
            "{}: empty size range (max={:#x}, min={:#x})", filename, max_image_size, min_image_size
        )
    return tuple(candidates)
