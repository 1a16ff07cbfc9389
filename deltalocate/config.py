from __future__ import annotations

import os
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------
# Output files
# ---------------------------

MANIFEST_FILENAME = "aria2.txt"   # written into the scanned directory
REPORT_SUFFIX = ".dd.txt"         # sidecar header reports next to each patch


# ---------------------------
# Symbol server
# ---------------------------

SYMBOL_SERVER_URL = "https://msdl.microsoft.com/download/symbols"

# The server answers 302 (to the CDN blob) only for paths that exist.
SYMBOL_FOUND_STATUS = 302


# ---------------------------
# HTTP hardening
# ---------------------------

HTTP_CONNECT_TIMEOUT = 10.0
HTTP_READ_TIMEOUT = 30.0

HTTP_USER_AGENT = "Microsoft-Symbol-Server/10.0.0.0"

# Upper bound on HEAD requests in flight across the whole batch.
DEFAULT_MAX_CONCURRENT_REQUESTS = 64
MAX_CONCURRENT_REQUESTS = int(
    os.getenv("MAX_CONCURRENT_REQUESTS", str(DEFAULT_MAX_CONCURRENT_REQUESTS))
)

# Fixed delay between retries of a 5xx answer. No growth, no ceiling.
RETRY_DELAY_SECONDS = 0.1


# ---------------------------
# Batch progress
# ---------------------------

PROGRESS_INTERVAL_SECONDS = 1.0


# ---------------------------
# Delta decoder
# ---------------------------

# "package.module:callable" turning patch bytes into a DeltaInfo.
DEFAULT_DELTA_DECODER = "deltalocate.report:parse_header_report"
DELTA_DECODER = os.getenv("DELTA_DECODER", DEFAULT_DELTA_DECODER)


# ---------------------------
# Pydantic models shared around the app
# ---------------------------

class PatchHeader(BaseModel):
    """
    Structural metadata of one delta patch, as needed for size reconstruction.

    ``sections`` holds (mapped virtual offset, raw file offset) pairs in the
    order the codec produced them; only the last one is used.
    """

    model_config = ConfigDict(frozen=True)

    target_size: int = Field(ge=0)
    timestamp: int = Field(ge=0, le=0xFFFFFFFF)
    sections: Tuple[Tuple[int, int], ...] = Field(min_length=1)

    @property
    def last_section(self) -> Tuple[int, int]:
        return self.sections[-1]


class SizeCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str
    timestamp: int
    image_size: int


class CandidateProbeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    candidate: SizeCandidate
    url: str
    valid: bool


class FileResolution(BaseModel):
    """
    Outcome for one patch file. ``resolved_url`` stays None for files that
    could not be located.
    """

    model_config = ConfigDict(frozen=True)

    source_dir: str
    filename: str
    resolved_url: Optional[str] = None
