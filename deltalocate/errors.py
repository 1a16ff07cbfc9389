"""Exception types raised while locating original binaries."""

from __future__ import annotations


class DeltaLocateError(Exception):
    """Base class for per-file failures; none of them stop a batch."""


class MalformedHeader(DeltaLocateError):
    """The patch header cannot describe a real image (e.g. target size below the last section)."""


class AdapterDecodeFailure(DeltaLocateError):
    """The bytes are not a decodable delta patch, or the patch has no section table."""


class UnresolvedFile(DeltaLocateError):
    """No candidate image size was confirmed by the symbol server."""

    def __init__(self, filename: str, tried: int):
        super().__init__(f"No symbol server match for {filename} ({tried} candidates tried)")
        self.filename = filename
        self.tried = tried


class TransientServerError(DeltaLocateError):
    """A 5xx answer. Retried in place and never raised to callers."""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"HTTP {status_code} for {url}")
        self.url = url
        self.status_code = status_code
