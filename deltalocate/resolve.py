from __future__ import annotations

"""
Resolution orchestrator: from decoded patches to confirmed download URLs.

Per file
--------
Every candidate image size is probed concurrently.  Once *all* probes have
finished, candidates are scanned in their original (descending size) order
and the first confirmed one wins.  Joining before scanning keeps the outcome
independent of which probe happens to answer first.

Per batch
---------
All files start at once; the number of HEAD requests in flight is capped by
one semaphore shared by the batch.  Progress is reported on a fixed interval
while the batch runs.  Files that fail for any per-file reason are logged and
left out of the result.
"""

import asyncio
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

import httpx
from loguru import logger

from .config import (
    MAX_CONCURRENT_REQUESTS,
    PROGRESS_INTERVAL_SECONDS,
    RETRY_DELAY_SECONDS,
    CandidateProbeResult,
    FileResolution,
)
from .delta_header import Decoder, decode_patch, load_decoder
from .discover import discover_patches
from .errors import AdapterDecodeFailure, DeltaLocateError, UnresolvedFile
from .pipeline_types import DiscoveredPatch, PendingFile
from .size_candidates import generate_size_candidates
from .symbol_probe import http_client, probe_symbol_url
from .utils.urls import candidate_url

ProgressObserver = Callable[[int, int, float], None]


def log_progress(completed: int, total: int, percent: float) -> None:
    logger.info("{}/{} tasks, {}%", completed, total, percent)


def pick_resolved_url(results: Sequence[CandidateProbeResult]) -> Optional[str]:
    """
    First valid URL in the given (largest image size first) order.

    Several sizes validating for one file is not expected; when it happens
    the largest still wins and a warning lists all of them.
    """
    valid = [r for r in results if r.valid]
    if not valid:
        return None
    if len(valid) > 1:
        logger.warning(
            "{}: {} image sizes confirmed ({}), keeping the largest",
            valid[0].candidate.filename,
            len(valid),
            ", ".join(f"{r.candidate.image_size:#x}" for r in valid),
        )
    return valid[0].url


async def resolve_file(
    client: httpx.AsyncClient,
    pending: PendingFile,
    *,
    limiter: Optional[asyncio.Semaphore] = None,
    retry_delay: float = RETRY_DELAY_SECONDS,
) -> FileResolution:
    """
    Locate the original binary for one patch.

    Raises MalformedHeader (bad header), UnresolvedFile (nothing confirmed),
    or the first transport error any probe hit.
    """
    candidates = generate_size_candidates(pending.filename, pending.header)
    urls = [candidate_url(c) for c in candidates]

    outcomes = await asyncio.gather(
        *(probe_symbol_url(client, url, limiter=limiter, retry_delay=retry_delay) for url in urls),
        return_exceptions=True,
    )
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome

    results = [
        CandidateProbeResult(candidate=c, url=url, valid=valid)
        for c, url, valid in zip(candidates, urls, outcomes)
    ]
    url = pick_resolved_url(results)
    if url is None:
        raise UnresolvedFile(pending.filename, len(results))

    return FileResolution(source_dir=pending.source_dir, filename=pending.filename, resolved_url=url)


async def _resolve_or_skip(
    client: httpx.AsyncClient,
    pending: PendingFile,
    limiter: asyncio.Semaphore,
    retry_delay: float,
) -> Optional[FileResolution]:
    try:
        return await resolve_file(client, pending, limiter=limiter, retry_delay=retry_delay)
    except (DeltaLocateError, httpx.HTTPError) as e:
        logger.warning("Skipping {}/{}: {}", pending.source_dir, pending.filename, e)
        return None
    except Exception as e:
        logger.warning("Skipping {}/{} after unexpected error: {!r}", pending.source_dir, pending.filename, e)
        return None


async def resolve_batch(
    pending_files: Iterable[PendingFile],
    *,
    client: Optional[httpx.AsyncClient] = None,
    max_concurrency: int = MAX_CONCURRENT_REQUESTS,
    progress_interval: float = PROGRESS_INTERVAL_SECONDS,
    observer: Optional[ProgressObserver] = None,
    retry_delay: float = RETRY_DELAY_SECONDS,
) -> List[FileResolution]:
    """
    Resolve every pending file concurrently.

    Returns the successful resolutions in input order.  When ``client`` is
    not given a pooled one is created and closed here.
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
    pending_files = list(pending_files)
    observer = observer or log_progress
    limiter = asyncio.Semaphore(max_concurrency)

    owns_client = client is None
    if client is None:
        client = http_client(max_concurrency)

    try:
        tasks = [
            asyncio.create_task(_resolve_or_skip(client, p, limiter, retry_delay))
            for p in pending_files
        ]
        if tasks:
            whole = asyncio.gather(*tasks, return_exceptions=True)
            while True:
                done, _ = await asyncio.wait({whole}, timeout=progress_interval)
                if done:
                    break
                completed = sum(1 for t in tasks if t.done())
                observer(completed, len(tasks), round(100.0 * completed / len(tasks), 2))
        outcomes = await whole if tasks else []
    finally:
        if owns_client:
            await client.aclose()

    return [r for r in outcomes if isinstance(r, FileResolution)]


def collect_patches(discovered: Iterable[DiscoveredPatch], decoder: Decoder) -> List[PendingFile]:
    """Decode discovered files, dropping anything the locator cannot size."""
    pending: List[PendingFile] = []
    for d in discovered:
        try:
            header = decode_patch(d.raw, decoder)
        except AdapterDecodeFailure as e:
            logger.debug("Not a usable patch {}/{}: {}", d.parent_label, d.filename, e)
            continue
        pending.append(PendingFile(source_dir=d.parent_label, filename=d.filename, header=header))
    return pending


def locate_patches(
    root: Path,
    decoder: Optional[Decoder] = None,
    *,
    max_concurrency: int = MAX_CONCURRENT_REQUESTS,
    observer: Optional[ProgressObserver] = None,
) -> List[FileResolution]:
    """Discover, decode and resolve every patch under ``root``."""
    decoder = decoder or load_decoder()
    pending = collect_patches(discover_patches(root), decoder)
    logger.info("Attempting to find {} files on the symbol server...", len(pending))

    resolved = asyncio.run(
        resolve_batch(pending, max_concurrency=max_concurrency, observer=observer)
    )
    logger.info(
        "Located {} of {} files ({} not found)", len(resolved), len(pending), len(pending) - len(resolved)
    )
    return resolved
