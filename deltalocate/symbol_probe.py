from __future__ import annotations

import asyncio
import contextlib
from typing import Optional

import httpx
from loguru import logger

from .config import (
    HTTP_CONNECT_TIMEOUT,
    HTTP_READ_TIMEOUT,
    HTTP_USER_AGENT,
    MAX_CONCURRENT_REQUESTS,
    RETRY_DELAY_SECONDS,
    SYMBOL_FOUND_STATUS,
)
from .errors import TransientServerError


def http_client(max_connections: int = MAX_CONCURRENT_REQUESTS) -> httpx.AsyncClient:
    """Pooled client for symbol server probes. Redirects are never followed."""
    return httpx.AsyncClient(
        headers={"User-Agent": HTTP_USER_AGENT},
        follow_redirects=False,
        timeout=httpx.Timeout(HTTP_READ_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT),
        limits=httpx.Limits(max_connections=max_connections),
    )


def is_transient(status_code: int) -> bool:
    return 500 <= status_code < 600


async def probe_symbol_url(
    client: httpx.AsyncClient,
    url: str,
    *,
    limiter: Optional[asyncio.Semaphore] = None,
    retry_delay: float = RETRY_DELAY_SECONDS,
) -> bool:
    """
    HEAD ``url`` and report whether the symbol server has that file.

    Hardening:
      - redirects are not followed; a 302 is the "found" answer
      - 5xx answers are retried after a fixed delay, forever
      - ``limiter`` is held for one request at a time, not across the delay
      - transport errors propagate to the caller
    """
    attempt = 0
    while True:
        attempt += 1
        async with limiter if limiter is not None else contextlib.nullcontext():
            r = await client.head(url, follow_redirects=False)

        if is_transient(r.status_code):
            logger.debug("{} (attempt {}), retrying", TransientServerError(url, r.status_code), attempt)
            await asyncio.sleep(retry_delay)
            continue

        found = r.status_code == SYMBOL_FOUND_STATUS
        logger.debug("Probe {} -> HTTP {} ({})", url, r.status_code, "found" if found else "missing")
        return found
