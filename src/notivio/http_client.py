"""
http_client.py — Outbound GET helper shared by the scraper and metadata stages.

Every request is raced against a timer with asyncio.wait_for, on top of the
httpx client's own timeout, so a slow body read can't outlive the budget.
Callers may pass in an httpx.AsyncClient (tests use one backed by
httpx.MockTransport); otherwise a short-lived client is opened per call.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Mapping

import httpx

from notivio.errors import FetchTimeoutError

logger = logging.getLogger(__name__)


async def fetch_with_timeout(
    url: str,
    *,
    timeout: float,
    client: httpx.AsyncClient | None = None,
    headers: Mapping[str, str] | None = None,
    params: Mapping[str, str] | None = None,
) -> httpx.Response:
    """
    GET `url` and return the response, cancelling after `timeout` seconds.

    Non-2xx responses are returned as-is; checking the status is up to the
    caller since each stage reports failures differently.

    Raises:
        FetchTimeoutError: The request didn't complete within `timeout`.
        httpx.HTTPError:   Any other transport-level failure.
    """
    logger.debug("GET %s (timeout %.0fs)", url, timeout)
    try:
        if client is not None:
            return await asyncio.wait_for(
                client.get(url, headers=headers, params=params, follow_redirects=True),
                timeout,
            )
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
            return await asyncio.wait_for(
                own_client.get(url, headers=headers, params=params),
                timeout,
            )
    except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
        raise FetchTimeoutError(url, timeout) from exc
