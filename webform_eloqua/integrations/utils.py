"""Shared utilities for integration connectors.

Retry policy for Eloqua reads and posts, and a page/count paginator for
Eloqua list endpoints.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAYS = (1.0, 2.0, 4.0)
DEFAULT_TIMEOUT = 30.0
# Eloqua answers 429 when a site exceeds its API rate limit and 5xx during pod maintenance.
RETRYABLE_STATUS = (429, 500, 502, 503, 504)


def _retry_delay(attempt: int, delays: tuple[float, ...]) -> float:
    """Delay before retry number ``attempt + 1``; the last delay repeats."""
    if not delays:
        return 0.0
    return delays[min(attempt, len(delays) - 1)]


async def retry_request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_retries: int = 3,
    retry_delays: tuple[float, ...] = DEFAULT_RETRY_DELAYS,
    retry_on_status: tuple[int, ...] = RETRYABLE_STATUS,
    **kwargs: Any,
) -> httpx.Response:
    """Send a request, resending it on retryable statuses and transport errors.

    Reads pass the configured ``eloqua_read_retries``. Form data posts
    pass ``max_retries=0`` so a submission is sent at most once.

    Args:
        client: The httpx AsyncClient to use.
        method: HTTP method.
        url: The URL to request.
        max_retries: Number of resends after the first attempt.
        retry_delays: Seconds to wait before each resend.
        retry_on_status: Status codes that are resent while retries remain.
        **kwargs: Passed through to ``client.request()``.

    Returns:
        The first successful response.

    Raises:
        httpx.HTTPStatusError: If the final response is an error status.
        httpx.RequestError: If the final attempt could not be sent.
    """
    attempt = 0
    while True:
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.RequestError as exc:
            if attempt >= max_retries:
                raise
            reason = str(exc) or type(exc).__name__
        else:
            if response.status_code not in retry_on_status or attempt >= max_retries:
                response.raise_for_status()
                return response
            reason = f"status {response.status_code}"

        delay = _retry_delay(attempt, retry_delays)
        attempt += 1
        logger.warning(
            "%s %s failed (%s), resending in %.1fs (retry %d/%d)",
            method, url, reason, delay, attempt, max_retries,
        )
        await asyncio.sleep(delay)


async def paginate_pages(
    client: httpx.AsyncClient,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    page_size: int = 100,
    results_key: str = "elements",
    total_key: str | None = "total",
    page_param: str = "page",
    count_param: str = "count",
    max_pages: int = 100,
    max_retries: int = 3,
) -> AsyncIterator[list[dict[str, Any]]]:
    """Async generator for 1-based page-number pagination.

    Eloqua list endpoints take ``page`` and ``count`` and report the
    overall ``total``.

    Args:
        client: The httpx AsyncClient.
        url: Base URL to paginate.
        params: Additional query parameters.
        headers: Additional headers.
        page_size: Number of records per page.
        results_key: JSON key containing the results array.
        total_key: JSON key containing total count (None to paginate until empty).
        page_param: Query parameter name for the page number.
        count_param: Query parameter name for the page size.
        max_pages: Safety limit on number of pages.
        max_retries: Retries per page request.

    Yields:
        Lists of records from each page.

    Raises:
        ValueError: If a page body is not a JSON object.
    """
    request_params = dict(params or {})
    fetched = 0

    for page in range(1, max_pages + 1):
        request_params[page_param] = page
        request_params[count_param] = page_size

        response = await retry_request(
            client, "GET", url,
            params=request_params,
            headers=headers,
            max_retries=max_retries,
        )
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object from {url}, got {type(data).__name__}")

        results = data.get(results_key) or []
        if not results:
            break

        yield results

        fetched += len(results)

        if total_key and total_key in data:
            if fetched >= data[total_key]:
                break

        if len(results) < page_size:
            break
