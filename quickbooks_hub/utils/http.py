"""HTTP utilities providing retry/backoff semantics."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

# Connection-level failures only; protocol and usage errors are not retried.
RETRYABLE_EXCEPTIONS = (httpx.TimeoutException, httpx.NetworkError)


class RetryConfig:
    """Bounded exponential backoff.

    ``attempts`` counts retries, not the initial request, so a request is sent
    at most ``attempts + 1`` times. The delay before retry ``k`` is
    ``backoff_ms * 2 ** (k - 1)`` milliseconds.
    """

    def __init__(self, *, attempts: int = 3, backoff_ms: int = 1000) -> None:
        self.attempts = attempts
        self.backoff_ms = backoff_ms

    def delay_for(self, retry: int) -> float:
        """Seconds to wait before the ``retry``-th retry (1-indexed)."""
        return self.backoff_ms * (2 ** (retry - 1)) / 1000.0


async def request_with_retry(
    func: Callable[..., Awaitable[httpx.Response]],
    *args,
    retry_config: RetryConfig | None = None,
    label: str = "request",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    **kwargs,
) -> httpx.Response:
    """Call ``func`` and retry transient failures.

    Returns the last response received, which may still carry an error status
    once retries are exhausted; callers decide how to classify it. Transport
    errors that outlive the retry budget are re-raised unchanged.
    """
    config = retry_config or RetryConfig()
    retries = 0

    while True:
        try:
            response = await func(*args, **kwargs)
        except RETRYABLE_EXCEPTIONS as exc:
            if retries >= config.attempts:
                raise
            retries += 1
            logger.warning(
                "%s: retrying after connection error (attempt %d): %s",
                label,
                retries,
                exc,
            )
        else:
            if response.status_code not in RETRYABLE_STATUS_CODES:
                return response
            if retries >= config.attempts:
                return response
            retries += 1
            logger.warning(
                "%s: retrying request (attempt %d, status %d)",
                label,
                retries,
                response.status_code,
            )

        await sleep(config.delay_for(retries))


__all__ = ["RETRYABLE_STATUS_CODES", "RetryConfig", "request_with_retry"]
