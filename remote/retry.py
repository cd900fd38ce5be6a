"""Retry policy for execution service HTTP calls."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

import httpx

T = TypeVar("T")

logger = logging.getLogger(__name__)

# 4xx other than 429 means the request itself is wrong; resending cannot help
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def retry_after_seconds(exc: BaseException) -> float | None:
    """Delay requested by the server through a numeric Retry-After header."""
    if not isinstance(exc, httpx.HTTPStatusError):
        return None
    header = exc.response.headers.get("Retry-After")
    if header is None:
        return None
    try:
        return max(0.0, float(header))
    except ValueError:
        return None


class RetryPolicy:
    """Exponential backoff around one HTTP exchange.

    Transport failures (connection refused, timeouts) and the status codes
    in ``RETRYABLE_STATUS_CODES`` are retried up to ``max_retries`` times,
    waiting ``base_delay * 2**n`` seconds capped at ``max_delay``. Anything
    else, including malformed JSON bodies, is raised on the first attempt.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 8.0,
        sleep_fn: Callable[[float], None] | None = None,
    ) -> None:
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.sleep_fn = sleep_fn or time.sleep

    def backoff_seconds(self, attempt_index: int) -> float:
        return min(self.max_delay, self.base_delay * (2 ** attempt_index))

    def is_retryable(self, exc: BaseException) -> bool:
        if isinstance(exc, httpx.HTTPStatusError):
            status_code = exc.response.status_code
            return status_code in RETRYABLE_STATUS_CODES or status_code >= 500
        return isinstance(exc, (httpx.TransportError, TimeoutError, ConnectionError))

    def delay_for(self, exc: BaseException, attempt_index: int) -> float:
        requested = retry_after_seconds(exc)
        if requested is not None:
            return min(self.max_delay, requested)
        return self.backoff_seconds(attempt_index)

    def execute(self, operation: Callable[[], T]) -> T:
        attempt = 0
        while True:
            try:
                return operation()
            except Exception as exc:
                if attempt >= self.max_retries or not self.is_retryable(exc):
                    raise
                delay = self.delay_for(exc, attempt)
                attempt += 1
                logger.debug(
                    f"Retrying after {exc.__class__.__name__} in {delay:g}s "
                    f"({attempt}/{self.max_retries})"
                )
                self.sleep_fn(delay)
