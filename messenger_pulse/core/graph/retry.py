"""
Retry-wrapped HTTP fetch.

A request is retried when the transport raises or the server answers with a
5xx status. Anything below 500, including 4xx responses carrying a Graph
``error`` object, is handed back untouched; callers inspect the payload.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

import httpx

from messenger_pulse.config.constants import (
    DEFAULT_RETRY_BUDGET,
    DEFAULT_RETRY_DELAY_MS,
    DEFAULT_BACKOFF_MULTIPLIER,
)
from messenger_pulse.core.exceptions import GraphTransportError
from messenger_pulse.utils.logger import get_logger
from messenger_pulse.utils.metrics import MetricsCollector

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed exponential schedule: ``retries`` waits starting at ``initial_delay_ms``."""

    retries: int = DEFAULT_RETRY_BUDGET
    initial_delay_ms: float = DEFAULT_RETRY_DELAY_MS
    multiplier: float = DEFAULT_BACKOFF_MULTIPLIER

    def __post_init__(self):
        if self.retries < 0:
            raise ValueError("Retry budget cannot be negative")
        if self.initial_delay_ms < 0:
            raise ValueError("Retry delay cannot be negative")
        if self.multiplier < 1:
            raise ValueError("Backoff multiplier must be at least 1")

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    def delays(self) -> List[float]:
        """Waits in milliseconds between consecutive attempts."""
        return [self.initial_delay_ms * self.multiplier ** i for i in range(self.retries)]

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            retries=settings.RETRY_BUDGET,
            initial_delay_ms=settings.RETRY_INITIAL_DELAY_MS,
            multiplier=settings.RETRY_BACKOFF_MULTIPLIER,
        )


async def fetch_with_retry(
        client: httpx.AsyncClient,
        method: str,
        url: str,
        *,
        policy: RetryPolicy,
        operation: str = "request",
        sleep: SleepFunc = asyncio.sleep,
        metrics: Optional[MetricsCollector] = None,
        **request_kwargs: Any
) -> httpx.Response:
    """
    Perform a request, retrying transport failures and 5xx responses.

    Args:
        client: HTTP client used for every attempt
        method: HTTP method
        url: Absolute request URL
        policy: Retry budget and backoff schedule
        operation: Short name used in logs, metrics and errors
        sleep: Awaitable sleep taking seconds
        metrics: Optional metrics collector
        **request_kwargs: Passed through to ``client.request``

    Returns:
        The first response with a status below 500

    Raises:
        GraphTransportError: When every attempt failed
    """
    started = time.monotonic()
    remaining = policy.retries
    delay_ms = float(policy.initial_delay_ms)
    attempt = 0

    while True:
        attempt += 1
        cause: Optional[Exception] = None
        status_code: Optional[int] = None

        try:
            response = await client.request(method, url, **request_kwargs)
        except httpx.TransportError as exc:
            cause = exc
            reason = "transport"
            detail = f"{type(exc).__name__}: {exc}"
        else:
            if response.status_code < 500:
                if metrics:
                    metrics.record_graph_request(operation, "delivered", time.monotonic() - started)
                return response
            status_code = response.status_code
            reason = "server_error"
            detail = f"Server error: {status_code}"

        if remaining <= 0:
            logger.error(
                "Graph request failed, retry budget exhausted",
                operation=operation,
                attempts=attempt,
                status_code=status_code,
                error=detail
            )
            if metrics:
                metrics.record_graph_request(operation, "failed", time.monotonic() - started)
            raise GraphTransportError(
                operation=operation,
                message=detail,
                status_code=status_code,
                attempts=attempt
            ) from cause

        logger.warning(
            "Graph request failed, retrying",
            operation=operation,
            attempt=attempt,
            retries_left=remaining,
            delay_ms=round(delay_ms),
            error=detail
        )
        if metrics:
            metrics.record_retry(reason)

        await sleep(delay_ms / 1000)
        remaining -= 1
        delay_ms *= policy.multiplier
