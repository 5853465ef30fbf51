# src/transport/retry.py - v1
"""Per-error-type retry policy with exponential backoff."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import httpx

from querycache.transport.errors import TransportError, TransportRetryExhausted

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration for a specific error type."""

    max_retries: int
    base_delay_s: float
    backoff_factor: float = 2.0
    jitter: bool = True


DEFAULT_RETRY_CONFIGS: dict[str, RetryConfig] = {
    "rate_limit": RetryConfig(max_retries=3, base_delay_s=2.0),
    "timeout": RetryConfig(max_retries=2, base_delay_s=1.0, backoff_factor=1.0),
    "server_error": RetryConfig(max_retries=3, base_delay_s=1.0),
    "connection": RetryConfig(max_retries=2, base_delay_s=0.5),
}


def classify_error(error: Exception) -> str:
    """Classify an exception into a retry error type."""
    if isinstance(error, TransportError):
        if error.status_code == 429:
            return "rate_limit"
        if error.status_code in (502, 503, 504):
            return "server_error"
        return "client_error" if error.status_code < 500 else "unknown"
    if isinstance(error, httpx.TimeoutException):
        return "timeout"
    if isinstance(error, httpx.TransportError):
        return "connection"
    return "unknown"


def _compute_delay(config: RetryConfig, attempt: int) -> float:
    """Compute delay for a given attempt (0-based)."""
    delay = config.base_delay_s * (config.backoff_factor ** attempt)
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    route: str = "unknown",
    retry_configs: dict[str, RetryConfig] | None = None,
    **kwargs: Any,
) -> Any:
    """Execute an async function with retry logic.

    Errors of a type without a retry config propagate unchanged.

    Raises:
        TransportRetryExhausted: If all retries are exhausted.
    """
    configs = DEFAULT_RETRY_CONFIGS if retry_configs is None else retry_configs
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except Exception as e:
            error_type = classify_error(e)
            config = configs.get(error_type)
            if config is None:
                raise

            attempts += 1
            if attempts > config.max_retries:
                raise TransportRetryExhausted(route, error_type, attempts, e) from e

            delay = _compute_delay(config, attempts - 1)
            logger.warning(
                "Request '%s' - %s (attempt %d/%d), retrying in %.1fs",
                route, error_type, attempts, config.max_retries, delay,
            )
            await asyncio.sleep(delay)
