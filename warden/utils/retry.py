"""
Warden - Retry Utilities
========================

Backoff for calls to the bridge homeserver. Transport errors and
429/5xx responses are retried; anything else surfaces immediately.
"""

import asyncio
from typing import Any, Callable, Tuple, Type

import aiohttp

from warden.core.logger import logger


# Transport-level failures worth another attempt
RETRYABLE_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    aiohttp.ClientConnectionError,
    asyncio.TimeoutError,
    ConnectionError,
)


class RetryableStatusError(Exception):
    """The homeserver answered with 429 or a 5xx status."""

    def __init__(self, status: int, body: str = "") -> None:
        super().__init__(f"HTTP {status}: {body[:100]}")
        self.status = status
        self.body = body


async def retry_async(
    coro_func: Callable[..., Any],
    *args,
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 10.0,
    exceptions: Tuple[Type[Exception], ...] = RETRYABLE_EXCEPTIONS + (RetryableStatusError,),
    **kwargs,
) -> Any:
    """
    Call ``coro_func(*args, **kwargs)`` until it succeeds or retries run out.

    The wait doubles after each failed attempt, starting at ``base_delay``
    and never exceeding ``max_delay``. Exceptions outside ``exceptions``
    propagate on the first attempt. When every attempt fails the final
    error is raised.
    """
    attempts = max_retries + 1
    for attempt in range(1, attempts + 1):
        try:
            return await coro_func(*args, **kwargs)
        except exceptions as e:
            if attempt == attempts:
                logger.error("Retries Exhausted", [
                    ("Attempts", str(attempts)),
                    ("Error Type", type(e).__name__),
                    ("Error", str(e)[:100]),
                ])
                raise
            delay = min(base_delay * 2 ** (attempt - 1), max_delay)
            logger.warning("Retrying Call", [
                ("Attempt", f"{attempt}/{max_retries}"),
                ("Error Type", type(e).__name__),
                ("Delay", f"{delay:.1f}s"),
            ])
            await asyncio.sleep(delay)


__all__ = ["retry_async", "RetryableStatusError", "RETRYABLE_EXCEPTIONS"]
