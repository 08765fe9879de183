"""
Retry and fallback engines for unreliable providers.

An operation is a zero-argument callable returning an awaitable. Providers are
wrapped as `retry_n_times(call, n)` and a list of those is run through
`fallback()`: fallback is the outer loop, retry is the inner loop per provider.
"""

from __future__ import annotations

import asyncio
import random
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from loguru import logger

Operation = Callable[[], Awaitable[Any]]


class NoEndpointsError(Exception):
    """Raised by fallback() when there is nothing to try."""

    pass


async def retry_n_times(operation: Operation, max_attempts: int, delay: float = 0.0) -> Any:
    """
    Run an operation until it succeeds, at most `max_attempts` times.

    Values below 1 mean a single attempt. The error of the final attempt is
    re-raised unchanged.

    Args:
        operation: Zero-argument callable returning an awaitable
        max_attempts: Total number of attempts
        delay: Seconds to sleep between attempts (0 = retry immediately)
    """
    attempts = max(1, max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt >= attempts:
                raise
            logger.debug(f"Attempt {attempt}/{attempts} failed: {e}")
            if delay > 0:
                await asyncio.sleep(delay)


async def fallback(operations: Sequence[Operation | None]) -> Any:
    """
    Run operations in order and return the first successful result.

    Operations are awaited one at a time, never concurrently. `None` entries
    are skipped without counting as failures.

    Raises:
        The error of the last operation tried if every operation failed
        NoEndpointsError: If there was no operation to try
    """
    last_error: Exception | None = None
    tried = 0
    for operation in operations:
        if operation is None:
            continue
        tried += 1
        try:
            return await operation()
        except Exception as e:
            logger.warning(f"Endpoint {tried} failed: {type(e).__name__}: {e}")
            last_error = e

    if last_error is None:
        raise NoEndpointsError("No endpoints configured")
    raise last_error


def only_mainnet(item: Any, testnet: bool) -> list[Any]:
    """Include an operation (or provider entry) only when running on mainnet."""
    return [] if testnet else [item]


def shuffled(items: Sequence[Any], rng: random.Random | None = None) -> list[Any]:
    """Return a shuffled copy of `items`."""
    result = list(items)
    (rng or random).shuffle(result)
    return result
