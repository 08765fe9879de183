"""
Confirmation polling for a pending send.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from loguru import logger

from sendcrypto.constants import (
    CONFIRMATION_MAX_POLLS,
    CONFIRMATION_POLL_INTERVAL,
    EVENT_CONFIRMATION,
)
from sendcrypto.tracked import TrackedPromise


def subscribe_to_confirmations(
    target: TrackedPromise,
    is_aborted: Callable[[], bool],
    fetch_confirmations: Callable[[], Awaitable[int | None]],
    interval: float = CONFIRMATION_POLL_INTERVAL,
    max_polls: int | None = CONFIRMATION_MAX_POLLS,
) -> asyncio.Task:
    """
    Start polling confirmations and emit "confirmation" events on `target`.

    A count is emitted only when it is at least 1 and higher than the last
    count emitted. `fetch_confirmations` returns None while there is no
    transaction to look up yet; such ticks do not count towards `max_polls`.
    Fetch errors skip the tick and never reach the target.

    The loop stops when `is_aborted()` returns True, when `target` settles, or
    after `max_polls` lookups (None polls until one of the others happens).

    Returns:
        The polling task, which callers may also cancel directly
    """
    return asyncio.create_task(
        _poll_confirmations(target, is_aborted, fetch_confirmations, interval, max_polls)
    )


async def _poll_confirmations(
    target: TrackedPromise,
    is_aborted: Callable[[], bool],
    fetch_confirmations: Callable[[], Awaitable[int | None]],
    interval: float,
    max_polls: int | None,
) -> None:
    last_emitted = 0
    polls = 0

    while True:
        if is_aborted() or target.done:
            break
        if max_polls is not None and polls >= max_polls:
            logger.debug(f"Confirmation polling stopped after {polls} polls")
            break

        try:
            confirmations = await fetch_confirmations()
        except Exception as e:
            logger.debug(f"Confirmation poll {polls + 1} failed: {e}")
            confirmations = 0
        if confirmations is not None:
            polls += 1

        # The send may have failed or settled while we were waiting on the fetch
        if is_aborted() or target.done:
            break

        if confirmations is not None and confirmations > last_emitted:
            last_emitted = confirmations
            target.emit(EVENT_CONFIRMATION, confirmations)

        await asyncio.sleep(interval)
