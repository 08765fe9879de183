"""
TrackedPromise: an awaitable result with a milestone event channel.

A send returns a TrackedPromise immediately. Callers can simply await it for the
final txid, or subscribe to the events emitted while it is pending:

    promise = handler.send_in_smallest_unit(address, 50_000)
    promise.on("transactionHash", lambda txid: print(txid))
    promise.on("confirmation", lambda count: print(count))
    txid = await promise

Once the promise settles the event channel is closed: handlers are dropped,
new subscriptions are ignored and emit() becomes a no-op.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Callable, Generator
from enum import Enum
from typing import Any

from loguru import logger


class EventChannelClosedError(Exception):
    """The promise settled before the awaited event was emitted."""

    pass


class PromiseState(str, Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


class TrackedPromise:
    """
    Single-assignment result plus named event handlers.

    Must be created while an event loop is running.
    """

    def __init__(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._future: asyncio.Future[Any] = self._loop.create_future()
        self._handlers: dict[str, list[Callable[[Any], Any]]] = {}
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> PromiseState:
        if not self._future.done():
            return PromiseState.PENDING
        if self._future.exception() is not None:
            return PromiseState.REJECTED
        return PromiseState.FULFILLED

    @property
    def done(self) -> bool:
        return self._future.done()

    def on(self, event: str, handler: Callable[[Any], Any]) -> TrackedPromise:
        """Register a handler for `event`. Handlers run in registration order."""
        if not self.done:
            self._handlers.setdefault(event, []).append(handler)
        return self

    def emit(self, event: str, payload: Any = None) -> bool:
        """
        Call every handler registered for `event`.

        Coroutine handlers are scheduled as tasks. A failing handler is logged
        and does not stop the others.

        Returns:
            False if the promise has settled or nobody listens to `event`
        """
        if self.done:
            return False
        handlers = list(self._handlers.get(event, ()))
        for handler in handlers:
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    self._tasks.add(task)
                    task.add_done_callback(self._handler_task_done)
            except Exception as e:
                logger.warning(f"Handler for {event!r} raised: {e}")
        return bool(handlers)

    def _handler_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning(f"Async event handler raised: {task.exception()}")

    def resolve(self, value: Any) -> None:
        """Fulfil the promise. Raises asyncio.InvalidStateError if already settled."""
        self._future.set_result(value)
        self._handlers.clear()

    def reject(self, error: BaseException) -> None:
        """Reject the promise. Raises asyncio.InvalidStateError if already settled."""
        self._future.set_exception(error)
        self._handlers.clear()

    def then(self, on_fulfilled: Callable[[Any], Any]) -> TrackedPromise:
        """Call `on_fulfilled(value)` once the promise fulfils."""

        def _callback(future: asyncio.Future) -> None:
            if not future.cancelled() and future.exception() is None:
                on_fulfilled(future.result())

        self._future.add_done_callback(_callback)
        return self

    def catch(self, on_rejected: Callable[[BaseException], Any]) -> TrackedPromise:
        """
        Call `on_rejected(error)` once the promise rejects.

        The rejection is not swallowed: awaiting the promise still raises.
        """

        def _callback(future: asyncio.Future) -> None:
            if not future.cancelled() and future.exception() is not None:
                on_rejected(future.exception())

        self._future.add_done_callback(_callback)
        return self

    def result(self) -> Any:
        return self._future.result()

    def exception(self) -> BaseException | None:
        return self._future.exception()

    def __await__(self) -> Generator[Any, None, Any]:
        return self._future.__await__()

    async def wait_for(
        self, event: str, predicate: Callable[[Any], bool] | None = None
    ) -> Any:
        """
        Wait for the first payload of `event` that satisfies `predicate`.

        Raises:
            The promise's error if it rejects first
            EventChannelClosedError: If the promise fulfils first
        """
        if self.done:
            self._future.result()
            raise EventChannelClosedError(f"Promise settled before {event!r}")

        waiter: asyncio.Future[Any] = self._loop.create_future()

        def _on_event(payload: Any) -> None:
            if not waiter.done() and (predicate is None or predicate(payload)):
                waiter.set_result(payload)

        def _on_settled(future: asyncio.Future) -> None:
            if waiter.done():
                return
            if not future.cancelled() and future.exception() is not None:
                waiter.set_exception(future.exception())
            else:
                waiter.set_exception(EventChannelClosedError(f"Promise settled before {event!r}"))

        self.on(event, _on_event)
        self._future.add_done_callback(_on_settled)
        try:
            return await waiter
        finally:
            self._future.remove_done_callback(_on_settled)
            handlers = self._handlers.get(event)
            if handlers and _on_event in handlers:
                handlers.remove(_on_event)

    def __repr__(self) -> str:
        return f"<TrackedPromise {self.state.value}>"
