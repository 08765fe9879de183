"""
Chain handler: balances and sends for one UTXO chain.

The handler is asset-agnostic. It needs chain parameters, a set of provider
endpoints and a transaction builder that holds the key.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import Decimal

from loguru import logger

from sendcrypto.builders.base import TransactionBuildError, TransactionBuilder
from sendcrypto.coin_selection import select_inputs
from sendcrypto.confirmations import subscribe_to_confirmations
from sendcrypto.constants import (
    CONFIRMATION_MAX_POLLS,
    CONFIRMATION_POLL_INTERVAL,
    DEFAULT_FALLBACK_ATTEMPTS,
    DEFAULT_FEE,
    EVENT_CONFIRMATION,
    EVENT_TRANSACTION_HASH,
)
from sendcrypto.endpoints import EndpointSet
from sendcrypto.models import UTXO, BalanceOptions, ChainParams, SpendOptions, SpendRequest
from sendcrypto.retry import fallback, retry_n_times
from sendcrypto.tracked import TrackedPromise


class ConfirmationTimeoutError(Exception):
    """Confirmation polling stopped before the requested depth was reached."""

    def __init__(self, txid: str, required: int, reached: int):
        super().__init__(
            f"Transaction {txid} reached {reached} of {required} confirmations "
            "before polling stopped"
        )
        self.txid = txid
        self.required = required
        self.reached = reached


class SendCancelledError(Exception):
    """The handler was closed while the send was still in progress."""

    pass


@dataclass
class _SendState:
    txid: str | None = None
    errored: bool = False
    confirmations: int = 0


class UTXOHandler:
    def __init__(
        self,
        chain: ChainParams,
        builder: TransactionBuilder,
        endpoints: EndpointSet,
        fallback_attempts: int = DEFAULT_FALLBACK_ATTEMPTS,
        poll_interval: float = CONFIRMATION_POLL_INTERVAL,
        max_polls: int | None = CONFIRMATION_MAX_POLLS,
        default_fee: int = DEFAULT_FEE,
    ):
        self.chain = chain
        self.builder = builder
        self.endpoints = endpoints
        self.fallback_attempts = fallback_attempts
        self.poll_interval = poll_interval
        self.max_polls = max_polls
        self.default_fee = default_fee
        self._tasks: set[asyncio.Task] = set()

    def address(self) -> str:
        return self.builder.address

    async def get_utxos(self, address: str | None = None, confirmations: int = 0) -> list[UTXO]:
        """
        Fetch the UTXOs of an address, trying each provider in turn.

        The endpoint list is rebuilt for every attempt, so backups are
        reshuffled when the whole list is retried.
        """
        address = address or self.address()
        return await retry_n_times(
            lambda: fallback(self.endpoints.fetch_utxos(address, confirmations)),
            self.fallback_attempts,
        )

    async def get_utxo(self, txid: str, vout: int) -> UTXO:
        """Look up one unspent output, trying each provider in turn."""
        return await retry_n_times(
            lambda: fallback(self.endpoints.fetch_utxo(txid, vout)),
            self.fallback_attempts,
        )

    async def get_balance_in_smallest_unit(self, options: BalanceOptions | None = None) -> int:
        options = options or BalanceOptions()
        utxos = await self.get_utxos(options.address, options.confirmations)
        return sum(u.value for u in utxos)

    async def get_balance(self, options: BalanceOptions | None = None) -> Decimal:
        return self.chain.from_smallest_unit(await self.get_balance_in_smallest_unit(options))

    def send(
        self, to: str, value: Decimal | str | int, options: SpendOptions | None = None
    ) -> TrackedPromise:
        """Send `value` whole coins. See send_in_smallest_unit()."""
        return self.send_in_smallest_unit(to, self.chain.to_smallest_unit(value), options)

    def send_in_smallest_unit(
        self, to: str, amount: int, options: SpendOptions | None = None
    ) -> TrackedPromise:
        """
        Start a send and return its TrackedPromise immediately.

        The promise emits "transactionHash" once the transaction is broadcast
        and "confirmation" with increasing counts while it gets mined. It
        resolves to the txid after broadcast, or once the transaction has
        `options.wait_confirmations` confirmations when that is set.

        Must be called from a running event loop.

        Raises:
            pydantic.ValidationError: If the request is invalid
        """
        options = options or SpendOptions()
        request = SpendRequest(to=to, amount=amount, **options.model_dump())

        promise = TrackedPromise()
        state = _SendState()

        async def _fetch_confirmations() -> int | None:
            if state.txid is None:
                return None
            return await fallback(self.endpoints.fetch_confirmations(state.txid))

        subscriber = subscribe_to_confirmations(
            promise,
            lambda: state.errored,
            _fetch_confirmations,
            interval=self.poll_interval,
            max_polls=self.max_polls,
        )
        self._track(subscriber)
        self._track(asyncio.create_task(self._send(request, promise, state, subscriber)))
        return promise

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _send(
        self,
        request: SpendRequest,
        promise: TrackedPromise,
        state: _SendState,
        subscriber: asyncio.Task,
    ) -> None:
        try:
            state.txid = await self._build_and_broadcast(request)
        except asyncio.CancelledError:
            state.errored = True
            promise.reject(SendCancelledError("Handler closed before the send completed"))
            raise
        except Exception as e:
            state.errored = True
            logger.error(f"Send of {request.amount} to {request.to} failed: {e}")
            promise.reject(e)
            return

        txid = state.txid
        promise.emit(EVENT_TRANSACTION_HASH, txid)

        if request.wait_confirmations == 0:
            promise.resolve(txid)
            return

        def _on_confirmation(count: int) -> None:
            state.confirmations = count
            if count >= request.wait_confirmations and not promise.done:
                logger.info(f"Transaction {txid} has {count} confirmations")
                promise.resolve(txid)

        promise.on(EVENT_CONFIRMATION, _on_confirmation)
        try:
            await subscriber
        except asyncio.CancelledError:
            if not promise.done:
                promise.reject(SendCancelledError("Handler closed while waiting for confirmations"))
            raise

        if not promise.done:
            promise.reject(
                ConfirmationTimeoutError(txid, request.wait_confirmations, state.confirmations)
            )

    async def _build_and_broadcast(self, request: SpendRequest) -> str:
        fee = request.fee if request.fee is not None else self.default_fee
        options = SpendOptions(
            address=request.address,
            confirmations=request.confirmations,
            fee=fee,
            subtract_fee=request.subtract_fee,
            wait_confirmations=request.wait_confirmations,
        )
        source = self.address()
        if request.address is not None and request.address != source:
            # The builder can only sign for its own key
            raise TransactionBuildError(
                f"Cannot spend from {request.address}, the key controls {source}"
            )
        target = request.amount if request.subtract_fee else request.amount + fee

        utxos = await self.get_utxos(source, request.confirmations)
        selection = select_inputs(utxos, target, request.confirmations)
        logger.debug(
            f"Selected {len(selection.utxos)} of {len(utxos)} UTXOs "
            f"({selection.total_value} for target {target})"
        )

        tx = await self.builder.build(
            self.chain, source, request.to, request.amount, selection.utxos, options
        )
        txid = await fallback(self.endpoints.broadcast_transaction(tx.to_hex()))
        logger.info(f"Sent {request.amount} {self.chain.asset.value} to {request.to}: {txid}")
        return txid

    async def close(self) -> None:
        """Cancel in-flight sends and close all providers."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self.endpoints.close()
