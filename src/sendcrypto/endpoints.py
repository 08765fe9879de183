"""
Endpoint lists: ordered provider calls for one logical request.

Reliable providers are tried first in their configured order. The remaining
providers follow, shuffled on mainnet to spread load across backups and kept in
a fixed order on test networks. Each call is wrapped in its own retry loop.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import partial
from typing import Any

from loguru import logger

from sendcrypto.constants import DEFAULT_PROVIDER_ATTEMPTS
from sendcrypto.providers.base import ProviderAdapter
from sendcrypto.retry import Operation, only_mainnet, retry_n_times, shuffled


class ProviderInconsistencyError(Exception):
    """Two providers returned different results for the same read-only query."""

    pass


@dataclass
class ProviderEntry:
    provider: ProviderAdapter
    reliable: bool = False
    mainnet_only: bool = False


class EndpointSet:
    """
    Provider configuration for one chain.

    Every method returns a fresh list of operations; lists are never reused
    between requests.
    """

    def __init__(
        self,
        entries: Sequence[ProviderEntry],
        testnet: bool = False,
        attempts: int = DEFAULT_PROVIDER_ATTEMPTS,
        rng: random.Random | None = None,
    ):
        self.entries = list(entries)
        self.testnet = testnet
        self.attempts = attempts
        self.rng = rng

    @property
    def providers(self) -> list[ProviderAdapter]:
        return [entry.provider for entry in self.entries]

    def ordered(self) -> list[ProviderAdapter]:
        """Providers in the order a fallback should try them."""
        usable: list[ProviderEntry] = []
        for entry in self.entries:
            usable += only_mainnet(entry, self.testnet) if entry.mainnet_only else [entry]
        reliable = [e.provider for e in usable if e.reliable]
        backups = [e.provider for e in usable if not e.reliable]
        if not self.testnet:
            backups = shuffled(backups, self.rng)
        return reliable + backups

    def _operations(
        self, method: Callable[[ProviderAdapter], Callable[..., Any]], *args: Any
    ) -> list[Operation]:
        return [
            partial(retry_n_times, partial(method(provider), *args), self.attempts)
            for provider in self.ordered()
        ]

    def fetch_utxos(self, address: str, confirmations: int = 0) -> list[Operation]:
        return self._operations(lambda p: p.fetch_utxos, address, confirmations)

    def fetch_utxo(self, txid: str, vout: int) -> list[Operation]:
        return self._operations(lambda p: p.fetch_utxo, txid, vout)

    def fetch_confirmations(self, txid: str) -> list[Operation]:
        return self._operations(lambda p: p.fetch_confirmations, txid)

    def broadcast_transaction(self, tx_hex: str) -> list[Operation]:
        return self._operations(lambda p: p.broadcast_transaction, tx_hex)

    async def close(self) -> None:
        for provider in self.providers:
            await provider.close()


def _normalise(result: Any) -> Any:
    # UTXO lists are compared as sets, order differs between providers
    if isinstance(result, list):
        try:
            return frozenset(result)
        except TypeError:
            return result
    return result


async def check_consistency(operations: Sequence[Operation | None]) -> Any:
    """
    Run every operation and check that they all agree.

    Use with read-only queries (UTXO sets, confirmation counts). Errors raised
    by an operation propagate unchanged. `None` entries are skipped.

    Returns:
        The common result

    Raises:
        ProviderInconsistencyError: If any two results differ
    """
    results = []
    for operation in operations:
        if operation is None:
            continue
        results.append(await operation())

    if not results:
        return None

    expected = _normalise(results[0])
    for index, result in enumerate(results[1:], start=2):
        if _normalise(result) != expected:
            logger.warning(f"Endpoint {index} disagrees with endpoint 1")
            raise ProviderInconsistencyError(
                f"Endpoint {index} returned {result!r}, endpoint 1 returned {results[0]!r}"
            )
    logger.debug(f"{len(results)} endpoints agree")
    return results[0]
