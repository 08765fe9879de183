"""
Base class for blockchain data providers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from sendcrypto.models import UTXO


class ProviderError(Exception):
    """A single provider call failed (transport error, RPC error or malformed response)."""

    pass


class ProviderAdapter(ABC):
    """
    Abstract provider for one blockchain data source.

    Implementations must raise (never return a sentinel) when a request fails,
    and must return UTXO values in integer smallest units.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short name used in log messages."""

    @abstractmethod
    async def fetch_utxos(self, address: str, confirmations: int = 0) -> list[UTXO]:
        """
        Get the unspent outputs of an address.

        Args:
            address: Address to query
            confirmations: Minimum confirmations (0 includes unconfirmed outputs)
        """

    @abstractmethod
    async def fetch_utxo(self, txid: str, vout: int) -> UTXO:
        """
        Get one unspent output by outpoint.

        Raises:
            ProviderError: If the output does not exist or is already spent
        """

    @abstractmethod
    async def fetch_confirmations(self, txid: str) -> int:
        """Get the confirmation depth of a transaction (0 while unconfirmed)."""

    @abstractmethod
    async def broadcast_transaction(self, tx_hex: str) -> str:
        """Broadcast a signed transaction and return its txid."""

    async def close(self) -> None:
        """Release any network resources."""
        pass
