"""
Transaction builder interface.

Builders own key material, transaction serialization and signing. The send
pipeline hands them the selected inputs and broadcasts whatever they return.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from sendcrypto.models import UTXO, ChainParams, SpendOptions


class InsufficientFundsError(Exception):
    """The selected inputs cannot cover the amount plus fee."""

    def __init__(self, available: int, required: int):
        super().__init__(f"Insufficient funds: have {available}, need {required}")
        self.available = available
        self.required = required


class TransactionBuildError(Exception):
    """Transaction construction or signing failed."""

    pass


@dataclass(frozen=True)
class SignedTransaction:
    hex: str
    txid: str | None = None

    def to_hex(self) -> str:
        return self.hex


class TransactionBuilder(ABC):
    @property
    @abstractmethod
    def address(self) -> str:
        """Address controlled by this builder's key."""

    @abstractmethod
    async def build(
        self,
        chain: ChainParams,
        change_address: str,
        destination: str,
        amount: int,
        utxos: list[UTXO],
        options: SpendOptions,
    ) -> SignedTransaction:
        """
        Build and sign a transaction spending `utxos`.

        Args:
            chain: Chain parameters for this call
            change_address: Receives the leftover value
            destination: Recipient address
            amount: Amount in smallest units (before subtracting the fee when
                options.subtract_fee is set)
            utxos: Inputs chosen by coin selection
            options: Fee and subtract-fee settings

        Raises:
            InsufficientFundsError: If the inputs cannot cover the outputs and fee
            TransactionBuildError: If the transaction cannot be built
        """
