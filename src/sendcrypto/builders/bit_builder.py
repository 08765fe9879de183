"""
BTC transaction builder backed by the `bit` library.

`bit` derives the P2PKH address from a WIF key and signs legacy transactions
locally. We pass it our own inputs and an absolute fee so it never touches the
network.
"""

from __future__ import annotations

from bit import Key, PrivateKeyTestnet
from bit.exceptions import InsufficientFunds
from bit.network.meta import Unspent
from loguru import logger

from sendcrypto.builders.base import (
    InsufficientFundsError,
    SignedTransaction,
    TransactionBuildError,
    TransactionBuilder,
)
from sendcrypto.constants import DEFAULT_FEE
from sendcrypto.models import UTXO, Asset, ChainParams, NetworkType, SpendOptions


def output_value(amount: int, fee: int, subtract_fee: bool) -> int:
    """Value paid to the recipient."""
    return amount - fee if subtract_fee else amount


class BitTransactionBuilder(TransactionBuilder):
    def __init__(
        self, wif: str, network: NetworkType = NetworkType.MAINNET, fee: int = DEFAULT_FEE
    ):
        self.network = network
        self.default_fee = fee
        try:
            self._key = Key(wif) if network == NetworkType.MAINNET else PrivateKeyTestnet(wif)
        except (ValueError, TypeError, KeyError) as e:
            raise TransactionBuildError(f"Invalid WIF private key for {network.value}") from e

    @classmethod
    def generate(cls, network: NetworkType = NetworkType.MAINNET) -> BitTransactionBuilder:
        """Create a builder with a fresh random key."""
        key = Key() if network == NetworkType.MAINNET else PrivateKeyTestnet()
        return cls(key.to_wif(), network)

    @property
    def wif(self) -> str:
        return self._key.to_wif()

    @property
    def address(self) -> str:
        return self._key.address

    async def build(
        self,
        chain: ChainParams,
        change_address: str,
        destination: str,
        amount: int,
        utxos: list[UTXO],
        options: SpendOptions,
    ) -> SignedTransaction:
        if chain.asset != Asset.BTC:
            raise TransactionBuildError(f"{chain.asset.value} is not supported by this builder")
        if chain.testnet != (self.network != NetworkType.MAINNET):
            raise TransactionBuildError(
                f"Key is for {self.network.value}, chain is {chain.network.value}"
            )
        if change_address != self.address:
            raise TransactionBuildError(
                f"Inputs of {change_address} cannot be signed with the key for {self.address}"
            )

        fee = options.fee if options.fee is not None else self.default_fee
        value = output_value(amount, fee, options.subtract_fee)
        if value <= 0:
            raise TransactionBuildError(f"Amount {amount} does not cover the fee of {fee}")

        available = sum(u.value for u in utxos)
        if available < value + fee:
            raise InsufficientFundsError(available, value + fee)

        unspents = [
            Unspent(u.value, u.confirmations, u.scriptpubkey, u.txid, u.vout) for u in utxos
        ]
        try:
            tx_hex = self._key.create_transaction(
                [(destination, value, "satoshi")],
                fee=fee,
                absolute_fee=True,
                leftover=change_address,
                combine=True,
                unspents=unspents,
            )
        except InsufficientFunds as e:
            raise InsufficientFundsError(available, value + fee) from e
        except (ValueError, TypeError) as e:
            raise TransactionBuildError(f"Failed to create transaction: {e}") from e

        logger.debug(f"Built transaction spending {len(utxos)} inputs, {value} to recipient")
        return SignedTransaction(hex=tx_hex)
