"""
Shared fixtures: scripted providers and a fake transaction builder.
"""

from __future__ import annotations

import pytest

from sendcrypto.builders.base import (
    InsufficientFundsError,
    SignedTransaction,
    TransactionBuilder,
)
from sendcrypto.models import UTXO, Asset, ChainParams, NetworkType, SpendOptions
from sendcrypto.providers.base import ProviderAdapter, ProviderError

TXID = "ab" * 32


def make_utxo(value: int, confirmations: int = 1, index: int = 0) -> UTXO:
    return UTXO(
        txid=f"{index:064x}",
        vout=index,
        value=value,
        scriptpubkey="76a914" + "00" * 20 + "88ac",
        confirmations=confirmations,
    )


class FakeProvider(ProviderAdapter):
    """
    Provider with scripted responses.

    `failures` maps a method name to the number of calls that fail before the
    method starts succeeding (-1 = always fail). `confirmation_script` is
    consumed one value per call and its last value repeats; an exception in
    the script is raised instead of returned.
    """

    def __init__(
        self,
        name: str = "fake",
        utxos: list[UTXO] | None = None,
        txid: str = TXID,
        confirmation_script: list | None = None,
        failures: dict[str, int] | None = None,
    ):
        self._name = name
        self.utxos = list(utxos or [])
        self.txid = txid
        self.confirmation_script = list(confirmation_script or [0])
        self.failures = dict(failures or {})
        self.calls = {
            "fetch_utxos": 0,
            "fetch_utxo": 0,
            "fetch_confirmations": 0,
            "broadcast_transaction": 0,
        }
        self.broadcasts: list[str] = []
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    def _record(self, method: str) -> None:
        self.calls[method] += 1
        remaining = self.failures.get(method, 0)
        if remaining == 0:
            return
        if remaining > 0:
            self.failures[method] = remaining - 1
        raise ProviderError(f"{self._name} {method} unavailable")

    async def fetch_utxos(self, address: str, confirmations: int = 0) -> list[UTXO]:
        self._record("fetch_utxos")
        return [u for u in self.utxos if confirmations == 0 or u.confirmations >= confirmations]

    async def fetch_utxo(self, txid: str, vout: int) -> UTXO:
        self._record("fetch_utxo")
        for utxo in self.utxos:
            if utxo.outpoint == (txid, vout):
                return utxo
        raise ProviderError(f"{self._name}: output {txid}:{vout} not found or spent")

    async def fetch_confirmations(self, txid: str) -> int:
        self._record("fetch_confirmations")
        if len(self.confirmation_script) > 1:
            value = self.confirmation_script.pop(0)
        else:
            value = self.confirmation_script[0]
        if isinstance(value, Exception):
            raise value
        return value

    async def broadcast_transaction(self, tx_hex: str) -> str:
        # Recorded before any scripted failure, like a node that accepted the
        # transaction but whose response was lost
        self.broadcasts.append(tx_hex)
        self._record("broadcast_transaction")
        return self.txid

    async def close(self) -> None:
        self.closed = True


class FakeBuilder(TransactionBuilder):
    """Builder that checks funds like a real one and returns a fixed hex."""

    def __init__(self, address: str = "fake-address", error: Exception | None = None):
        self._address = address
        self.error = error
        self.calls: list[dict] = []

    @property
    def address(self) -> str:
        return self._address

    async def build(
        self,
        chain: ChainParams,
        change_address: str,
        destination: str,
        amount: int,
        utxos: list[UTXO],
        options: SpendOptions,
    ) -> SignedTransaction:
        self.calls.append(
            {
                "chain": chain,
                "change_address": change_address,
                "destination": destination,
                "amount": amount,
                "utxos": list(utxos),
                "options": options,
            }
        )
        if self.error is not None:
            raise self.error
        fee = options.fee or 0
        required = amount if options.subtract_fee else amount + fee
        available = sum(u.value for u in utxos)
        if available < required:
            raise InsufficientFundsError(available, required)
        return SignedTransaction(hex="0100000001" + "00" * 10)


@pytest.fixture
def chain() -> ChainParams:
    return ChainParams(Asset.BTC, NetworkType.REGTEST)
