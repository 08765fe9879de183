"""
Largest-first coin selection.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from loguru import logger

from sendcrypto.models import UTXO


@dataclass
class CoinSelection:
    utxos: list[UTXO] = field(default_factory=list)
    total_value: int = 0

    def covers(self, amount: int) -> bool:
        return self.total_value >= amount


def select_inputs(
    utxos: Iterable[UTXO], target_amount: int, min_confirmations: int = 0
) -> CoinSelection:
    """
    Select UTXOs largest-first until their total reaches `target_amount`.

    The target should already include the fee. If the available balance is
    too small every eligible UTXO is returned; detecting the shortfall is up to
    the transaction builder.

    Args:
        utxos: Candidate UTXOs
        target_amount: Amount to cover in smallest units
        min_confirmations: Skip UTXOs with fewer confirmations (0 = include unconfirmed)
    """
    eligible = [u for u in utxos if u.confirmations >= min_confirmations]
    eligible.sort(key=lambda u: u.value, reverse=True)

    selection = CoinSelection()
    for utxo in eligible:
        if selection.total_value >= target_amount:
            break
        selection.utxos.append(utxo)
        selection.total_value += utxo.value

    if not selection.covers(target_amount):
        logger.debug(
            f"Selected all {len(selection.utxos)} UTXOs, total {selection.total_value} "
            f"is below target {target_amount}"
        )
    return selection
