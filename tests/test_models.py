"""
Tests for assets, chain parameters, UTXOs and request models.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from sendcrypto.models import (
    UTXO,
    Asset,
    BalanceOptions,
    ChainParams,
    NetworkType,
    SpendOptions,
    SpendRequest,
    UnsupportedAssetError,
)


class TestAsset:
    @pytest.mark.parametrize(
        "symbol,expected",
        [
            ("BTC", Asset.BTC),
            ("btc", Asset.BTC),
            ("Bitcoin", Asset.BTC),
            ("bch", Asset.BCH),
            ("Bitcoin Cash", Asset.BCH),
            ("BCASH", Asset.BCH),
            ("bitcoin-cash", Asset.BCH),
            ("BitcoinCash", Asset.BCH),
            ("zcash", Asset.ZEC),
            ("ZEC", Asset.ZEC),
            ("doge", Asset.DOGE),
            (" btc ", Asset.BTC),
        ],
    )
    def test_aliases(self, symbol: str, expected: Asset) -> None:
        assert Asset.parse(symbol) == expected

    def test_enum_member_passes_through(self) -> None:
        assert Asset.parse(Asset.ZEC) is Asset.ZEC

    def test_unknown_symbol(self) -> None:
        with pytest.raises(UnsupportedAssetError):
            Asset.parse("ETH")

    def test_unsupported_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            Asset.parse("")


class TestChainParams:
    def test_testnet_flag(self) -> None:
        assert not ChainParams(Asset.BTC, NetworkType.MAINNET).testnet
        assert ChainParams(Asset.BTC, NetworkType.TESTNET).testnet
        assert ChainParams(Asset.BTC, NetworkType.REGTEST).testnet

    def test_to_smallest_unit(self) -> None:
        chain = ChainParams(Asset.BTC, NetworkType.MAINNET)
        assert chain.to_smallest_unit(Decimal("0.0001")) == 10_000
        assert chain.to_smallest_unit("1.5") == 150_000_000
        assert chain.to_smallest_unit(2) == 200_000_000
        assert chain.to_smallest_unit(Decimal("0.00000001")) == 1

    def test_excess_precision_rejected(self) -> None:
        chain = ChainParams(Asset.BTC, NetworkType.MAINNET)
        with pytest.raises(ValueError, match="decimal places"):
            chain.to_smallest_unit(Decimal("0.000000001"))

    def test_from_smallest_unit(self) -> None:
        chain = ChainParams(Asset.DOGE, NetworkType.MAINNET)
        assert chain.from_smallest_unit(150_000_000) == Decimal("1.5")
        assert chain.from_smallest_unit(1) == Decimal("0.00000001")

    def test_frozen(self) -> None:
        chain = ChainParams(Asset.BTC, NetworkType.MAINNET)
        with pytest.raises(AttributeError):
            chain.network = NetworkType.TESTNET  # type: ignore[misc]


class TestUTXO:
    def test_outpoint(self) -> None:
        utxo = UTXO(txid="aa" * 32, vout=1, value=10, scriptpubkey="", confirmations=0)
        assert utxo.outpoint == ("aa" * 32, 1)

    @pytest.mark.parametrize(
        "field,value", [("value", -1), ("vout", -1), ("confirmations", -1)]
    )
    def test_negative_fields_rejected(self, field: str, value: int) -> None:
        kwargs = {"txid": "aa" * 32, "vout": 0, "value": 10, "scriptpubkey": "", "confirmations": 0}
        kwargs[field] = value
        with pytest.raises(ValueError):
            UTXO(**kwargs)

    def test_zero_value_allowed(self) -> None:
        assert UTXO(txid="aa", vout=0, value=0, scriptpubkey="", confirmations=0).value == 0

    def test_hashable(self) -> None:
        a = UTXO(txid="aa", vout=0, value=5, scriptpubkey="", confirmations=1)
        b = UTXO(txid="aa", vout=0, value=5, scriptpubkey="", confirmations=1)
        assert {a, b} == {a}


class TestOptions:
    def test_balance_defaults(self) -> None:
        options = BalanceOptions()
        assert options.address is None
        assert options.confirmations == 0

    def test_negative_confirmations(self) -> None:
        with pytest.raises(ValidationError):
            BalanceOptions(confirmations=-1)

    def test_spend_defaults(self) -> None:
        options = SpendOptions()
        assert options.fee is None
        assert options.subtract_fee is False
        assert options.wait_confirmations == 0

    def test_negative_fee(self) -> None:
        with pytest.raises(ValidationError):
            SpendOptions(fee=-1)

    def test_zero_fee_allowed(self) -> None:
        assert SpendOptions(fee=0).fee == 0

    def test_request_amount_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            SpendRequest(to="addr", amount=0)

    def test_request_destination_required(self) -> None:
        with pytest.raises(ValidationError):
            SpendRequest(to="   ", amount=10)

    def test_request_strips_destination(self) -> None:
        assert SpendRequest(to=" addr ", amount=10).to == "addr"
