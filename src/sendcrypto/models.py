"""
Core data models: networks, assets, chain parameters, UTXOs and request options.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from sendcrypto.constants import DEFAULT_DECIMALS


class UnsupportedAssetError(ValueError):
    """Raised when an asset symbol is unknown or has no registered handler."""

    pass


class NetworkType(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    REGTEST = "regtest"

    @property
    def is_testnet(self) -> bool:
        return self != NetworkType.MAINNET


class Asset(str, Enum):
    """Supported UTXO-model assets."""

    BTC = "BTC"
    BCH = "BCH"
    ZEC = "ZEC"
    DOGE = "DOGE"

    @classmethod
    def parse(cls, symbol: Asset | str) -> Asset:
        """
        Resolve an asset from its ticker or one of its common names.

        Matching is case-insensitive: "btc", "Bitcoin" and "BTC" all give Asset.BTC.

        Raises:
            UnsupportedAssetError: If the symbol names no supported asset
        """
        if isinstance(symbol, Asset):
            return symbol
        asset = ASSET_ALIASES.get(str(symbol).strip().upper())
        if asset is None:
            raise UnsupportedAssetError(f"Unsupported asset: {symbol!r}")
        return asset


ASSET_ALIASES: dict[str, Asset] = {
    "BTC": Asset.BTC,
    "BITCOIN": Asset.BTC,
    "BCH": Asset.BCH,
    "BITCOIN CASH": Asset.BCH,
    "BCASH": Asset.BCH,
    "BITCOINCASH": Asset.BCH,
    "BITCOIN-CASH": Asset.BCH,
    "ZEC": Asset.ZEC,
    "ZCASH": Asset.ZEC,
    "DOGE": Asset.DOGE,
    "DOGECOIN": Asset.DOGE,
}


@dataclass(frozen=True)
class ChainParams:
    """
    Immutable per-call chain configuration.

    Passed explicitly to providers and transaction builders instead of
    selecting network tables from module state.
    """

    asset: Asset
    network: NetworkType
    decimals: int = DEFAULT_DECIMALS

    @property
    def testnet(self) -> bool:
        return self.network.is_testnet

    def to_smallest_unit(self, value: Decimal | str | int) -> int:
        """Convert a whole-coin amount to an integer amount of smallest units."""
        scaled = Decimal(str(value)).scaleb(self.decimals)
        if scaled != scaled.to_integral_value():
            raise ValueError(
                f"{value} {self.asset.value} has more than {self.decimals} decimal places"
            )
        return int(scaled)

    def from_smallest_unit(self, amount: int) -> Decimal:
        return Decimal(amount).scaleb(-self.decimals)


@dataclass(frozen=True)
class UTXO:
    txid: str
    vout: int
    value: int
    scriptpubkey: str
    confirmations: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"UTXO value must be >= 0, got {self.value}")
        if self.vout < 0:
            raise ValueError(f"UTXO output index must be >= 0, got {self.vout}")
        if self.confirmations < 0:
            raise ValueError(f"UTXO confirmations must be >= 0, got {self.confirmations}")

    @property
    def outpoint(self) -> tuple[str, int]:
        return (self.txid, self.vout)


class BalanceOptions(BaseModel):
    """Options for balance queries."""

    address: str | None = Field(default=None, description="Query this address instead of our own")
    confirmations: int = Field(default=0, ge=0, description="Minimum UTXO confirmations (0 = all)")


class SpendOptions(BalanceOptions):
    """Options for sending."""

    fee: int | None = Field(default=None, ge=0, description="Absolute fee in smallest units")
    subtract_fee: bool = Field(default=False, description="Take the fee out of the sent amount")
    wait_confirmations: int = Field(
        default=0, ge=0, description="Confirmations to wait for before the send resolves"
    )


class SpendRequest(SpendOptions):
    """A fully specified send: destination, amount and options."""

    to: str
    amount: int = Field(..., gt=0, description="Amount in smallest units")

    @field_validator("to")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Destination address must not be empty")
        return v
