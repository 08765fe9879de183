"""
send-crypto - Multi-asset UTXO wallet with provider fallback and tracked sends.
"""

from sendcrypto.account import Account
from sendcrypto.handler import ConfirmationTimeoutError, SendCancelledError, UTXOHandler
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
from sendcrypto.retry import NoEndpointsError, fallback, retry_n_times
from sendcrypto.tracked import EventChannelClosedError, PromiseState, TrackedPromise

__version__ = "0.3.0"

__all__ = [
    "Account",
    "Asset",
    "BalanceOptions",
    "ChainParams",
    "ConfirmationTimeoutError",
    "EventChannelClosedError",
    "NetworkType",
    "NoEndpointsError",
    "PromiseState",
    "SendCancelledError",
    "SpendOptions",
    "SpendRequest",
    "TrackedPromise",
    "UnsupportedAssetError",
    "UTXO",
    "UTXOHandler",
    "fallback",
    "retry_n_times",
]
