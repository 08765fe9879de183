"""
Transaction builders.
"""

from sendcrypto.builders.base import (
    InsufficientFundsError,
    SignedTransaction,
    TransactionBuildError,
    TransactionBuilder,
)
from sendcrypto.builders.bit_builder import BitTransactionBuilder

__all__ = [
    "BitTransactionBuilder",
    "InsufficientFundsError",
    "SignedTransaction",
    "TransactionBuildError",
    "TransactionBuilder",
]
