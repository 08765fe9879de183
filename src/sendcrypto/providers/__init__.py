"""
Blockchain data providers.

Available providers:
- BitcoinCoreProvider: any bitcoind-compatible node via JSON-RPC (scantxoutset)
"""

from sendcrypto.providers.base import ProviderAdapter, ProviderError
from sendcrypto.providers.bitcoin_core import BitcoinCoreProvider, RPCError

__all__ = [
    "BitcoinCoreProvider",
    "ProviderAdapter",
    "ProviderError",
    "RPCError",
]
