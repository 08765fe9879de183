"""
Account: one entry point for every configured asset.
"""

from __future__ import annotations

from decimal import Decimal

from loguru import logger

from sendcrypto.builders.bit_builder import BitTransactionBuilder
from sendcrypto.config import Settings
from sendcrypto.endpoints import EndpointSet, ProviderEntry
from sendcrypto.handler import UTXOHandler
from sendcrypto.models import (
    UTXO,
    Asset,
    BalanceOptions,
    ChainParams,
    NetworkType,
    SpendOptions,
    UnsupportedAssetError,
)
from sendcrypto.providers.bitcoin_core import BitcoinCoreProvider
from sendcrypto.tracked import TrackedPromise


class Account:
    """
    Routes each operation to the handler registered for the asset.

    Assets accept an Asset member or any alias understood by Asset.parse().
    """

    def __init__(self, network: NetworkType = NetworkType.MAINNET):
        self.network = network
        self._handlers: dict[Asset, UTXOHandler] = {}

    def register(self, asset: Asset | str, handler: UTXOHandler) -> None:
        self._handlers[Asset.parse(asset)] = handler

    @property
    def assets(self) -> list[Asset]:
        return list(self._handlers)

    def handler(self, asset: Asset | str) -> UTXOHandler:
        parsed = Asset.parse(asset)
        try:
            return self._handlers[parsed]
        except KeyError:
            raise UnsupportedAssetError(f"No handler configured for {parsed.value}") from None

    def address(self, asset: Asset | str) -> str:
        return self.handler(asset).address()

    async def get_balance(
        self, asset: Asset | str, options: BalanceOptions | None = None
    ) -> Decimal:
        return await self.handler(asset).get_balance(options)

    async def get_balance_in_smallest_unit(
        self, asset: Asset | str, options: BalanceOptions | None = None
    ) -> int:
        return await self.handler(asset).get_balance_in_smallest_unit(options)

    async def get_utxo(self, asset: Asset | str, txid: str, vout: int) -> UTXO:
        return await self.handler(asset).get_utxo(txid, vout)

    def send(
        self,
        to: str,
        value: Decimal | str | int,
        asset: Asset | str,
        options: SpendOptions | None = None,
    ) -> TrackedPromise:
        return self.handler(asset).send(to, value, options)

    def send_in_smallest_unit(
        self, to: str, amount: int, asset: Asset | str, options: SpendOptions | None = None
    ) -> TrackedPromise:
        return self.handler(asset).send_in_smallest_unit(to, amount, options)

    async def close(self) -> None:
        for handler in self._handlers.values():
            await handler.close()

    @classmethod
    def from_settings(cls, settings: Settings, private_key: str | None = None) -> Account:
        """
        Build an account from configuration.

        BTC is registered when a private key and at least one node URL are
        configured. Nodes from btc_rpc_urls are tried first, in order; backups
        from btc_backup_rpc_urls follow.
        """
        network = NetworkType(settings.network)
        account = cls(network)

        wif = private_key if private_key is not None else settings.private_key
        primary = settings.get_btc_rpc_urls()
        backups = settings.get_btc_backup_rpc_urls()
        if not wif or not (primary or backups):
            logger.debug("BTC not configured (private key or node URLs missing)")
            return account

        chain = ChainParams(Asset.BTC, network)
        entries = [
            ProviderEntry(
                BitcoinCoreProvider(url, chain, timeout=settings.rpc_timeout), reliable=True
            )
            for url in primary
        ]
        entries += [
            ProviderEntry(BitcoinCoreProvider(url, chain, timeout=settings.rpc_timeout))
            for url in backups
        ]
        endpoints = EndpointSet(
            entries, testnet=chain.testnet, attempts=settings.provider_attempts
        )
        builder = BitTransactionBuilder(wif, network, fee=settings.default_fee)
        account.register(
            Asset.BTC,
            UTXOHandler(
                chain,
                builder,
                endpoints,
                fallback_attempts=settings.fallback_attempts,
                poll_interval=settings.confirmation_poll_interval,
                max_polls=settings.confirmation_max_polls,
                default_fee=settings.default_fee,
            ),
        )
        logger.debug(f"BTC configured with {len(entries)} node(s) on {network.value}")
        return account
