"""
send-crypto CLI - check balances and send coins through redundant providers.
"""

from __future__ import annotations

import asyncio
import sys
from decimal import Decimal, InvalidOperation

import typer
from loguru import logger

from sendcrypto.account import Account
from sendcrypto.builders.bit_builder import BitTransactionBuilder
from sendcrypto.config import Settings, get_settings
from sendcrypto.constants import EVENT_CONFIRMATION, EVENT_TRANSACTION_HASH
from sendcrypto.endpoints import check_consistency
from sendcrypto.models import BalanceOptions, NetworkType, SpendOptions

app = typer.Typer(
    name="send-crypto",
    help="Multi-asset UTXO wallet",
    add_completion=False,
)


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def _load_settings(
    network: str | None, private_key: str | None, rpc_urls: str | None
) -> Settings:
    settings = get_settings()
    updates: dict[str, str] = {}
    if network:
        try:
            updates["network"] = NetworkType(network.lower()).value
        except ValueError:
            logger.error(f"Unknown network: {network}")
            raise typer.Exit(1)
    if private_key:
        updates["private_key"] = private_key
    if rpc_urls:
        updates["btc_rpc_urls"] = rpc_urls
    return settings.model_copy(update=updates)


def _load_account(settings: Settings) -> Account:
    try:
        return Account.from_settings(settings)
    except Exception as e:
        logger.error(f"Failed to configure wallet: {e}")
        raise typer.Exit(1)


@app.command()
def new_key(
    network: str = typer.Option("mainnet", "--network", "-n", help="mainnet | testnet | regtest"),
) -> None:
    """Generate a new BTC private key (WIF) and print its address."""
    setup_logging()
    try:
        builder = BitTransactionBuilder.generate(NetworkType(network.lower()))
    except ValueError as e:
        logger.error(f"Failed to generate key: {e}")
        raise typer.Exit(1)

    typer.echo(f"Private key (WIF): {builder.wif}")
    typer.echo(f"Address:           {builder.address}")
    typer.echo("KEEP THE PRIVATE KEY SECURE - IT CONTROLS YOUR FUNDS!")


@app.command()
def address(
    asset: str = typer.Option("BTC", "--asset", "-a", help="Asset symbol"),
    network: str | None = typer.Option(None, "--network", "-n", envvar="NETWORK"),
    private_key: str | None = typer.Option(None, "--private-key", envvar="PRIVATE_KEY"),
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="BTC_RPC_URLS"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Show the wallet address for an asset."""
    setup_logging(log_level)
    settings = _load_settings(network, private_key, rpc_url)
    asyncio.run(_show_address(settings, asset))


async def _show_address(settings: Settings, asset: str) -> None:
    account = _load_account(settings)
    try:
        typer.echo(account.address(asset))
    except Exception as e:
        logger.error(f"Failed to get address: {e}")
        raise typer.Exit(1)
    finally:
        await account.close()


@app.command()
def balance(
    asset: str = typer.Option("BTC", "--asset", "-a", help="Asset symbol"),
    confirmations: int = typer.Option(0, "--confirmations", "-c", help="Minimum confirmations"),
    of_address: str | None = typer.Option(
        None, "--address", help="Query this address instead of the wallet's"
    ),
    sats: bool = typer.Option(False, "--sats", help="Show the balance in smallest units"),
    network: str | None = typer.Option(None, "--network", "-n", envvar="NETWORK"),
    private_key: str | None = typer.Option(None, "--private-key", envvar="PRIVATE_KEY"),
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="BTC_RPC_URLS"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Show the balance of the wallet (or of any address)."""
    setup_logging(log_level)
    settings = _load_settings(network, private_key, rpc_url)
    asyncio.run(_show_balance(settings, asset, of_address, confirmations, sats))


async def _show_balance(
    settings: Settings, asset: str, of_address: str | None, confirmations: int, sats: bool
) -> None:
    account = _load_account(settings)
    try:
        options = BalanceOptions(address=of_address, confirmations=confirmations)
        if sats:
            value = await account.get_balance_in_smallest_unit(asset, options)
        else:
            value = await account.get_balance(asset, options)
        typer.echo(f"{value} {asset.upper()}" if not sats else str(value))
    except Exception as e:
        logger.error(f"Failed to get balance: {e}")
        raise typer.Exit(1)
    finally:
        await account.close()


@app.command()
def send(
    to: str = typer.Argument(..., help="Destination address"),
    amount: str = typer.Argument(..., help="Amount in whole coins (smallest units with --sats)"),
    asset: str = typer.Option("BTC", "--asset", "-a", help="Asset symbol"),
    sats: bool = typer.Option(False, "--sats", help="AMOUNT is in smallest units"),
    fee: int | None = typer.Option(None, "--fee", help="Absolute fee in smallest units"),
    subtract_fee: bool = typer.Option(
        False, "--subtract-fee", help="Deduct the fee from the amount sent"
    ),
    confirmations: int = typer.Option(
        0, "--confirmations", "-c", help="Only spend UTXOs with this many confirmations"
    ),
    wait_confirmations: int = typer.Option(
        0, "--wait-confirmations", "-w", help="Wait for this many confirmations"
    ),
    network: str | None = typer.Option(None, "--network", "-n", envvar="NETWORK"),
    private_key: str | None = typer.Option(None, "--private-key", envvar="PRIVATE_KEY"),
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="BTC_RPC_URLS"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Send coins and follow the transaction until it is confirmed."""
    setup_logging(log_level)

    try:
        value = Decimal(amount)
    except InvalidOperation:
        logger.error(f"Invalid amount: {amount}")
        raise typer.Exit(1)

    try:
        options = SpendOptions(
            fee=fee,
            subtract_fee=subtract_fee,
            confirmations=confirmations,
            wait_confirmations=wait_confirmations,
        )
    except ValueError as e:
        logger.error(f"Invalid options: {e}")
        raise typer.Exit(1)

    settings = _load_settings(network, private_key, rpc_url)
    asyncio.run(_send(settings, asset, to, value, sats, options))


async def _send(
    settings: Settings,
    asset: str,
    to: str,
    value: Decimal,
    sats: bool,
    options: SpendOptions,
) -> None:
    account = _load_account(settings)
    try:
        if sats:
            if value != value.to_integral_value():
                raise ValueError(f"Amount in smallest units must be an integer: {value}")
            promise = account.send_in_smallest_unit(to, int(value), asset, options)
        else:
            promise = account.send(to, value, asset, options)

        promise.on(EVENT_TRANSACTION_HASH, lambda txid: typer.echo(f"Transaction hash: {txid}"))
        promise.on(EVENT_CONFIRMATION, lambda count: typer.echo(f"Confirmations: {count}"))
        txid = await promise
        typer.echo(f"Done: {txid}")
    except Exception as e:
        logger.error(f"Send failed: {e}")
        raise typer.Exit(1)
    finally:
        await account.close()


@app.command()
def check_providers(
    of_address: str = typer.Argument(..., help="Address to query on every provider"),
    asset: str = typer.Option("BTC", "--asset", "-a", help="Asset symbol"),
    confirmations: int = typer.Option(0, "--confirmations", "-c", help="Minimum confirmations"),
    network: str | None = typer.Option(None, "--network", "-n", envvar="NETWORK"),
    private_key: str | None = typer.Option(None, "--private-key", envvar="PRIVATE_KEY"),
    rpc_url: str | None = typer.Option(None, "--rpc-url", envvar="BTC_RPC_URLS"),
    log_level: str = typer.Option("INFO", "--log-level", "-l"),
) -> None:
    """Check that every configured provider returns the same UTXOs for an address."""
    setup_logging(log_level)
    settings = _load_settings(network, private_key, rpc_url)
    asyncio.run(_check_providers(settings, asset, of_address, confirmations))


async def _check_providers(
    settings: Settings, asset: str, of_address: str, confirmations: int
) -> None:
    account = _load_account(settings)
    try:
        endpoints = account.handler(asset).endpoints
        utxos = await check_consistency(endpoints.fetch_utxos(of_address, confirmations))
        count = len(endpoints.ordered())
        typer.echo(f"{count} provider(s) agree: {len(utxos or [])} UTXOs")
    except Exception as e:
        logger.error(f"Provider check failed: {e}")
        raise typer.Exit(1)
    finally:
        await account.close()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
