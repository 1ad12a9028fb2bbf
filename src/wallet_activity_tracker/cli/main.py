"""CLI for wallet activity tracker."""

import json
import logging
from datetime import datetime
from enum import StrEnum

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table
from rich.traceback import install

from wallet_activity_tracker.config import Settings, load_settings
from wallet_activity_tracker.core import ActivityAggregator, ActivityDirection, ActivityRecord, Chain
from wallet_activity_tracker.core.cache import ActivityCache
from wallet_activity_tracker.core.registry import ChainRegistry, get_default_registry
from wallet_activity_tracker.errors import MissingCredential, WalletActivityError, WalletError
from wallet_activity_tracker.integrations import AlchemyTransferSource
from wallet_activity_tracker.pricing import CoinGeckoPricing
from wallet_activity_tracker.wallet import PreferencesStore, WalletConnectionManager, http_provider_factory

# Install rich traceback handler
install()

app = typer.Typer(
    name="wallet-activity",
    help="View the most recent transfers of a wallet on Ethereum, Polygon, or Arbitrum",
    add_completion=False,
)

console = Console()

# Shared by every command run in this process
activity_cache = ActivityCache()


class OutputFormat(StrEnum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def _configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_manager(settings: Settings, registry: ChainRegistry) -> WalletConnectionManager:
    network_names = {chain.chain_id: chain.name for chain in registry.all()}
    return WalletConnectionManager(
        registry=registry,
        provider_factory=http_provider_factory(settings.wallet_rpc_url, settings.timeout, network_names),
        preferences=PreferencesStore(settings.preferences_path),
    )


def _resolve_chain(registry: ChainRegistry, chain_id: int) -> Chain:
    chain = registry.get(chain_id)
    if chain is None:
        supported = ", ".join(str(c.chain_id) for c in registry.all())
        console.print(f"[bold red]Unsupported chain {chain_id}.[/bold red] Supported: {supported}")
        raise typer.Exit(code=1)
    return chain


def _fetch_activity(settings: Settings, address: str, chain: Chain, refresh: bool = False) -> list[ActivityRecord]:
    """
    Fetch the activity feed, printing a spinner while upstream calls run.

    Raises
    ------
    typer.Exit
        If the API key is missing or the fetch fails

    """
    try:
        api_key = settings.require_api_key()
    except MissingCredential as e:
        console.print(f"[bold red]{escape(str(e))}[/bold red]")
        console.print("[dim]  export ALCHEMY_API_KEY='your_api_key'[/dim]")
        raise typer.Exit(code=1)

    source = AlchemyTransferSource(api_key, timeout=settings.timeout)
    pricing = CoinGeckoPricing(settings.coingecko_base_url, timeout=settings.timeout)
    aggregator = ActivityAggregator(transfer_source=source, pricing_service=pricing, cache=activity_cache)

    try:
        if refresh:
            aggregator.invalidate(address, chain)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            progress.add_task(f"Fetching activity on {chain.name}...", total=None)
            return aggregator.get_recent_activity(address, chain)
    except WalletActivityError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(code=1)
    finally:
        source.close()
        pricing.close()


@app.command()
def chains() -> None:
    """List supported chains."""
    settings = load_settings()
    registry = get_default_registry()
    selected = PreferencesStore(settings.preferences_path).load().selected_chain_id

    table = Table(title="Supported Chains", show_header=True, header_style="bold magenta")
    table.add_column("Chain ID", style="cyan", justify="right")
    table.add_column("Name", style="green")
    table.add_column("Native", style="yellow")
    table.add_column("Explorer", style="blue")
    table.add_column("Selected", justify="center")

    for chain in registry.all():
        table.add_row(
            str(chain.chain_id),
            chain.name,
            chain.native_symbol,
            chain.block_explorer,
            "✓" if chain.chain_id == selected else "",
        )

    console.print(table)


@app.command("select-chain")
def select_chain(chain_id: int = typer.Argument(..., help="Chain ID to select")) -> None:
    """Persist the chain used when no --chain option is given."""
    settings = load_settings()
    registry = get_default_registry()
    chain = _resolve_chain(registry, chain_id)

    manager = _build_manager(settings, registry)
    manager.set_selected_chain_id(chain.chain_id)
    console.print(f"[green]Selected {chain.name}[/green] (chainId {chain.chain_id})")


@app.command()
def activity(
    address: str = typer.Argument(..., help="Wallet address to query"),
    chain_id: int | None = typer.Option(None, "--chain", "-c", help="Chain ID (defaults to the selected chain)"),
    format: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--format",
        "-f",
        help="Output format",
    ),
    refresh: bool = typer.Option(False, "--refresh", help="Bypass cached results"),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """
    Show the 10 most recent transfers of an address.

    Examples:

        # Selected chain
        wallet-activity activity 0xABC...

        # Polygon, as JSON
        wallet-activity activity 0xABC... --chain 137 --format json
    """
    _configure_logging(debug)
    settings = load_settings()
    registry = get_default_registry()

    if chain_id is None:
        chain = _build_manager(settings, registry).selected_chain
    else:
        chain = _resolve_chain(registry, chain_id)

    records = _fetch_activity(settings, address, chain, refresh=refresh)
    _output_activity(address, chain, records, format)


@app.command()
def wallet(
    switch: bool = typer.Option(False, "--switch", "-s", help="Switch the wallet to the selected chain"),
    format: OutputFormat = typer.Option(
        OutputFormat.TABLE,
        "--format",
        "-f",
        help="Output format",
    ),
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug output"),
) -> None:
    """Connect the wallet at WALLET_RPC_URL and show its activity on the selected chain."""
    _configure_logging(debug)
    settings = load_settings()
    registry = get_default_registry()
    manager = _build_manager(settings, registry)

    try:
        try:
            address = manager.connect()
            if switch and manager.network_mismatch:
                manager.switch_chain(manager.selected_chain_id)
        except WalletError:
            console.print(f"[bold red]Error:[/bold red] {escape(manager.last_error or 'unknown error')}")
            raise typer.Exit(code=1)

        console.print(f"[bold cyan]Connected as[/bold cyan] {_short_address(address)}")
        network = manager.network
        if network:
            console.print(f"[dim]Current wallet network: {network.name} (chainId {network.chain_id})[/dim]")

        selected = manager.selected_chain
        if manager.network_mismatch and network:
            console.print(
                f"[bold yellow]Network mismatch:[/bold yellow] wallet is on {network.name}, "
                f"but you selected {selected.name}. Run with --switch to switch."
            )

        records = _fetch_activity(settings, address, selected)
    finally:
        manager.disconnect()

    _output_activity(address, selected, records, format)


def _output_activity(address: str, chain: Chain, records: list[ActivityRecord], output_format: OutputFormat) -> None:
    if output_format == OutputFormat.JSON:
        _output_json(records)
    else:
        _output_table(address, chain, records)


def _output_table(address: str, chain: Chain, records: list[ActivityRecord]) -> None:
    """Output activity as rich table."""
    if not records:
        console.print(f"\n[yellow]No activity found on {chain.name}[/yellow]")
        return

    table = Table(
        title=f"Last {len(records)} transfers for {_short_address(address)} on {chain.name}",
        show_header=True,
        header_style="bold magenta",
    )

    table.add_column("Time", style="dim")
    table.add_column("Direction", style="cyan")
    table.add_column("Amount", style="white", justify="right")
    table.add_column("USD Value", style="bold green", justify="right")
    table.add_column("Counterparty", style="blue")
    table.add_column("Tx", style="yellow")
    table.add_column("Status", style="green")

    for record in records:
        if record.direction == ActivityDirection.SENT:
            amount_str = f"-{record.amount} {record.symbol}"
            counterparty = f"To {_short_address(record.counterparty_to)}"
        else:
            amount_str = f"+{record.amount} {record.symbol}"
            counterparty = f"From {_short_address(record.counterparty_from)}"
        usd_str = f"${record.usd_value:,.2f}" if record.usd_value is not None else "-"

        table.add_row(
            _format_timestamp(record.timestamp),
            record.direction.value,
            amount_str,
            usd_str,
            counterparty,
            _short_address(record.tx_hash),
            record.status.value,
        )

    console.print("\n")
    console.print(table)


def _output_json(records: list[ActivityRecord]) -> None:
    """Output activity as JSON."""
    data = [record.model_dump(mode="json") for record in records]
    console.print_json(json.dumps(data))


def _short_address(value: str | None) -> str:
    if not value:
        return ""
    return f"{value[:6]}...{value[-4:]}"


def _format_timestamp(value: str) -> str:
    if not value:
        return ""
    try:
        return datetime.fromisoformat(value).strftime("%b %d, %Y %H:%M")
    except ValueError:
        return value


if __name__ == "__main__":
    app()
