"""P&L report command."""

import sys
from datetime import datetime
from pathlib import Path
from typing import Literal, Optional, cast

import click
from rich.console import Console

from pnltracker.cli.ui.formatters import create_positions_table, create_realized_table, create_summary_table
from pnltracker.services.portfolio.errors import TradeValidationError
from pnltracker.services.portfolio.ingest import load_prices, load_trades, parse_price_overrides
from pnltracker.services.portfolio.models import InvalidTradePolicy, OversellPolicy
from pnltracker.services.portfolio.service import PnLCalculatorService
from pnltracker.system import LoggerFactory
from pnltracker.system.config import SystemConfig

console = Console()


@click.command("report")
@click.option(
    "--trades",
    "-t",
    "trades_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="JSON file with exchange trade records",
)
@click.option(
    "--prices",
    "-p",
    "prices_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON/YAML mapping of symbol to current price",
)
@click.option(
    "--price",
    "price_overrides",
    multiple=True,
    metavar="SYMBOL=PRICE",
    help="Current price for a symbol (repeatable, overrides --prices)",
)
@click.option(
    "--since",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Only include trades on or after this date (YYYY-MM-DD, UTC)",
)
@click.option(
    "--oversell",
    type=click.Choice([policy.value for policy in OversellPolicy], case_sensitive=False),
    help="Sells exceeding inventory: zero_cost remainder or reject",
)
@click.option(
    "--skip-invalid",
    is_flag=True,
    help="Skip invalid trades instead of failing",
)
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="System config file (default: config/system.yaml)",
)
@click.option(
    "--log-level",
    "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Set logging level (DEBUG shows per-sell lot matching)",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print the summary as JSON instead of tables",
)
def report_command(
    trades_file: Path,
    prices_file: Optional[Path],
    price_overrides: tuple[str, ...],
    since: Optional[datetime],
    oversell: Optional[str],
    skip_invalid: bool,
    config_file: Optional[Path],
    log_level: Optional[str],
    as_json: bool,
):
    """
    Compute FIFO profit & loss from a trade history.

    Symbols without a current price are valued at 0.

    \b
    Examples:
        # Trades and prices from files
        pnltracker report -t trades.json -p prices.json

        # Inline prices, trades since the start of 2024
        pnltracker report -t trades.json --price BTC/USDT=42000 --since 2024-01-01

        # Fail on oversold positions instead of assuming zero cost
        pnltracker report -t trades.json -p prices.yaml --oversell reject
    """
    try:
        system_config = SystemConfig.load(config_file)

        logging_config = system_config.logging
        if log_level:
            logging_config.level = cast(Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], log_level.upper())
        LoggerFactory.configure(logging_config.to_logger_config())

        calculation = system_config.calculation
        if oversell:
            calculation.oversell_policy = oversell.lower()
        if skip_invalid:
            calculation.invalid_trade_policy = InvalidTradePolicy.SKIP.value

        trades = load_trades(trades_file, default_fee_currency=calculation.default_fee_currency)
        prices = load_prices(prices_file) if prices_file else {}
        prices.update(parse_price_overrides(price_overrides))

        service = PnLCalculatorService(calculation.to_pnl_config())
        summary = service.calculate_portfolio(trades, prices, since=since)

    except TradeValidationError as e:
        console.print(f"[bold red]✗ Invalid trades:[/bold red] {len(e.issues)}")
        for issue in e.issues:
            console.print(f"  [red]{issue.kind.value}[/red] {issue}")
        sys.exit(1)
    except (ValueError, OSError) as e:
        console.print(f"[bold red]✗ Report failed:[/bold red] {e}")
        sys.exit(1)

    if as_json:
        click.echo(summary.model_dump_json(indent=2))
        return

    decimals = system_config.output.decimals
    percent_decimals = system_config.output.percent_decimals

    console.rule("[bold blue]P&L Report[/bold blue]")
    console.print(f"  Trades: [yellow]{len(trades)}[/yellow] from [magenta]{trades_file}[/magenta]")
    if since:
        console.print(f"  Since: [yellow]{since.date()}[/yellow]")
    console.print()

    console.print(create_summary_table(summary, decimals, percent_decimals))
    if summary.positions:
        console.print(create_positions_table(summary.positions, decimals, percent_decimals))
    else:
        console.print("[dim]No open positions[/dim]")
    if summary.realized_pnl_by_asset:
        console.print(create_realized_table(summary.realized_pnl_by_asset, decimals, percent_decimals))
    else:
        console.print("[dim]No realized P&L[/dim]")

    missing = [position.symbol for position in summary.positions if position.symbol not in prices]
    if missing:
        console.print(f"[yellow]No current price for {', '.join(missing)} (valued at 0)[/yellow]")
