"""Rich table formatters for CLI output."""

from decimal import Decimal

from rich.table import Table
from rich.text import Text

from pnltracker.services.portfolio.models import PortfolioSummary, Position, RealizedPnL


def _money(value: Decimal, decimals: int) -> str:
    return f"{value:,.{decimals}f}"


def _signed(value: Decimal, decimals: int, suffix: str = "") -> Text:
    """Green for gains, red for losses."""
    style = "green" if value > 0 else "red" if value < 0 else "white"
    sign = "+" if value > 0 else ""
    return Text(f"{sign}{value:,.{decimals}f}{suffix}", style=style)


def create_summary_table(summary: PortfolioSummary, decimals: int = 2, percent_decimals: int = 2) -> Table:
    """
    Create a Rich table with portfolio totals.

    Args:
        summary: Portfolio summary
        decimals: Decimal places for amounts
        percent_decimals: Decimal places for percentages

    Returns:
        Configured Rich Table
    """
    table = Table(title="Portfolio Summary")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")

    table.add_row("Total Invested", _money(summary.total_invested, decimals))
    table.add_row("Current Value", _money(summary.current_value, decimals))
    table.add_row("Unrealized P&L", _signed(summary.total_unrealized_pnl, decimals))
    table.add_row("Realized P&L", _signed(summary.total_realized_pnl, decimals))
    table.add_row("Total P&L", _signed(summary.total_pnl, decimals))
    table.add_row("Total P&L %", _signed(summary.total_pnl_percent, percent_decimals, "%"))
    return table


def create_positions_table(positions: list[Position], decimals: int = 2, percent_decimals: int = 2) -> Table:
    """
    Create a Rich table of open positions.

    Args:
        positions: Positions in report order
        decimals: Decimal places for amounts
        percent_decimals: Decimal places for percentages

    Returns:
        Configured Rich Table
    """
    table = Table(title="Open Positions")
    table.add_column("Symbol", style="cyan", no_wrap=True)
    table.add_column("Amount", style="magenta", justify="right")
    table.add_column("Avg Cost", justify="right")
    table.add_column("Invested", justify="right")
    table.add_column("Price", style="yellow", justify="right")
    table.add_column("Value", justify="right")
    table.add_column("Unrealized", justify="right")
    table.add_column("%", justify="right")

    for position in positions:
        table.add_row(
            position.symbol,
            f"{position.total_amount.normalize():f}",
            _money(position.average_cost, decimals),
            _money(position.total_invested, decimals),
            _money(position.current_price, decimals),
            _money(position.current_value, decimals),
            _signed(position.unrealized_pnl, decimals),
            _signed(position.unrealized_pnl_percent, percent_decimals, "%"),
        )
    return table


def create_realized_table(realized: list[RealizedPnL], decimals: int = 2, percent_decimals: int = 2) -> Table:
    """
    Create a Rich table of realized results per asset.

    Args:
        realized: Realized results in report order
        decimals: Decimal places for amounts
        percent_decimals: Decimal places for percentages

    Returns:
        Configured Rich Table
    """
    table = Table(title="Realized P&L")
    table.add_column("Symbol", style="cyan", no_wrap=True)
    table.add_column("Sold", style="magenta", justify="right")
    table.add_column("Sells", justify="right")
    table.add_column("Profit", style="green", justify="right")
    table.add_column("Loss", style="red", justify="right")
    table.add_column("Realized", justify="right")
    table.add_column("%", justify="right")

    for item in realized:
        table.add_row(
            item.symbol,
            f"{item.total_sold.normalize():f}",
            str(len(item.transactions)),
            _money(item.total_profit, decimals),
            _money(item.total_loss, decimals),
            _signed(item.total_realized, decimals),
            _signed(item.profit_percent, percent_decimals, "%"),
        )
    return table
