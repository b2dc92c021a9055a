"""Position valuation and realized P&L summaries.

Pure functions: no state, no I/O. Every ratio falls back to zero when its
denominator is zero.
"""

from collections.abc import Iterable, Sequence
from decimal import Decimal

from pnltracker.services.portfolio.models import (
    HUNDRED,
    ZERO,
    Lot,
    Position,
    RealizedAccumulator,
    RealizedPnL,
    Trade,
    TradeKind,
)


def base_asset(symbol: str) -> str:
    """Base currency of a BASE/QUOTE symbol (BTC/USDT -> BTC)."""
    return symbol.split("/")[0]


def _ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    if denominator <= 0:
        return ZERO
    return numerator / denominator


def value_position(symbol: str, open_lots: Sequence[Lot], current_price: Decimal) -> Position | None:
    """
    Value the open lots of one asset at the current price.

    A price of 0 (e.g. an upstream lookup failure) is accepted and yields a
    current value of 0 and an unrealized loss of the whole investment.

    Args:
        symbol: Traded pair
        open_lots: Lots left after matching
        current_price: Quote per base

    Returns:
        Position, or None when no positive quantity remains

    Example:
        >>> position = value_position("BTC/USDT", result.open_lots, Decimal("40000"))
        >>> position.unrealized_pnl
        Decimal('4992.5')
    """
    total_amount = sum((lot.amount for lot in open_lots), start=ZERO)
    if total_amount <= 0:
        return None

    total_invested = sum((lot.cost for lot in open_lots), start=ZERO)
    current_value = total_amount * current_price
    unrealized_pnl = current_value - total_invested

    return Position(
        symbol=symbol,
        asset=base_asset(symbol),
        total_amount=total_amount,
        average_cost=_ratio(total_invested, total_amount),
        total_invested=total_invested,
        current_price=current_price,
        current_value=current_value,
        unrealized_pnl=unrealized_pnl,
        unrealized_pnl_percent=_ratio(unrealized_pnl, total_invested) * HUNDRED,
    )


def build_realized_pnl(symbol: str, realized: RealizedAccumulator, average_cost: Decimal) -> RealizedPnL | None:
    """
    Summarize realized results for one asset.

    profit_percent relates total_realized to the sold amount valued at
    average_cost, the average cost of the lots still open after the replay
    (not of the lots that were sold). A zero denominator is replaced by 1.

    Args:
        symbol: Traded pair
        realized: Totals accumulated by the matcher
        average_cost: Average cost of the remaining open position (0 if flat)

    Returns:
        RealizedPnL, or None when total_realized is exactly 0
    """
    if realized.total_realized == 0:
        return None

    if realized.total_sold > 0:
        denominator = realized.total_sold * average_cost or Decimal("1")
        profit_percent = realized.total_realized / denominator * HUNDRED
    else:
        profit_percent = ZERO

    return RealizedPnL(
        symbol=symbol,
        asset=base_asset(symbol),
        total_realized=realized.total_realized,
        total_sold=realized.total_sold,
        total_profit=realized.total_profit,
        total_loss=realized.total_loss,
        profit_percent=profit_percent,
        transactions=list(realized.sells),
    )


def weighted_average_cost(trades: Iterable[Trade]) -> Decimal:
    """
    Weighted average cost per unit, the alternative to FIFO.

    Buys add their amount and fee-inclusive cost; sells remove their amount
    at the running average, leaving the average unchanged.

    Args:
        trades: One asset's trades, oldest first

    Returns:
        Average cost of the remaining inventory (0 if none remains)
    """
    total_amount = ZERO
    total_cost = ZERO

    for trade in trades:
        if trade.kind == TradeKind.BUY:
            total_amount += trade.amount
            total_cost += trade.cost + trade.fee.cost
        elif trade.kind == TradeKind.SELL:
            average = total_cost / total_amount if total_amount > 0 else ZERO
            total_amount -= trade.amount
            total_cost -= trade.amount * average

    return total_cost / total_amount if total_amount > 0 else ZERO
