"""Value checks for incoming trades.

Trades are plain data models; these checks run before matching so the
calculator can either reject the batch or skip the offending trades.
"""

from collections.abc import Iterable

from pnltracker.services.portfolio.errors import TradeIssue, TradeIssueKind
from pnltracker.services.portfolio.models import Trade


def validate_trade(trade: Trade) -> list[TradeIssue]:
    """
    Check a single trade.

    Args:
        trade: Trade to check

    Returns:
        Issues found (empty if the trade is usable)

    Example:
        >>> issues = validate_trade(trade)
        >>> [issue.kind for issue in issues]
        [<TradeIssueKind.NON_POSITIVE_AMOUNT: 'non_positive_amount'>]
    """
    issues: list[TradeIssue] = []

    def add(kind: TradeIssueKind, message: str) -> None:
        issues.append(TradeIssue(trade_id=trade.id, symbol=trade.symbol, kind=kind, message=message))

    if trade.amount <= 0:
        add(TradeIssueKind.NON_POSITIVE_AMOUNT, f"amount must be positive, got {trade.amount}")
    if trade.price < 0:
        add(TradeIssueKind.NEGATIVE_PRICE, f"price cannot be negative, got {trade.price}")
    if trade.fee.cost < 0:
        add(TradeIssueKind.NEGATIVE_FEE, f"fee cannot be negative, got {trade.fee.cost}")
    if "/" not in trade.symbol:
        add(TradeIssueKind.UNSUPPORTED_SYMBOL, f"symbol must be BASE/QUOTE, got '{trade.symbol}'")

    return issues


def validate_trades(trades: Iterable[Trade]) -> list[TradeIssue]:
    """Check every trade, returning all issues in input order."""
    issues: list[TradeIssue] = []
    for trade in trades:
        issues.extend(validate_trade(trade))
    return issues
