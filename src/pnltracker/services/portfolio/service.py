"""P&L calculator service implementation.

Orchestrates one portfolio calculation: filter, validate, order, group,
match, value, aggregate. The service holds configuration only; each call
works on its own fresh lot queues.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal

from pnltracker.services.portfolio.aggregator import aggregate
from pnltracker.services.portfolio.errors import (
    InsufficientInventoryError,
    TradeIssue,
    TradeIssueKind,
    TradeValidationError,
)
from pnltracker.services.portfolio.matcher import FifoMatcher
from pnltracker.services.portfolio.models import (
    ZERO,
    AssetResult,
    InvalidTradePolicy,
    PnLConfig,
    PortfolioSummary,
    Trade,
)
from pnltracker.services.portfolio.trades import ChronologicalTrades, filter_since
from pnltracker.services.portfolio.validation import validate_trade, validate_trades
from pnltracker.services.portfolio.valuation import build_realized_pnl, value_position
from pnltracker.system import LoggerFactory

logger = LoggerFactory.get_logger()


def _as_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps floats at their shortest repr (0.1 -> 0.1)
    return Decimal(str(value))


class PnLCalculatorService:
    """
    FIFO P&L calculator.

    Attributes:
        config: Calculation policies

    Example:
        >>> service = PnLCalculatorService(PnLConfig(oversell_policy="reject"))
        >>> summary = service.calculate_portfolio(trades, prices)
    """

    def __init__(self, config: PnLConfig | None = None) -> None:
        """
        Initialize calculator.

        Args:
            config: Calculation policies (defaults to PnLConfig())
        """
        self.config = config or PnLConfig()

    def calculate_portfolio(
        self,
        trades: Iterable[Trade],
        prices: Mapping[str, Decimal],
        since: int | datetime | None = None,
    ) -> PortfolioSummary:
        """
        Compute realized and unrealized P&L across every traded symbol.

        Positions and realized results are ordered by each symbol's first
        trade in the chronologically sorted input.

        Args:
            trades: Trades for any number of symbols
            prices: Symbol -> current price; a missing symbol is valued at 0
            since: Only consider trades at or after this time

        Returns:
            PortfolioSummary

        Raises:
            TradeValidationError: If trades are rejected by policy
            InsufficientInventoryError: If sells are oversold under REJECT,
                with the issues of every symbol
            ValueError: If a price is negative, or sort_trades is off and
                trades are out of order
        """
        selected = filter_since(trades, since)
        accepted = self._apply_validation(selected)

        if self.config.sort_trades:
            ordered = ChronologicalTrades.from_unordered(accepted)
        else:
            ordered = ChronologicalTrades(accepted)

        results: list[AssetResult] = []
        oversold: list[TradeIssue] = []
        for symbol, symbol_trades in ordered.group_by_symbol().items():
            price = prices.get(symbol)
            if price is None:
                logger.warning("pnl_service.price_missing", symbol=symbol)
                price = ZERO
            try:
                results.append(self.calculate_asset(symbol, symbol_trades, _as_decimal(price)))
            except InsufficientInventoryError as e:
                oversold.extend(e.issues)

        if oversold:
            logger.error("pnl_service.trades_rejected", count=len(oversold), reason=TradeIssueKind.OVERSOLD.value)
            raise InsufficientInventoryError(oversold)

        summary = aggregate(results)

        logger.info(
            "pnl_service.portfolio_calculated",
            trades=len(ordered),
            symbols=len(results),
            positions=len(summary.positions),
            total_invested=str(summary.total_invested),
            total_pnl=str(summary.total_pnl),
        )
        return summary

    def calculate_asset(
        self,
        symbol: str,
        trades: Iterable[Trade],
        current_price: Decimal,
    ) -> AssetResult:
        """
        Compute position and realized result for one symbol.

        Under InvalidTradePolicy.SKIP, sells exceeding the open inventory
        are left out with a warning instead of going through the oversell
        policy.

        Args:
            symbol: Traded pair
            trades: That symbol's trades, oldest first
            current_price: Price for valuing the open lots

        Returns:
            AssetResult

        Raises:
            InsufficientInventoryError: If sells are oversold under REJECT
            ValueError: If current_price is negative
        """
        if current_price < 0:
            raise ValueError(f"Price for {symbol} cannot be negative: {current_price}")

        skip_oversold = self.config.invalid_trade_policy == InvalidTradePolicy.SKIP
        match = FifoMatcher(self.config.oversell_policy, skip_oversold=skip_oversold).match(trades, symbol=symbol)
        for issue in match.skipped:
            _log_skipped(issue)

        position = value_position(symbol, match.open_lots, current_price)
        average_cost = position.average_cost if position is not None else ZERO
        realized = build_realized_pnl(symbol, match.realized, average_cost)

        logger.debug(
            "pnl_service.asset_calculated",
            symbol=symbol,
            open_lots=len(match.open_lots),
            total_amount=str(match.total_amount),
            realized_pnl=str(match.realized.total_realized),
            current_price=str(current_price),
        )
        return AssetResult(symbol=symbol, position=position, realized=realized)

    def _apply_validation(self, trades: list[Trade]) -> list[Trade]:
        """Check trades per invalid_trade_policy; returns the trades to use."""
        policy = self.config.invalid_trade_policy
        if policy == InvalidTradePolicy.IGNORE:
            return trades

        if policy == InvalidTradePolicy.REJECT:
            rejected = validate_trades(trades)
            if rejected:
                logger.error("pnl_service.trades_rejected", count=len(rejected))
                raise TradeValidationError(rejected)
            return trades

        accepted: list[Trade] = []
        for trade in trades:
            issues = validate_trade(trade)
            if not issues:
                accepted.append(trade)
            for issue in issues:
                _log_skipped(issue)
        return accepted


def _log_skipped(issue: TradeIssue) -> None:
    logger.warning(
        "pnl_service.trade_skipped",
        trade_id=issue.trade_id,
        symbol=issue.symbol,
        reason=issue.kind.value,
        detail=issue.message,
    )


def calculate_portfolio(
    trades: Iterable[Trade],
    prices: Mapping[str, Decimal],
    since: int | datetime | None = None,
    config: PnLConfig | None = None,
) -> PortfolioSummary:
    """Compute a PortfolioSummary with a one-off PnLCalculatorService."""
    return PnLCalculatorService(config).calculate_portfolio(trades, prices, since=since)
