"""P&L calculator interface (Protocol).

Defines the contract that all P&L calculator implementations must satisfy.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal
from typing import Protocol

from pnltracker.services.portfolio.models import AssetResult, PortfolioSummary, Trade


class IPnLCalculator(Protocol):
    """
    P&L calculator interface.

    Implementations are pure: every call replays the full trade list from
    scratch and returns a fresh result. Nothing is retained between calls,
    so recomputing on a new price tick or date filter means calling again.

    Example:
        >>> calculator: IPnLCalculator = PnLCalculatorService()
        >>> summary = calculator.calculate_portfolio(trades, {"BTC/USDT": Decimal("42000")})
        >>> print(summary.total_pnl)
    """

    def calculate_portfolio(
        self,
        trades: Iterable[Trade],
        prices: Mapping[str, Decimal],
        since: int | datetime | None = None,
    ) -> PortfolioSummary:
        """
        Compute realized and unrealized P&L across every traded symbol.

        Processing:
        1. Keep trades executed at or after since (if given)
        2. Validate trades according to the invalid trade policy
        3. Order trades chronologically (stable)
        4. Group by symbol, replay each with FIFO matching
        5. Value open lots at prices (missing symbol -> price 0)
        6. Aggregate into a portfolio summary

        Args:
            trades: Trades for any number of symbols, in any order
            prices: Symbol -> current quote-per-base price
            since: Epoch millis or datetime lower bound

        Returns:
            PortfolioSummary

        Raises:
            TradeValidationError: If trades are rejected by policy
            ValueError: If a price is negative
        """
        ...

    def calculate_asset(
        self,
        symbol: str,
        trades: Iterable[Trade],
        current_price: Decimal,
    ) -> AssetResult:
        """
        Compute position and realized result for one symbol.

        Args:
            symbol: Traded pair
            trades: That symbol's trades, oldest first
            current_price: Price for valuing the open lots

        Returns:
            AssetResult (either side None when not emitted)
        """
        ...
