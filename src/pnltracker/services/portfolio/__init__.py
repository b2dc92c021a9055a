"""FIFO cost-basis accounting and P&L reporting.

This module reconciles executed trades against inventory lots and reports
realized and unrealized profit/loss per asset and for the whole portfolio.

Key components:
- PnLCalculatorService: Main service implementation
- IPnLCalculator: Protocol interface
- group_by_symbol / ChronologicalTrades: Trade grouping and ordering
- FifoMatcher / LotTracker: FIFO lot matching
- value_position / build_realized_pnl: Per-asset valuation
- aggregate: Portfolio totals
- Models: Trade, Lot, Position, RealizedPnL, PortfolioSummary, PnLConfig

Example:
    >>> from decimal import Decimal
    >>> from pnltracker.services.portfolio import Fee, PnLCalculatorService, Trade, TradeKind
    >>>
    >>> trades = [
    ...     Trade(id="1", timestamp=1, symbol="BTC/USDT", kind=TradeKind.BUY,
    ...           price=Decimal("20000"), amount=Decimal("1"), cost=Decimal("20000"),
    ...           fee=Fee(cost=Decimal("10"))),
    ... ]
    >>> summary = PnLCalculatorService().calculate_portfolio(trades, {"BTC/USDT": Decimal("25000")})
    >>> summary.total_unrealized_pnl
    Decimal('4990')
"""

from pnltracker.services.portfolio.aggregator import aggregate
from pnltracker.services.portfolio.errors import (
    InsufficientInventoryError,
    TradeIssue,
    TradeIssueKind,
    TradeValidationError,
)
from pnltracker.services.portfolio.interface import IPnLCalculator
from pnltracker.services.portfolio.lot_tracker import LotTracker
from pnltracker.services.portfolio.matcher import FifoMatcher, match_trades
from pnltracker.services.portfolio.models import (
    AssetResult,
    Fee,
    InvalidTradePolicy,
    Lot,
    LotSlice,
    MatchResult,
    OversellPolicy,
    PnLConfig,
    PortfolioSummary,
    Position,
    RealizedAccumulator,
    RealizedPnL,
    SellMatch,
    Trade,
    TradeKind,
)
from pnltracker.services.portfolio.service import PnLCalculatorService, calculate_portfolio
from pnltracker.services.portfolio.trades import ChronologicalTrades, filter_since, group_by_symbol
from pnltracker.services.portfolio.validation import validate_trade, validate_trades
from pnltracker.services.portfolio.valuation import (
    base_asset,
    build_realized_pnl,
    value_position,
    weighted_average_cost,
)

__all__ = [
    # Service
    "IPnLCalculator",
    "PnLCalculatorService",
    "calculate_portfolio",
    # Components
    "ChronologicalTrades",
    "group_by_symbol",
    "filter_since",
    "LotTracker",
    "FifoMatcher",
    "match_trades",
    "value_position",
    "build_realized_pnl",
    "weighted_average_cost",
    "base_asset",
    "aggregate",
    "validate_trade",
    "validate_trades",
    # Models
    "Trade",
    "TradeKind",
    "Fee",
    "Lot",
    "LotSlice",
    "SellMatch",
    "RealizedAccumulator",
    "MatchResult",
    "Position",
    "RealizedPnL",
    "AssetResult",
    "PortfolioSummary",
    "PnLConfig",
    "OversellPolicy",
    "InvalidTradePolicy",
    # Errors
    "TradeIssue",
    "TradeIssueKind",
    "TradeValidationError",
    "InsufficientInventoryError",
]
