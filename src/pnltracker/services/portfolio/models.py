"""Data models for the P&L calculator.

Defines all core entities for cost-basis accounting:
- Trade: One executed buy or sell (input)
- Lot: Open slice of a buy awaiting consumption by later sells
- SellMatch: Audit record of how one sell was funded
- RealizedAccumulator: Running realized totals for one replay
- Position / RealizedPnL / PortfolioSummary: Computed outputs
- PnLConfig: Calculation policies
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pnltracker.services.portfolio.errors import TradeIssue

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class TradeKind(str, Enum):
    """Kind of executed transaction."""

    BUY = "buy"
    SELL = "sell"
    # Defined by the exchange data model; never affect inventory
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class OversellPolicy(str, Enum):
    """What to do when a sell exceeds the open inventory."""

    ZERO_COST = "zero_cost"  # Unmatched remainder carries no cost basis
    REJECT = "reject"


class InvalidTradePolicy(str, Enum):
    """What to do with trades failing value checks."""

    REJECT = "reject"  # Fail the whole calculation
    SKIP = "skip"  # Drop offending trades and continue
    IGNORE = "ignore"  # No checks; values flow through as given


class Fee(BaseModel):
    """Fee charged on a trade, in any currency (never converted)."""

    cost: Decimal = ZERO
    currency: str = "USDT"

    model_config = ConfigDict(frozen=True)


class Trade(BaseModel):
    """
    Single executed trade.

    Attributes:
        id: Unique trade identifier
        timestamp: Execution time in epoch milliseconds (ordering key)
        symbol: Traded pair, BASE/QUOTE (e.g. BTC/USDT)
        kind: buy or sell (deposit/withdrawal are ignored by the matcher)
        price: Quote per base
        amount: Base quantity
        cost: Gross quote value (price * amount, before fee)
        fee: Fee cost and currency
        exchange: Venue the trade came from
        order_id: Originating order, if known

    Example:
        >>> trade = Trade(
        ...     id="t1",
        ...     timestamp=1672531200000,
        ...     symbol="BTC/USDT",
        ...     kind=TradeKind.BUY,
        ...     price=Decimal("20000"),
        ...     amount=Decimal("1"),
        ...     cost=Decimal("20000"),
        ...     fee=Fee(cost=Decimal("10")),
        ... )
    """

    id: str
    timestamp: int
    symbol: str
    kind: TradeKind
    price: Decimal
    amount: Decimal
    cost: Decimal
    fee: Fee = Field(default_factory=Fee)
    exchange: str = "unknown"
    order_id: str | None = None

    model_config = ConfigDict(frozen=True)


class Lot(BaseModel):
    """
    Open inventory slice created by a buy.

    Lots are immutable; a partial consumption replaces the lot with a copy
    holding the reduced amount and cost.

    Attributes:
        lot_id: Identifier (the id of the buy that opened it)
        symbol: Traded pair
        entry_timestamp: When the buy executed (epoch millis)
        entry_price: Buy price, informational only
        amount: Remaining base quantity
        cost: Remaining fee-inclusive cost basis attributable to amount
    """

    lot_id: str
    symbol: str
    entry_timestamp: int
    entry_price: Decimal
    amount: Decimal
    cost: Decimal

    model_config = ConfigDict(frozen=True)


class LotSlice(BaseModel):
    """Portion of a lot consumed by one sell."""

    lot_id: str
    amount: Decimal
    cost: Decimal

    model_config = ConfigDict(frozen=True)


class SellMatch(BaseModel):
    """
    How one sell was funded from open lots.

    Attributes:
        trade_id: Sell trade id
        timestamp: Sell time (epoch millis)
        amount: Quantity sold
        revenue: Proceeds net of fee (cost - fee.cost)
        cost_basis: Cost of the consumed lot slices
        realized_pnl: revenue - cost_basis
        unmatched_amount: Quantity not covered by open inventory
        consumed: Lot slices in consumption order
    """

    trade_id: str
    timestamp: int
    amount: Decimal
    revenue: Decimal
    cost_basis: Decimal
    realized_pnl: Decimal
    unmatched_amount: Decimal = ZERO
    consumed: list[LotSlice] = Field(default_factory=list)

    @property
    def matched_amount(self) -> Decimal:
        """Quantity covered by open lots."""
        return self.amount - self.unmatched_amount

    @property
    def is_oversold(self) -> bool:
        """Sell exceeded the open inventory."""
        return self.unmatched_amount > 0

    model_config = ConfigDict(frozen=True)


class RealizedAccumulator(BaseModel):
    """
    Running realized P&L totals for a single asset replay.

    Attributes:
        total_realized: Sum of every sell's realized P&L
        total_sold: Sum of sold amounts
        total_profit: Sum of positive per-sell P&L
        total_loss: Sum of absolute non-positive per-sell P&L
        sells: Contributing sell trades, in replay order
        matches: Per-sell funding records, in replay order
    """

    total_realized: Decimal = ZERO
    total_sold: Decimal = ZERO
    total_profit: Decimal = ZERO
    total_loss: Decimal = ZERO
    sells: list[Trade] = Field(default_factory=list)
    matches: list[SellMatch] = Field(default_factory=list)

    def record(self, trade: Trade, match: SellMatch) -> None:
        """
        Fold one sell into the totals.

        Args:
            trade: The sell trade
            match: Its funding record
        """
        pnl = match.realized_pnl
        self.total_realized += pnl
        self.total_sold += trade.amount
        if pnl > 0:
            self.total_profit += pnl
        else:
            self.total_loss += abs(pnl)
        self.sells.append(trade)
        self.matches.append(match)


class MatchResult(BaseModel):
    """
    Outcome of replaying one asset's trades.

    Attributes:
        symbol: Traded pair
        open_lots: Remaining lots, oldest first
        realized: Realized totals of the applied sells
        skipped: Oversold sells left out of the replay
    """

    symbol: str
    open_lots: list[Lot] = Field(default_factory=list)
    realized: RealizedAccumulator = Field(default_factory=RealizedAccumulator)
    skipped: list[TradeIssue] = Field(default_factory=list)

    @property
    def total_amount(self) -> Decimal:
        """Remaining base quantity across open lots."""
        return sum((lot.amount for lot in self.open_lots), start=ZERO)

    @property
    def total_cost(self) -> Decimal:
        """Remaining cost basis across open lots."""
        return sum((lot.cost for lot in self.open_lots), start=ZERO)


class Position(BaseModel):
    """
    Open holding in one asset, valued at a current price.

    Attributes:
        symbol: Traded pair
        asset: Base currency
        total_amount: Sum of open lot amounts
        average_cost: total_invested / total_amount
        total_invested: Sum of open lot costs
        current_price: Price used for valuation (0 if unknown)
        current_value: total_amount * current_price
        unrealized_pnl: current_value - total_invested
        unrealized_pnl_percent: unrealized_pnl / total_invested * 100
    """

    symbol: str
    asset: str
    total_amount: Decimal
    average_cost: Decimal
    total_invested: Decimal
    current_price: Decimal
    current_value: Decimal
    unrealized_pnl: Decimal
    unrealized_pnl_percent: Decimal

    model_config = ConfigDict(frozen=True)


class RealizedPnL(BaseModel):
    """
    Realized result of every sell in one asset.

    Attributes:
        symbol: Traded pair
        asset: Base currency
        total_realized: Sum of per-sell realized P&L
        total_sold: Sum of sold amounts
        total_profit: Sum of winning sells
        total_loss: Sum of losing sells (absolute)
        profit_percent: total_realized relative to sold amount valued at the
            remaining position's average cost
        transactions: Contributing sells
    """

    symbol: str
    asset: str
    total_realized: Decimal
    total_sold: Decimal
    total_profit: Decimal
    total_loss: Decimal
    profit_percent: Decimal
    transactions: list[Trade] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class AssetResult(BaseModel):
    """Per-asset output fed to the aggregator."""

    symbol: str
    position: Position | None = None
    realized: RealizedPnL | None = None

    model_config = ConfigDict(frozen=True)


class PortfolioSummary(BaseModel):
    """
    Portfolio-level P&L snapshot.

    Positions and realized results keep the order in which each symbol
    first appears in the chronologically sorted trade list.

    Example:
        >>> summary = calculate_portfolio(trades, {"BTC/USDT": Decimal("42000")})
        >>> print(f"Total P&L: {summary.total_pnl} ({summary.total_pnl_percent:.2f}%)")
    """

    total_invested: Decimal = ZERO
    current_value: Decimal = ZERO
    total_unrealized_pnl: Decimal = ZERO
    total_realized_pnl: Decimal = ZERO
    total_pnl: Decimal = ZERO
    total_pnl_percent: Decimal = ZERO
    positions: list[Position] = Field(default_factory=list)
    realized_pnl_by_asset: list[RealizedPnL] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class PnLConfig(BaseModel):
    """
    Configuration for the P&L calculator.

    Attributes:
        oversell_policy: Handling of sells exceeding open inventory
        invalid_trade_policy: Handling of trades failing value checks
        sort_trades: Sort input chronologically (stable). When False the
            input must already be in ascending timestamp order.

    Example:
        >>> config = PnLConfig(oversell_policy=OversellPolicy.REJECT)
    """

    oversell_policy: OversellPolicy = OversellPolicy.ZERO_COST
    invalid_trade_policy: InvalidTradePolicy = InvalidTradePolicy.REJECT
    sort_trades: bool = True

    @field_validator("oversell_policy", mode="before")
    @classmethod
    def normalize_oversell_policy(cls, v: object) -> object:
        """Accept policy names in any case."""
        return v.lower() if isinstance(v, str) else v

    @field_validator("invalid_trade_policy", mode="before")
    @classmethod
    def normalize_invalid_trade_policy(cls, v: object) -> object:
        """Accept policy names in any case."""
        return v.lower() if isinstance(v, str) else v

    model_config = ConfigDict(frozen=True)
