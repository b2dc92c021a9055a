"""FIFO lot matching.

Replays one asset's trades in order: buys open lots, sells consume the
oldest lots and realize revenue - cost_basis. Every call starts from an
empty LotTracker, so replaying the same trades twice gives identical
results.
"""

from collections.abc import Iterable
from decimal import Decimal

from pnltracker.services.portfolio.errors import InsufficientInventoryError, TradeIssue, TradeIssueKind
from pnltracker.services.portfolio.lot_tracker import LotTracker
from pnltracker.services.portfolio.models import (
    Lot,
    MatchResult,
    OversellPolicy,
    RealizedAccumulator,
    SellMatch,
    Trade,
    TradeKind,
)
from pnltracker.system import LoggerFactory

logger = LoggerFactory.get_logger()


class FifoMatcher:
    """
    Matches sells against buys first-in-first-out for a single asset.

    Fees are folded into the numbers without currency conversion: a buy's
    fee is added to the lot's cost basis, a sell's fee is deducted from its
    proceeds.

    Attributes:
        oversell_policy: What to do when a sell exceeds open inventory
        skip_oversold: Drop oversold sells instead of applying the policy

    Example:
        >>> matcher = FifoMatcher()
        >>> result = matcher.match(btc_trades)
        >>> result.realized.total_realized
        Decimal('24952.5')
        >>> [(lot.amount, lot.cost) for lot in result.open_lots]
        [(Decimal('0.5'), Decimal('15007.5'))]
    """

    def __init__(
        self,
        oversell_policy: OversellPolicy = OversellPolicy.ZERO_COST,
        skip_oversold: bool = False,
    ) -> None:
        """
        Initialize matcher.

        Args:
            oversell_policy: ZERO_COST excludes the uncovered part of a sell
                from its cost basis; REJECT raises InsufficientInventoryError
            skip_oversold: Leave sells exceeding inventory out of the replay
                and report them in MatchResult.skipped (takes precedence
                over oversell_policy)
        """
        self.oversell_policy = oversell_policy
        self.skip_oversold = skip_oversold

    def match(self, trades: Iterable[Trade], symbol: str | None = None) -> MatchResult:
        """
        Replay trades in the order given.

        Callers supply trades in ascending timestamp order (see
        ChronologicalTrades); lots are consumed strictly in insertion order.
        A rejected or skipped sell leaves the lots untouched, so later sells
        are checked against the same inventory.

        Args:
            trades: One asset's trades, oldest first
            symbol: Symbol for the result (defaults to the first trade's)

        Returns:
            Open lots (oldest first), realized totals and skipped sells

        Raises:
            InsufficientInventoryError: If any sell is oversold under REJECT,
                carrying one issue per oversold sell
        """
        tracker = LotTracker()
        realized = RealizedAccumulator()
        skipped: list[TradeIssue] = []
        rejected: list[TradeIssue] = []

        for trade in trades:
            if symbol is None:
                symbol = trade.symbol

            if trade.kind == TradeKind.BUY:
                self._apply_buy(tracker, trade)
            elif trade.kind == TradeKind.SELL:
                issue = self._check_inventory(tracker, trade)
                if issue is not None and self.skip_oversold:
                    skipped.append(issue)
                elif issue is not None and self.oversell_policy == OversellPolicy.REJECT:
                    rejected.append(issue)
                else:
                    match = self._apply_sell(tracker, trade)
                    realized.record(trade, match)
            else:
                logger.debug(
                    "lot_matcher.trade_ignored",
                    trade_id=trade.id,
                    symbol=trade.symbol,
                    kind=trade.kind.value,
                )

        if rejected:
            raise InsufficientInventoryError(rejected)

        return MatchResult(symbol=symbol or "", open_lots=tracker.get_lots(), realized=realized, skipped=skipped)

    def _apply_buy(self, tracker: LotTracker, trade: Trade) -> None:
        """Open a lot carrying the fee-inclusive cost."""
        tracker.add_lot(
            Lot(
                lot_id=trade.id,
                symbol=trade.symbol,
                entry_timestamp=trade.timestamp,
                entry_price=trade.price,
                amount=trade.amount,
                cost=trade.cost + trade.fee.cost,
            )
        )

    def _check_inventory(self, tracker: LotTracker, trade: Trade) -> TradeIssue | None:
        """OVERSOLD issue if the sell exceeds open inventory, else None."""
        available = tracker.get_total_amount()
        if trade.amount <= available:
            return None
        return TradeIssue(
            trade_id=trade.id,
            symbol=trade.symbol,
            kind=TradeIssueKind.OVERSOLD,
            message=f"sell of {trade.amount} exceeds open inventory of {available}",
        )

    def _apply_sell(self, tracker: LotTracker, trade: Trade) -> SellMatch:
        """Consume lots for a sell and compute its realized P&L."""
        revenue = trade.cost - trade.fee.cost

        slices, unmatched = tracker.consume(trade.amount)
        cost_basis = sum((piece.cost for piece in slices), start=Decimal("0"))

        if unmatched > 0:
            logger.warning(
                "lot_matcher.oversold",
                trade_id=trade.id,
                symbol=trade.symbol,
                amount=str(trade.amount),
                unmatched_amount=str(unmatched),
            )

        match = SellMatch(
            trade_id=trade.id,
            timestamp=trade.timestamp,
            amount=trade.amount,
            revenue=revenue,
            cost_basis=cost_basis,
            realized_pnl=revenue - cost_basis,
            unmatched_amount=unmatched,
            consumed=slices,
        )

        logger.debug(
            "lot_matcher.sell_matched",
            trade_id=trade.id,
            symbol=trade.symbol,
            lots_consumed=len(slices),
            cost_basis=str(cost_basis),
            realized_pnl=str(match.realized_pnl),
        )
        return match


def match_trades(
    trades: Iterable[Trade],
    oversell_policy: OversellPolicy = OversellPolicy.ZERO_COST,
) -> MatchResult:
    """Replay one asset's trades with a fresh FifoMatcher."""
    return FifoMatcher(oversell_policy).match(trades)
