"""Lot tracker for FIFO inventory accounting.

Holds the open lots of one asset in a FIFO queue. Buys append to the back,
sells consume from the front (oldest first), splitting the front lot when
a sell only needs part of it.
"""

from collections import deque
from decimal import Decimal

from pnltracker.services.portfolio.models import ZERO, Lot, LotSlice


class LotTracker:
    """
    FIFO queue of open lots for a single asset.

    A tracker lives for exactly one replay; nothing is shared between
    trackers, so assets can be replayed independently.

    Example:
        >>> tracker = LotTracker()
        >>> tracker.add_lot(lot)
        >>> slices, unmatched = tracker.consume(Decimal("0.5"))
    """

    def __init__(self) -> None:
        """Initialize lot tracker."""
        # Oldest lot at the left
        self._lots: deque[Lot] = deque()

    def add_lot(self, lot: Lot) -> None:
        """
        Add lot to the back of the queue.

        Args:
            lot: Lot opened by a buy
        """
        self._lots.append(lot)

    def get_lots(self) -> list[Lot]:
        """
        Get all open lots.

        Returns:
            List of lots, oldest first
        """
        return list(self._lots)

    def get_total_amount(self) -> Decimal:
        """Total remaining base quantity across all lots."""
        return sum((lot.amount for lot in self._lots), start=ZERO)

    def get_total_cost(self) -> Decimal:
        """Total remaining cost basis across all lots."""
        return sum((lot.cost for lot in self._lots), start=ZERO)

    def has_position(self) -> bool:
        """Check if any lots are open."""
        return len(self._lots) > 0

    def clear(self) -> None:
        """Drop all lots."""
        self._lots.clear()

    def consume(self, amount: Decimal) -> tuple[list[LotSlice], Decimal]:
        """
        Consume amount from the oldest lots first.

        A lot whose remaining amount fits in what is left to consume is
        removed whole. Otherwise the fraction ratio = remaining / lot.amount
        is taken from it: its amount shrinks by the remaining quantity and
        its cost by lot.cost * ratio.

        Args:
            amount: Base quantity to consume

        Returns:
            (slices, unmatched): consumed slices in match order, and the
            quantity left over once the queue ran out (0 if fully covered)

        Example:
            >>> # Consume 1.5 from [1.0 (cost 20010), 1.0 (cost 30015)]
            >>> slices, unmatched = tracker.consume(Decimal("1.5"))
            >>> # slices: [(lot1, 1.0, 20010), (lot2, 0.5, 15007.5)]
            >>> # Leaves: [Lot(0.5, cost 15007.5)]
        """
        slices: list[LotSlice] = []
        remaining_to_consume = amount

        while remaining_to_consume > 0 and len(self._lots) > 0:
            lot = self._lots[0]  # Peek at oldest lot

            if lot.amount <= remaining_to_consume:
                # Full lot - remove entirely
                self._lots.popleft()
                slices.append(LotSlice(lot_id=lot.lot_id, amount=lot.amount, cost=lot.cost))
                remaining_to_consume -= lot.amount
            else:
                # Partial lot - replace front with the shrunken remainder
                ratio = remaining_to_consume / lot.amount
                consumed_cost = lot.cost * ratio
                slices.append(LotSlice(lot_id=lot.lot_id, amount=remaining_to_consume, cost=consumed_cost))

                self._lots[0] = lot.model_copy(
                    update={
                        "amount": lot.amount - remaining_to_consume,
                        "cost": lot.cost - consumed_cost,
                    }
                )
                remaining_to_consume = ZERO

        unmatched = remaining_to_consume if remaining_to_consume > 0 else ZERO
        return slices, unmatched
