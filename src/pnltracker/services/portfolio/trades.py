"""Trade ordering and grouping.

The matcher consumes lots in insertion order, so each symbol's trades must
be replayed oldest first. ChronologicalTrades makes that precondition part
of the type: it can only hold trades in non-decreasing timestamp order.
"""

from collections.abc import Iterable, Iterator, Sequence
from datetime import datetime, timezone
from typing import overload

from pnltracker.services.portfolio.models import Trade


def group_by_symbol(trades: Iterable[Trade]) -> dict[str, list[Trade]]:
    """
    Partition trades by traded pair.

    Grouping is stable: each bucket keeps the relative input order, and the
    mapping iterates symbols in order of first appearance. No sorting is done.

    Args:
        trades: Trades for any number of symbols

    Returns:
        Mapping symbol -> trades for that symbol

    Example:
        >>> grouped = group_by_symbol([btc_buy, eth_buy, btc_sell])
        >>> list(grouped)
        ['BTC/USDT', 'ETH/USDT']
        >>> [t.id for t in grouped["BTC/USDT"]]
        ['btc_buy', 'btc_sell']
    """
    grouped: dict[str, list[Trade]] = {}
    for trade in trades:
        grouped.setdefault(trade.symbol, []).append(trade)
    return grouped


def to_millis(moment: int | datetime) -> int:
    """Convert a datetime (naive = UTC) or epoch millis to epoch millis."""
    if isinstance(moment, datetime):
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return int(moment.timestamp() * 1000)
    return int(moment)


def filter_since(trades: Iterable[Trade], start: int | datetime | None) -> list[Trade]:
    """
    Keep trades executed at or after start.

    Args:
        trades: Trades to filter
        start: Epoch millis or datetime; None keeps everything

    Returns:
        Matching trades in input order
    """
    if start is None:
        return list(trades)
    start_ms = to_millis(start)
    return [trade for trade in trades if trade.timestamp >= start_ms]


class ChronologicalTrades(Sequence[Trade]):
    """
    Immutable trade sequence in non-decreasing timestamp order.

    Example:
        >>> ordered = ChronologicalTrades.from_unordered(raw_trades)
        >>> for symbol, symbol_trades in ordered.group_by_symbol().items():
        ...     result = FifoMatcher().match(symbol_trades)
    """

    __slots__ = ("_trades",)

    def __init__(self, trades: Iterable[Trade] = ()) -> None:
        """
        Wrap trades that are already in chronological order.

        Args:
            trades: Trades sorted by ascending timestamp

        Raises:
            ValueError: If a trade is older than the one before it
        """
        items = tuple(trades)
        for previous, current in zip(items, items[1:]):
            if current.timestamp < previous.timestamp:
                raise ValueError(
                    f"Trades not in chronological order: {current.id} ({current.timestamp}) "
                    f"follows {previous.id} ({previous.timestamp})"
                )
        self._trades = items

    @classmethod
    def from_unordered(cls, trades: Iterable[Trade]) -> "ChronologicalTrades":
        """Sort by timestamp; equal timestamps keep their input order."""
        return cls(sorted(trades, key=lambda trade: trade.timestamp))

    @overload
    def __getitem__(self, index: int) -> Trade: ...

    @overload
    def __getitem__(self, index: slice) -> "ChronologicalTrades": ...

    def __getitem__(self, index: int | slice) -> "Trade | ChronologicalTrades":
        if isinstance(index, slice):
            return ChronologicalTrades(self._trades[index])
        return self._trades[index]

    def __len__(self) -> int:
        return len(self._trades)

    def __iter__(self) -> Iterator[Trade]:
        return iter(self._trades)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ChronologicalTrades):
            return self._trades == other._trades
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._trades)

    def __repr__(self) -> str:
        return f"ChronologicalTrades({len(self._trades)} trades)"

    def group_by_symbol(self) -> dict[str, "ChronologicalTrades"]:
        """Stable per-symbol grouping; each bucket stays chronological."""
        return {symbol: ChronologicalTrades(bucket) for symbol, bucket in group_by_symbol(self._trades).items()}
