"""Portfolio aggregation."""

from collections.abc import Iterable

from pnltracker.services.portfolio.models import (
    HUNDRED,
    ZERO,
    AssetResult,
    PortfolioSummary,
    Position,
    RealizedPnL,
)


def aggregate(results: Iterable[AssetResult]) -> PortfolioSummary:
    """
    Sum per-asset results into a portfolio summary.

    Positions and realized results keep the order of results, so callers
    control (and must keep deterministic) the output ordering.

    Args:
        results: One entry per asset; either side may be None

    Returns:
        PortfolioSummary with totals and per-asset detail
    """
    positions: list[Position] = []
    realized_by_asset: list[RealizedPnL] = []

    total_invested = ZERO
    current_value = ZERO
    total_unrealized = ZERO
    total_realized = ZERO

    for result in results:
        position = result.position
        if position is not None and position.total_amount > 0:
            positions.append(position)
            total_invested += position.total_invested
            current_value += position.current_value
            total_unrealized += position.unrealized_pnl

        if result.realized is not None:
            realized_by_asset.append(result.realized)
            total_realized += result.realized.total_realized

    total_pnl = total_unrealized + total_realized
    total_pnl_percent = total_pnl / total_invested * HUNDRED if total_invested > 0 else ZERO

    return PortfolioSummary(
        total_invested=total_invested,
        current_value=current_value,
        total_unrealized_pnl=total_unrealized,
        total_realized_pnl=total_realized,
        total_pnl=total_pnl,
        total_pnl_percent=total_pnl_percent,
        positions=positions,
        realized_pnl_by_asset=realized_by_asset,
    )
