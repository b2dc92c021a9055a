"""Test configuration and fixtures for P&L calculator tests."""

from collections.abc import Callable
from decimal import Decimal

import pytest

from pnltracker.services.portfolio.models import Fee, Trade, TradeKind

TradeFactory = Callable[..., Trade]

# 2023-01-01T00:00:00Z
BASE_TIMESTAMP = 1672531200000
HOUR_MS = 3_600_000


def build_trade(
    trade_id: str,
    kind: str,
    amount: str,
    price: str,
    hour: int = 0,
    fee: str = "0",
    symbol: str = "BTC/USDT",
    cost: str | None = None,
) -> Trade:
    """Build a trade; cost defaults to price * amount."""
    amount_dec = Decimal(amount)
    price_dec = Decimal(price)
    return Trade(
        id=trade_id,
        timestamp=BASE_TIMESTAMP + hour * HOUR_MS,
        symbol=symbol,
        kind=TradeKind(kind),
        price=price_dec,
        amount=amount_dec,
        cost=Decimal(cost) if cost is not None else price_dec * amount_dec,
        fee=Fee(cost=Decimal(fee), currency=symbol.split("/")[-1]),
    )


@pytest.fixture
def make_trade() -> TradeFactory:
    """Factory for trades at BASE_TIMESTAMP + hour."""
    return build_trade


@pytest.fixture
def btc_scenario(make_trade: TradeFactory) -> list[Trade]:
    """Two buys then a sell spanning both lots."""
    return [
        make_trade("buy_1", "buy", "1.0", "20000", hour=0, fee="10"),
        make_trade("buy_2", "buy", "1.0", "30000", hour=1, fee="15"),
        make_trade("sell_1", "sell", "1.5", "40000", hour=2, fee="30"),
    ]
