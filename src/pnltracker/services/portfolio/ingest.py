"""Conversion of exchange trade records into Trade models.

Exchange clients (ccxt and compatible) return unified trade dicts:

    {
        "id": "12345",
        "timestamp": 1672531200000,
        "datetime": "2023-01-01T00:00:00.000Z",
        "symbol": "BTC/USDT",
        "side": "buy",
        "price": 20000.0,
        "amount": 1.0,
        "cost": 20000.0,
        "fee": {"cost": 10.0, "currency": "USDT"},
        "order": "abc",
    }

Retrieval itself happens elsewhere; this module only maps records that
were already fetched (or exported to a file).
"""

import json
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from pnltracker.services.portfolio.models import Fee, Trade, TradeKind
from pnltracker.system import LoggerFactory

logger = LoggerFactory.get_logger()

DEFAULT_FEE_CURRENCY = "USDT"


def _to_decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Field '{field_name}' is not a number: {value!r}") from e


def trade_from_exchange(raw: Mapping[str, Any], default_fee_currency: str = DEFAULT_FEE_CURRENCY) -> Trade:
    """
    Build a Trade from a unified exchange trade record.

    side "buy" maps to a buy and any other side to a sell. A missing fee
    costs 0 in default_fee_currency, a missing exchange is "unknown", and a
    missing cost is price * amount.

    Args:
        raw: Exchange trade record
        default_fee_currency: Fee currency when the record has none

    Returns:
        Trade

    Raises:
        ValueError: If a required field is missing or malformed
    """
    missing = [name for name in ("id", "timestamp", "symbol", "side", "price", "amount") if raw.get(name) is None]
    if missing:
        raise ValueError(f"Trade record missing fields {missing}: {dict(raw)!r}")

    price = _to_decimal(raw["price"], "price")
    amount = _to_decimal(raw["amount"], "amount")
    cost = _to_decimal(raw["cost"], "cost") if raw.get("cost") is not None else price * amount

    raw_fee = raw.get("fee") or {}
    if not isinstance(raw_fee, Mapping):
        raise ValueError(f"Field 'fee' must be an object with cost and currency, got {raw_fee!r}")
    fee = Fee(
        cost=_to_decimal(raw_fee.get("cost") or 0, "fee.cost"),
        currency=raw_fee.get("currency") or default_fee_currency,
    )

    kind = TradeKind.BUY if str(raw["side"]).lower() == "buy" else TradeKind.SELL

    try:
        return Trade(
            id=str(raw["id"]),
            timestamp=int(raw["timestamp"]),
            symbol=str(raw["symbol"]),
            kind=kind,
            price=price,
            amount=amount,
            cost=cost,
            fee=fee,
            exchange=raw.get("exchange") or "unknown",
            order_id=str(raw["order"]) if raw.get("order") is not None else None,
        )
    except (ValidationError, TypeError) as e:
        raise ValueError(f"Invalid trade record {raw.get('id')!r}: {e}") from e


def load_trades(path: Path | str, default_fee_currency: str = DEFAULT_FEE_CURRENCY) -> list[Trade]:
    """
    Load trades from a JSON file.

    The file holds either a list of exchange trade records or an object
    with a "trades" list.

    Args:
        path: JSON file
        default_fee_currency: Fee currency when a record has none

    Returns:
        Trades in file order

    Raises:
        ValueError: If the file is malformed or a record is invalid
    """
    file_path = Path(path)
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Cannot parse trades file {file_path}: {e}") from e

    records = data.get("trades") if isinstance(data, dict) else data
    if not isinstance(records, list):
        raise ValueError(f"Trades file {file_path} must contain a list of trades")

    trades: list[Trade] = []
    for index, record in enumerate(records):
        if not isinstance(record, Mapping):
            raise ValueError(f"{file_path}: record #{index} is not an object")
        try:
            trades.append(trade_from_exchange(record, default_fee_currency))
        except ValueError as e:
            raise ValueError(f"{file_path}: record #{index}: {e}") from e

    logger.info("ingest.trades_loaded", path=str(file_path), count=len(trades))
    return trades


def load_prices(path: Path | str) -> dict[str, Decimal]:
    """
    Load current prices from a JSON or YAML mapping of symbol -> price.

    Args:
        path: .json, .yaml or .yml file

    Returns:
        Symbol -> price

    Raises:
        ValueError: If the file is not a mapping of numbers
    """
    file_path = Path(path)
    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"Cannot parse prices file {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Prices file {file_path} must contain a mapping of symbol to price")

    return {str(symbol): _to_decimal(price, str(symbol)) for symbol, price in data.items()}


def parse_price_overrides(values: list[str] | tuple[str, ...]) -> dict[str, Decimal]:
    """
    Parse SYMBOL=PRICE pairs (e.g. "BTC/USDT=42000").

    Raises:
        ValueError: If a pair is malformed
    """
    prices: dict[str, Decimal] = {}
    for value in values:
        symbol, sep, price = value.partition("=")
        if not sep or not symbol.strip():
            raise ValueError(f"Expected SYMBOL=PRICE, got '{value}'")
        prices[symbol.strip()] = _to_decimal(price.strip(), symbol.strip())
    return prices
