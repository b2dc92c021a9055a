"""Unit tests for exchange record ingestion and price files."""

import json
from decimal import Decimal

import pytest

from pnltracker.services.portfolio.ingest import load_prices, load_trades, parse_price_overrides, trade_from_exchange
from pnltracker.services.portfolio.models import TradeKind


@pytest.fixture
def exchange_record() -> dict:
    """Unified exchange trade record."""
    return {
        "id": "12345",
        "timestamp": 1672531200000,
        "datetime": "2023-01-01T00:00:00.000Z",
        "symbol": "BTC/USDT",
        "side": "buy",
        "price": 20000.0,
        "amount": 0.1,
        "cost": 2000.0,
        "fee": {"cost": 1.5, "currency": "USDT"},
        "order": 987,
        "exchange": "binance",
    }


class TestTradeFromExchange:
    """Test mapping of a single exchange record."""

    def test_full_record(self, exchange_record: dict) -> None:
        trade = trade_from_exchange(exchange_record)

        assert trade.id == "12345"
        assert trade.timestamp == 1672531200000
        assert trade.kind == TradeKind.BUY
        assert trade.price == Decimal("20000.0")
        assert trade.amount == Decimal("0.1")
        assert trade.cost == Decimal("2000.0")
        assert trade.fee.cost == Decimal("1.5")
        assert trade.fee.currency == "USDT"
        assert trade.exchange == "binance"
        assert trade.order_id == "987"

    def test_side_mapping(self, exchange_record: dict) -> None:
        """Test only "buy" is a buy; every other side is a sell."""
        for side, kind in (("BUY", TradeKind.BUY), ("sell", TradeKind.SELL), ("short", TradeKind.SELL)):
            exchange_record["side"] = side

            assert trade_from_exchange(exchange_record).kind == kind

    def test_defaults_for_optional_fields(self, exchange_record: dict) -> None:
        for key in ("cost", "fee", "order", "exchange"):
            del exchange_record[key]

        trade = trade_from_exchange(exchange_record, default_fee_currency="BNB")

        assert trade.cost == Decimal("20000.0") * Decimal("0.1")
        assert trade.fee.cost == Decimal("0")
        assert trade.fee.currency == "BNB"
        assert trade.exchange == "unknown"
        assert trade.order_id is None

    def test_fee_without_currency(self, exchange_record: dict) -> None:
        exchange_record["fee"] = {"cost": 2}

        assert trade_from_exchange(exchange_record).fee.currency == "USDT"

    @pytest.mark.parametrize("fee", [5, "1.5", [1, "USDT"]])
    def test_fee_must_be_an_object(self, exchange_record: dict, fee) -> None:
        exchange_record["fee"] = fee

        with pytest.raises(ValueError, match="'fee' must be an object"):
            trade_from_exchange(exchange_record)

    def test_missing_required_field(self, exchange_record: dict) -> None:
        del exchange_record["price"]

        with pytest.raises(ValueError, match="missing fields \\['price'\\]"):
            trade_from_exchange(exchange_record)

    def test_non_numeric_amount(self, exchange_record: dict) -> None:
        exchange_record["amount"] = "lots"

        with pytest.raises(ValueError, match="'amount' is not a number"):
            trade_from_exchange(exchange_record)


class TestLoadTrades:
    """Test trade file loading."""

    def test_load_list(self, tmp_path, exchange_record: dict) -> None:
        path = tmp_path / "trades.json"
        path.write_text(json.dumps([exchange_record, {**exchange_record, "id": "2", "side": "sell"}]))

        trades = load_trades(path)

        assert [t.id for t in trades] == ["12345", "2"]
        assert trades[1].kind == TradeKind.SELL

    def test_load_wrapped_object(self, tmp_path, exchange_record: dict) -> None:
        path = tmp_path / "trades.json"
        path.write_text(json.dumps({"trades": [exchange_record]}))

        assert len(load_trades(path)) == 1

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "trades.json"
        path.write_text("{not json")

        with pytest.raises(ValueError, match="Cannot parse trades file"):
            load_trades(path)

    def test_not_a_list(self, tmp_path) -> None:
        path = tmp_path / "trades.json"
        path.write_text(json.dumps({"data": []}))

        with pytest.raises(ValueError, match="must contain a list"):
            load_trades(path)

    def test_bad_record_reports_index(self, tmp_path, exchange_record: dict) -> None:
        broken = dict(exchange_record)
        del broken["symbol"]
        path = tmp_path / "trades.json"
        path.write_text(json.dumps([exchange_record, broken]))

        with pytest.raises(ValueError, match="record #1"):
            load_trades(path)

    def test_bad_fee_reports_index(self, tmp_path, exchange_record: dict) -> None:
        path = tmp_path / "trades.json"
        path.write_text(json.dumps([{**exchange_record, "fee": 5}]))

        with pytest.raises(ValueError, match="record #0.*'fee' must be an object"):
            load_trades(path)


class TestPrices:
    """Test price file loading and overrides."""

    def test_load_json(self, tmp_path) -> None:
        path = tmp_path / "prices.json"
        path.write_text(json.dumps({"BTC/USDT": 42000.5, "ETH/USDT": "2500"}))

        assert load_prices(path) == {"BTC/USDT": Decimal("42000.5"), "ETH/USDT": Decimal("2500")}

    def test_load_yaml(self, tmp_path) -> None:
        path = tmp_path / "prices.yaml"
        path.write_text("BTC/USDT: 42000\nETH/USDT: 2500.25\n")

        assert load_prices(path) == {"BTC/USDT": Decimal("42000"), "ETH/USDT": Decimal("2500.25")}

    def test_non_mapping_rejected(self, tmp_path) -> None:
        path = tmp_path / "prices.json"
        path.write_text(json.dumps([42000]))

        with pytest.raises(ValueError, match="must contain a mapping"):
            load_prices(path)

    def test_parse_price_overrides(self) -> None:
        assert parse_price_overrides(["BTC/USDT=42000", " ETH/USDT = 2500.5 "]) == {
            "BTC/USDT": Decimal("42000"),
            "ETH/USDT": Decimal("2500.5"),
        }

    @pytest.mark.parametrize("value", ["BTC/USDT", "=100", "BTC/USDT=abc"])
    def test_parse_price_overrides_malformed(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_price_overrides([value])
