"""
Unit tests for pnltracker.cli.commands.report module.

Tests cover:
- Table and JSON output for a trade file plus prices
- Price sources (--prices file, --price overrides, missing prices)
- Policy overrides (--oversell, --skip-invalid) and --since filtering
- Error handling for invalid input
"""

import json
from decimal import Decimal

import pytest
from click.testing import CliRunner

from pnltracker.cli.commands.report import report_command
from pnltracker.cli.main import main
from pnltracker.system import LoggerFactory


@pytest.fixture
def cli_runner():
    """Fixture providing Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to the runner's streams."""
    yield
    LoggerFactory.reset()


@pytest.fixture
def no_config(tmp_path):
    """Path to a config file that does not exist (built-in defaults)."""
    return tmp_path / "missing.yaml"


def record(trade_id, side, amount, price, hour, fee=0.0, symbol="BTC/USDT"):
    return {
        "id": trade_id,
        "timestamp": 1672531200000 + hour * 3_600_000,
        "symbol": symbol,
        "side": side,
        "price": price,
        "amount": amount,
        "fee": {"cost": fee, "currency": "USDT"},
    }


@pytest.fixture
def trades_file(tmp_path):
    """Two BTC buys and a sell spanning both lots."""
    path = tmp_path / "trades.json"
    path.write_text(
        json.dumps(
            [
                record("buy_1", "buy", 1.0, 20000, 0, fee=10),
                record("buy_2", "buy", 1.0, 30000, 1, fee=15),
                record("sell_1", "sell", 1.5, 40000, 2, fee=30),
            ]
        )
    )
    return path


@pytest.fixture
def prices_file(tmp_path):
    path = tmp_path / "prices.json"
    path.write_text(json.dumps({"BTC/USDT": 40000}))
    return path


def run_json(cli_runner, args):
    result = cli_runner.invoke(report_command, [*args, "--json", "--log-level", "ERROR"])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


class TestReportOutput:
    """Test successful report rendering."""

    def test_tables(self, cli_runner, trades_file, prices_file, no_config):
        """Test the default table report."""
        # Act
        result = cli_runner.invoke(
            report_command,
            ["-t", str(trades_file), "-p", str(prices_file), "-c", str(no_config), "-l", "ERROR"],
        )

        # Assert
        assert result.exit_code == 0, result.output
        assert "P&L Report" in result.output
        assert "Portfolio Summary" in result.output
        assert "Open Positions" in result.output
        assert "Realized P&L" in result.output
        assert "BTC/USDT" in result.output

    def test_json(self, cli_runner, trades_file, prices_file, no_config):
        """Test JSON output carries exact decimal totals."""
        # Act
        data = run_json(cli_runner, ["-t", str(trades_file), "-p", str(prices_file), "-c", str(no_config)])

        # Assert
        assert Decimal(data["total_realized_pnl"]) == Decimal("24952.5")
        assert Decimal(data["total_unrealized_pnl"]) == Decimal("4992.5")
        assert Decimal(data["total_invested"]) == Decimal("15007.5")
        assert [p["symbol"] for p in data["positions"]] == ["BTC/USDT"]

    def test_price_override(self, cli_runner, trades_file, prices_file, no_config):
        """Test --price wins over the prices file."""
        data = run_json(
            cli_runner,
            ["-t", str(trades_file), "-p", str(prices_file), "--price", "BTC/USDT=50000", "-c", str(no_config)],
        )

        assert Decimal(data["current_value"]) == Decimal("25000")

    def test_missing_price_warns(self, cli_runner, trades_file, no_config):
        """Test positions without a price are valued at 0 and flagged."""
        result = cli_runner.invoke(report_command, ["-t", str(trades_file), "-c", str(no_config), "-l", "ERROR"])

        assert result.exit_code == 0, result.output
        assert "No current price for BTC/USDT" in result.output

    def test_explicit_zero_price_not_flagged(self, cli_runner, trades_file, no_config):
        """Test a price given as 0 is used as is, not reported missing."""
        result = cli_runner.invoke(
            report_command,
            ["-t", str(trades_file), "--price", "BTC/USDT=0", "-c", str(no_config), "-l", "ERROR"],
        )

        assert result.exit_code == 0, result.output
        assert "No current price" not in result.output

    def test_negative_price_fails(self, cli_runner, trades_file, no_config):
        result = cli_runner.invoke(
            report_command,
            ["-t", str(trades_file), "--price", "BTC/USDT=-1", "-c", str(no_config), "-l", "ERROR"],
        )

        assert result.exit_code == 1
        assert "Report failed" in result.output

    def test_since(self, cli_runner, trades_file, prices_file, no_config):
        """Test --since drops earlier trades."""
        data = run_json(
            cli_runner,
            ["-t", str(trades_file), "-p", str(prices_file), "--since", "2023-01-02", "-c", str(no_config)],
        )

        assert data["positions"] == []
        assert data["realized_pnl_by_asset"] == []

    def test_config_file_sets_output_precision(self, cli_runner, tmp_path, trades_file, prices_file):
        """Test the config file is honoured."""
        config_file = tmp_path / "system.yaml"
        config_file.write_text("output:\n  decimals: 4\nlogging:\n  level: ERROR\n")

        result = cli_runner.invoke(
            report_command, ["-t", str(trades_file), "-p", str(prices_file), "-c", str(config_file)]
        )

        assert result.exit_code == 0, result.output
        assert "24,952.5000" in result.output


class TestReportPolicies:
    """Test policy overrides and failures."""

    @pytest.fixture
    def oversold_file(self, tmp_path):
        path = tmp_path / "oversold.json"
        path.write_text(json.dumps([record("b1", "buy", 1, 100, 0), record("s1", "sell", 2, 150, 1)]))
        return path

    def test_oversell_zero_cost_by_default(self, cli_runner, oversold_file, no_config):
        data = run_json(cli_runner, ["-t", str(oversold_file), "-c", str(no_config)])

        assert Decimal(data["total_realized_pnl"]) == Decimal("200")

    def test_oversell_reject(self, cli_runner, oversold_file, no_config):
        result = cli_runner.invoke(
            report_command,
            ["-t", str(oversold_file), "--oversell", "reject", "-c", str(no_config), "-l", "ERROR"],
        )

        assert result.exit_code == 1
        assert "Invalid trades" in result.output
        assert "s1" in result.output

    def test_invalid_trade_fails(self, cli_runner, tmp_path, no_config):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([record("b1", "buy", 0, 100, 0)]))

        result = cli_runner.invoke(report_command, ["-t", str(path), "-c", str(no_config), "-l", "ERROR"])

        assert result.exit_code == 1
        assert "non_positive_amount" in result.output

    def test_skip_invalid(self, cli_runner, tmp_path, no_config):
        path = tmp_path / "mixed.json"
        path.write_text(json.dumps([record("bad", "buy", 0, 100, 0), record("ok", "buy", 2, 100, 1)]))

        data = run_json(cli_runner, ["-t", str(path), "--skip-invalid", "--price", "BTC/USDT=100", "-c", str(no_config)])

        assert Decimal(data["positions"][0]["total_amount"]) == Decimal("2")

    def test_skip_invalid_drops_oversold_sell(self, cli_runner, tmp_path, no_config):
        path = tmp_path / "orphan_sell.json"
        path.write_text(json.dumps([record("s1", "sell", 1, 150, 0, symbol="ETH/USDT")]))

        data = run_json(cli_runner, ["-t", str(path), "--skip-invalid", "-c", str(no_config)])

        assert Decimal(data["total_realized_pnl"]) == Decimal("0")
        assert data["realized_pnl_by_asset"] == []

    def test_oversell_reject_lists_every_sell(self, cli_runner, tmp_path, no_config):
        path = tmp_path / "oversold_pairs.json"
        path.write_text(
            json.dumps(
                [
                    record("s1", "sell", 1, 150, 0, symbol="ETH/USDT"),
                    record("s2", "sell", 1, 20, 1, symbol="SOL/USDT"),
                ]
            )
        )

        result = cli_runner.invoke(
            report_command, ["-t", str(path), "--oversell", "reject", "-c", str(no_config), "-l", "ERROR"]
        )

        assert result.exit_code == 1
        assert "Invalid trades: 2" in result.output
        assert "s1 (ETH/USDT)" in result.output
        assert "s2 (SOL/USDT)" in result.output

    def test_non_object_fee_fails(self, cli_runner, tmp_path, no_config):
        path = tmp_path / "bad_fee.json"
        path.write_text(json.dumps([{**record("b1", "buy", 1, 100, 0), "fee": 5}]))

        result = cli_runner.invoke(report_command, ["-t", str(path), "-c", str(no_config), "-l", "ERROR"])

        assert result.exit_code == 1
        assert "Report failed" in result.output

    def test_malformed_trades_file(self, cli_runner, tmp_path, no_config):
        path = tmp_path / "broken.json"
        path.write_text("[{")

        result = cli_runner.invoke(report_command, ["-t", str(path), "-c", str(no_config), "-l", "ERROR"])

        assert result.exit_code == 1
        assert "Report failed" in result.output

    def test_malformed_price_override(self, cli_runner, trades_file, no_config):
        result = cli_runner.invoke(
            report_command, ["-t", str(trades_file), "--price", "BTC/USDT", "-c", str(no_config), "-l", "ERROR"]
        )

        assert result.exit_code == 1
        assert "SYMBOL=PRICE" in result.output

    def test_missing_trades_option(self, cli_runner):
        result = cli_runner.invoke(report_command, [])

        assert result.exit_code != 0
        assert "--trades" in result.output


def test_main_group_registers_report(cli_runner):
    result = cli_runner.invoke(main, ["--help"])

    assert result.exit_code == 0
    assert "report" in result.output
