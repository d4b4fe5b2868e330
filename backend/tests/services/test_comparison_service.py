# backend/tests/services/test_comparison_service.py
"""
Tests for ComparisonService and missing-price filling.

The market data side runs against the mock provider; the market clock is
pinned with an explicit `now`.
"""

from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest

from counterfactual.services.comparison import ComparisonResult, fill_missing_prices
from tests.conftest import make_cash_flow, make_prices, make_trade

DAY1, DAY5 = "2024-01-02", "2024-01-06"
NOW = datetime(2024, 1, 6, 12, 0, tzinfo=ZoneInfo("America/New_York"))


@pytest.fixture
def seeded_provider(mock_provider):
    mock_provider.set_stock_data("SPY", make_prices(start=DAY1, closes=[380, 382, 384, 386, 388]))
    mock_provider.set_stock_data(
        "AAPL",
        make_prices(start=DAY1, closes=[130, 131, 132, 133, 140], highs={DAY1: "131.50"}),
    )
    return mock_provider


class TestFillMissingPrices:

    def test_priced_trades_untouched(self):
        trade = make_trade(price=125)
        assert fill_missing_prices([trade], {}) == [trade]

    def test_uses_day_high(self):
        prices = {"AAPL": make_prices({DAY1: "130"}, highs={DAY1: "131.50"})}

        [filled] = fill_missing_prices([make_trade(trade_date=DAY1, price=None)], prices)

        assert filled.price == Decimal("131.50")

    def test_weekend_uses_previous_high(self):
        prices = {"AAPL": make_prices({"2024-01-05": "130"}, highs={"2024-01-05": "132"})}

        [filled] = fill_missing_prices([make_trade(trade_date="2024-01-07", price=None)], prices)

        assert filled.price == Decimal("132")

    def test_high_missing_falls_back_to_close(self):
        prices = {"AAPL": make_prices({DAY1: "130"})}

        [filled] = fill_missing_prices([make_trade(trade_date=DAY1, price=None)], prices)

        assert filled.price == Decimal("130")

    def test_no_data_gives_zero(self):
        [filled] = fill_missing_prices([make_trade(price=None)], {})
        assert filled.price == Decimal("0")

    def test_input_not_mutated(self):
        trade = make_trade(price=None)
        fill_missing_prices([trade], {"AAPL": make_prices({DAY1: "130"})})
        assert trade.price is None


class TestCompare:
    """End-to-end runs through the mock provider."""

    def test_no_trades_is_empty_result(self, comparison_service, mock_provider):
        result = comparison_service.compare([], now=NOW)

        assert result == ComparisonResult()
        assert mock_provider.call_count == 0

    def test_single_buy(self, comparison_service, seeded_provider):
        trades = [make_trade(trade_date=DAY1, shares=10, price=130)]

        result = comparison_service.compare(trades, now=NOW)

        assert result.date_range.start_date == DAY1
        assert result.date_range.end_date == DAY5
        assert len(result.time_series) == 5
        assert result.time_series[-1].counterfactual_value == Decimal("1327.37")
        assert [row.ticker for row in result.breakdown] == ["AAPL"]
        assert result.breakdown[0].difference == Decimal("72.63")
        assert result.summary.total_difference == Decimal("72.63")
        assert result.failed_tickers == []

    def test_fetches_tickers_and_benchmark_over_date_range(self, comparison_service, seeded_provider):
        comparison_service.compare([make_trade(trade_date=DAY1)], now=NOW)

        assert sorted(seeded_provider.calls) == [("AAPL", DAY1, DAY5), ("SPY", DAY1, DAY5)]

    def test_missing_price_filled_from_day_high(self, comparison_service, seeded_provider):
        result = comparison_service.compare([make_trade(trade_date=DAY1, price=None)], now=NOW)

        assert result.trades[0].price == Decimal("131.50")
        assert result.breakdown[0].buy_price == Decimal("131.50")

    def test_failed_ticker_degrades_to_no_data(self, comparison_service, seeded_provider):
        trades = [
            make_trade(ticker="AAPL", trade_date=DAY1, shares=10, price=130),
            make_trade(ticker="GONE", trade_date=DAY1, shares=1, price=50),
        ]

        result = comparison_service.compare(trades, now=NOW)

        assert result.failed_tickers == ["GONE"]
        assert [row.ticker for row in result.breakdown] == ["AAPL"]
        assert len(result.time_series) == 5

    def test_missing_benchmark_gives_empty_series(self, comparison_service, mock_provider):
        mock_provider.set_stock_data("AAPL", make_prices(start=DAY1, closes=[130, 131]))

        result = comparison_service.compare([make_trade(trade_date=DAY1)], now=NOW)

        assert result.time_series == []
        assert "SPY" in result.failed_tickers

    def test_deposits_drive_counterfactual(self, comparison_service, seeded_provider):
        trades = [make_trade(trade_date=DAY1, shares=10, price=130)]
        cash_flows = [make_cash_flow(flow_date=DAY1, amount=2000)]

        result = comparison_service.compare(trades, cash_flows, now=NOW)

        assert result.time_series[0].cost_basis == Decimal("2000.00")
        assert result.time_series[-1].counterfactual_value == Decimal("2042.11")

    def test_manual_split_overrides_applied(self, comparison_service, mock_provider):
        """
        TVIX is reported at 10 the day before its 2020-05-19 1:10 reverse
        split with no split events; the manual table recovers a price of 1.
        """
        mock_provider.set_stock_data("TVIX", make_prices({"2020-05-18": "10"}))
        mock_provider.set_stock_data("SPY", make_prices({"2020-05-18": "295"}))
        now = datetime(2020, 5, 18, 12, 0, tzinfo=ZoneInfo("America/New_York"))

        result = comparison_service.compare(
            [make_trade(ticker="TVIX", trade_date="2020-05-18", shares=10, price=1)],
            now=now,
        )

        assert result.time_series[0].portfolio_value == Decimal("10.00")


class TestCalculate:
    """The engines over caller-supplied series."""

    def test_no_market_data_access(self, comparison_service, mock_provider):
        result = comparison_service.calculate(
            [make_trade(trade_date=DAY1, shares=10, price=130)],
            {"AAPL": make_prices(start=DAY1, closes=[130, 131, 132, 133, 140])},
            make_prices(start=DAY1, closes=[380, 382, 384, 386, 388]),
        )

        assert mock_provider.call_count == 0
        assert result.date_range is None
        assert result.failed_tickers == []
        assert result.summary.total_difference == Decimal("72.63")
