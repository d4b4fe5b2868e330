# backend/tests/services/test_market_data_service.py
"""
Tests for the cache-backed MarketDataService.

This module tests:
- Single ticker fetches hit the provider once per ticker/range
- Batch fetches send only cache misses to the provider
- Failed tickers are reported, returned empty and never cached
- Manual split overrides merged on request
"""

from decimal import Decimal

import pytest

from counterfactual.services.exceptions import ProviderUnavailableError, TickerNotFoundError
from tests.conftest import make_prices, make_split

START, END = "2024-01-02", "2024-01-06"


@pytest.fixture
def seeded_provider(mock_provider):
    mock_provider.set_stock_data("AAPL", make_prices(start=START, closes=[130, 131, 132]))
    mock_provider.set_stock_data("SPY", make_prices(start=START, closes=[380, 382, 384]))
    return mock_provider


class TestFetchStockData:

    def test_second_fetch_served_from_cache(self, market_data_service, seeded_provider):
        first = market_data_service.fetch_stock_data("AAPL", START, END)
        second = market_data_service.fetch_stock_data("AAPL", START, END)

        assert first is second
        assert seeded_provider.call_count == 1

    def test_ticker_normalized(self, market_data_service, seeded_provider):
        market_data_service.fetch_stock_data("  aapl ", START, END)
        market_data_service.fetch_stock_data("AAPL", START, END)

        assert seeded_provider.calls == [("AAPL", START, END)]

    def test_different_range_refetches(self, market_data_service, seeded_provider):
        market_data_service.fetch_stock_data("AAPL", START, END)
        market_data_service.fetch_stock_data("AAPL", START, "2024-02-01")

        assert seeded_provider.call_count == 2

    def test_errors_propagate_and_are_not_cached(self, market_data_service, mock_provider):
        with pytest.raises(TickerNotFoundError):
            market_data_service.fetch_stock_data("NOPE", START, END)
        with pytest.raises(TickerNotFoundError):
            market_data_service.fetch_stock_data("NOPE", START, END)

        assert mock_provider.call_count == 2
        assert len(market_data_service.cache) == 0

    def test_clear_cache(self, market_data_service, seeded_provider):
        market_data_service.fetch_stock_data("AAPL", START, END)
        market_data_service.clear_cache()
        market_data_service.fetch_stock_data("AAPL", START, END)

        assert seeded_provider.call_count == 2


class TestFetchWithOverrides:

    def test_manual_splits_merged(self, market_data_service, mock_provider):
        mock_provider.set_stock_data("TVIX", make_prices({"2020-05-18": "10"}))

        data = market_data_service.fetch_stock_data_with_overrides("tvix", "2020-01-01", "2020-06-01")

        assert data.ticker == "TVIX"
        assert len(data.prices) == 1
        assert any(split.date == "2020-05-19" for split in data.splits)

    def test_provider_splits_kept_without_overrides(self, market_data_service, mock_provider):
        split = make_split(ticker="AAPL", split_date="2020-08-31", factor=4)
        mock_provider.set_stock_data("AAPL", make_prices({"2020-08-28": "499"}), splits=[split])

        data = market_data_service.fetch_stock_data_with_overrides("AAPL", "2020-08-01", "2020-09-01")

        assert data.splits == (split,)
        assert data.splits[0].split_factor == Decimal("4")


class TestFetchMultipleStocks:

    def test_all_tickers_in_request_order(self, market_data_service, seeded_provider):
        result = market_data_service.fetch_multiple_stocks(["SPY", "aapl", "AAPL"], START, END)

        assert list(result.data) == ["SPY", "AAPL"]
        assert result.all_successful

    def test_only_misses_reach_provider(self, market_data_service, seeded_provider):
        market_data_service.fetch_stock_data("AAPL", START, END)
        seeded_provider.calls.clear()

        result = market_data_service.fetch_multiple_stocks(["AAPL", "SPY"], START, END)

        assert [call[0] for call in seeded_provider.calls] == ["SPY"]
        assert len(result.data["AAPL"].prices) == 3

    def test_fully_cached_batch_skips_provider(self, market_data_service, seeded_provider):
        market_data_service.fetch_multiple_stocks(["AAPL", "SPY"], START, END)
        seeded_provider.calls.clear()

        market_data_service.fetch_multiple_stocks(["AAPL", "SPY"], START, END)

        assert seeded_provider.call_count == 0

    def test_partial_failure_isolated(self, market_data_service, seeded_provider):
        seeded_provider.add_error("BAD", ProviderUnavailableError(provider="mock", reason="down"))

        result = market_data_service.fetch_multiple_stocks(["AAPL", "BAD", "GONE", "SPY"], START, END)

        assert list(result.data) == ["AAPL", "BAD", "GONE", "SPY"]
        assert set(result.failed) == {"BAD", "GONE"}
        assert result.data["BAD"].prices == ()
        assert result.data["GONE"].prices == ()
        assert len(result.data["SPY"].prices) == 3

    def test_failed_tickers_not_cached(self, market_data_service, seeded_provider):
        market_data_service.fetch_multiple_stocks(["AAPL", "GONE"], START, END)
        seeded_provider.calls.clear()

        market_data_service.fetch_multiple_stocks(["AAPL", "GONE"], START, END)

        assert seeded_provider.calls == [("GONE", START, END)]

    def test_empty_request(self, market_data_service, mock_provider):
        result = market_data_service.fetch_multiple_stocks([], START, END)

        assert result.data == {}
        assert mock_provider.call_count == 0
