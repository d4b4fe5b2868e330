# backend/tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Mock market data provider (canned series, configurable failures)
- Sample data factories (trades, cash flows, price series, splits)
- An API client wired to the mock provider through dependency overrides
"""

import os

# Must be set before counterfactual.config is imported anywhere
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("APP_NAME", "Test App")

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator

import pytest

from counterfactual.services.comparison import (
    CashFlow,
    CashFlowType,
    ComparisonService,
    StockData,
    StockPrice,
    StockSplit,
    Trade,
    TradeType,
)
from counterfactual.services.exceptions import TickerNotFoundError
from counterfactual.services.market_data import MarketDataProvider, MarketDataService, PriceCache


# =============================================================================
# MOCK MARKET DATA PROVIDER
# =============================================================================

class MockMarketDataProvider(MarketDataProvider):
    """
    Mock implementation of MarketDataProvider for testing.

    Serves canned StockData per ticker and can simulate errors. Tickers with
    nothing configured raise TickerNotFoundError, like an unknown symbol.
    """

    def __init__(self):
        super().__init__(max_workers=4)
        self._data: dict[str, StockData] = {}
        self._errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, str, str]] = []

    @property
    def name(self) -> str:
        return "mock"

    def set_stock_data(
            self,
            ticker: str,
            prices: list[StockPrice],
            splits: list[StockSplit] | None = None,
    ) -> None:
        """Configure a successful response for a ticker."""
        ticker = ticker.upper()
        self._data[ticker] = StockData(ticker=ticker, prices=tuple(prices), splits=tuple(splits or ()))

    def add_error(self, ticker: str, error: Exception) -> None:
        """Configure an error response for a ticker."""
        self._errors[ticker.upper()] = error

    def reset(self) -> None:
        """Reset all configured responses and recorded calls."""
        self._data.clear()
        self._errors.clear()
        self.calls.clear()

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def get_stock_data(self, ticker: str, start_date: str, end_date: str) -> StockData:
        ticker = ticker.upper()
        self.calls.append((ticker, start_date, end_date))

        if ticker in self._errors:
            raise self._errors[ticker]

        if ticker in self._data:
            return self._data[ticker]

        raise TickerNotFoundError(ticker=ticker, provider=self.name)


@pytest.fixture
def mock_provider() -> MockMarketDataProvider:
    """Create a fresh mock provider for each test."""
    return MockMarketDataProvider()


@pytest.fixture
def market_data_service(mock_provider: MockMarketDataProvider) -> MarketDataService:
    """MarketDataService backed by the mock provider and a private cache."""
    return MarketDataService(provider=mock_provider, cache=PriceCache(max_entries=16))


@pytest.fixture
def comparison_service(market_data_service: MarketDataService) -> ComparisonService:
    """ComparisonService benchmarked against SPY."""
    return ComparisonService(market_data_service, benchmark_ticker="SPY")


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def make_trade(
        ticker: str = "AAPL",
        trade_date: str = "2024-01-02",
        shares: str | int = 10,
        price: str | int | None = 130,
        trade_type: TradeType = TradeType.BUY,
        trade_id: str | None = None,
) -> Trade:
    """Factory function for Trade records (numbers go through Decimal(str()))."""
    return Trade(
        id=trade_id or f"{ticker}-{trade_date}-{trade_type.value}",
        ticker=ticker,
        date=trade_date,
        shares=Decimal(str(shares)),
        type=trade_type,
        price=Decimal(str(price)) if price is not None else None,
    )


def make_cash_flow(
        flow_date: str = "2024-01-02",
        amount: str | int = 1000,
        flow_type: CashFlowType = CashFlowType.DEPOSIT,
        ticker: str | None = None,
) -> CashFlow:
    """Factory function for CashFlow records."""
    return CashFlow(
        id=f"cashflow-{flow_date}-{flow_type.value}",
        date=flow_date,
        amount=Decimal(str(amount)),
        type=flow_type,
        ticker=ticker,
    )


def make_prices(
        values: dict[str, str | int] | None = None,
        start: str = "2024-01-01",
        closes: list[str | int] | None = None,
        highs: dict[str, str | int] | None = None,
) -> list[StockPrice]:
    """
    Factory function for a price series.

    Either pass explicit {date: close} values, or a list of closes laid out
    on consecutive calendar days from `start`.
    """
    if values is None:
        first = date.fromisoformat(start)
        values = {
            (first + timedelta(days=offset)).isoformat(): close
            for offset, close in enumerate(closes or [])
        }
    highs = highs or {}
    return [
        StockPrice(
            date=day,
            price=Decimal(str(close)),
            high=Decimal(str(highs[day])) if day in highs else None,
        )
        for day, close in values.items()
    ]


def make_split(ticker: str = "AAPL", split_date: str = "2024-01-04", factor: str | int = 2) -> StockSplit:
    """Factory function for a StockSplit."""
    return StockSplit(date=split_date, ticker=ticker, split_factor=Decimal(str(factor)))


# =============================================================================
# API CLIENT
# =============================================================================

@pytest.fixture
def client(mock_provider: MockMarketDataProvider) -> Iterator:
    """
    TestClient with services wired to the mock provider.

    Every test gets a fresh cache and a reset rate limiter.
    """
    from fastapi.testclient import TestClient

    from counterfactual.dependencies import (
        get_comparison_service,
        get_market_data_service,
    )
    from counterfactual.main import app
    from counterfactual.middleware import limiter

    market_data = MarketDataService(provider=mock_provider, cache=PriceCache(max_entries=16))
    comparison = ComparisonService(market_data, benchmark_ticker="SPY")

    app.dependency_overrides[get_market_data_service] = lambda: market_data
    app.dependency_overrides[get_comparison_service] = lambda: comparison
    limiter.reset()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    limiter.reset()
