# backend/counterfactual/services/comparison/service.py
"""
Comparison orchestration: market data in, comparison result out.

Flow for compare():
    1. Unique tickers + benchmark
    2. Date range from the market clock
    3. Fetch every ticker (cache-backed, failures become empty series)
    4. Merge manual split overrides
    5. Fill missing trade prices with the on-or-before day high
    6. Time series, breakdown, summary

calculate() runs step 5 and 6 only, on series supplied by the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import TYPE_CHECKING

from counterfactual.services.comparison.breakdown import calculate_stock_breakdown
from counterfactual.services.comparison.date_range import get_date_range
from counterfactual.services.comparison.price_index import PriceIndex
from counterfactual.services.comparison.summary import calculate_summary
from counterfactual.services.comparison.time_series import calculate_portfolio_time_series
from counterfactual.services.comparison.types import (
    CashFlow,
    ComparisonResult,
    DateRange,
    StockPrice,
    StockSplit,
    Trade,
)
from counterfactual.services.constants import (
    DEFAULT_BENCHMARK_TICKER,
    DEFAULT_MARKET_CLOSE_HOUR,
    DEFAULT_MARKET_TIMEZONE,
    ZERO,
)
from counterfactual.services.market_data.split_overrides import merge_with_historical_splits
from counterfactual.utils.logging import log_duration

if TYPE_CHECKING:
    from counterfactual.services.market_data.service import MarketDataService

logger = logging.getLogger(__name__)


def fill_missing_prices(
        trades: Sequence[Trade],
        prices_by_ticker: Mapping[str, Sequence[StockPrice]],
) -> list[Trade]:
    """
    Give every price-less trade the day high on or before its date.

    Trades with a price are returned as-is; a ticker with no data gets 0.
    Returns new Trade records, the input is untouched.
    """
    indexes: dict[str, PriceIndex] = {}
    filled = []
    for trade in trades:
        if trade.price is not None:
            filled.append(trade)
            continue
        index = indexes.get(trade.ticker)
        if index is None:
            index = indexes[trade.ticker] = PriceIndex(prices_by_ticker.get(trade.ticker, ()))
        filled.append(trade.with_price(index.high_on_or_before(trade.date) or ZERO))
    return filled


class ComparisonService:
    """
    Service for comparing a portfolio against a benchmark index.

    Usage:
        service = ComparisonService(market_data_service)
        result = service.compare(trades, cash_flows)
    """

    def __init__(
            self,
            market_data_service: MarketDataService,
            benchmark_ticker: str = DEFAULT_BENCHMARK_TICKER,
            timezone_name: str = DEFAULT_MARKET_TIMEZONE,
            close_hour: int = DEFAULT_MARKET_CLOSE_HOUR,
    ) -> None:
        self._market_data = market_data_service
        self._benchmark = benchmark_ticker.upper()
        self._timezone_name = timezone_name
        self._close_hour = close_hour

    @property
    def benchmark_ticker(self) -> str:
        return self._benchmark

    def date_range(self, trades: Sequence[Trade] = (), now: datetime | None = None) -> DateRange:
        """Date range for these trades on this service's market clock."""
        return get_date_range(trades, now=now, timezone_name=self._timezone_name, close_hour=self._close_hour)

    def compare(
            self,
            trades: Sequence[Trade],
            cash_flows: Sequence[CashFlow] = (),
            now: datetime | None = None,
    ) -> ComparisonResult:
        """
        Fetch market data and run the full comparison.

        Args:
            trades: Executed trades (price optional)
            cash_flows: Deposits and income events
            now: Current instant for the market clock (defaults to real time)

        Returns:
            ComparisonResult; empty when there are no trades
        """
        if not trades:
            logger.info("Comparison requested with no trades")
            return ComparisonResult()

        tickers = list(dict.fromkeys(trade.ticker for trade in trades))
        date_range = self.date_range(trades, now=now)

        with log_duration(logger, "fetch stocks"):
            batch = self._market_data.fetch_multiple_stocks(
                tickers + [self._benchmark],
                date_range.start_date,
                date_range.end_date,
            )

        index_data = batch.data.get(self._benchmark)
        index_prices = list(index_data.prices) if index_data else []

        prices_by_ticker: dict[str, list[StockPrice]] = {}
        splits_by_ticker: dict[str, list[StockSplit]] = {}
        for ticker in tickers:
            data = batch.data.get(ticker)
            prices_by_ticker[ticker] = list(data.prices) if data else []
            splits_by_ticker[ticker] = merge_with_historical_splits(ticker, data.splits if data else ())

        result = self.calculate(trades, prices_by_ticker, index_prices, cash_flows, splits_by_ticker)
        result.date_range = date_range
        result.failed_tickers = sorted(batch.failed)

        logger.info(
            f"Comparison complete: {len(trades)} trades, {len(tickers)} tickers vs {self._benchmark}, "
            f"{len(result.time_series)} points, {len(result.failed_tickers)} failed tickers"
        )
        return result

    def calculate(
            self,
            trades: Sequence[Trade],
            prices_by_ticker: Mapping[str, Sequence[StockPrice]],
            index_prices: Sequence[StockPrice],
            cash_flows: Sequence[CashFlow] = (),
            splits_by_ticker: Mapping[str, Sequence[StockSplit]] | None = None,
    ) -> ComparisonResult:
        """
        Run the engines over caller-supplied series (no market data access).

        Args:
            trades: Executed trades (price optional)
            prices_by_ticker: Price series per ticker
            index_prices: Benchmark price series
            cash_flows: Deposits and income events
            splits_by_ticker: Splits per ticker

        Returns:
            ComparisonResult without date range or failed tickers
        """
        filled = fill_missing_prices(trades, prices_by_ticker)

        with log_duration(logger, "time series"):
            time_series = calculate_portfolio_time_series(
                filled, prices_by_ticker, index_prices, cash_flows, splits_by_ticker,
            )
        with log_duration(logger, "breakdown"):
            breakdown = calculate_stock_breakdown(filled, prices_by_ticker, index_prices)
        summary = calculate_summary(breakdown, cash_flows, filled)

        return ComparisonResult(
            time_series=time_series,
            breakdown=breakdown,
            summary=summary,
            trades=filled,
        )
