# backend/counterfactual/services/market_data/yahoo.py
"""
Yahoo Finance market data provider implementation.

Uses the yfinance library to fetch daily prices and split events.

Price convention (per row of Ticker.history(auto_adjust=False, actions=True)):
    price = Adj Close rounded to cents, falling back to Close
    high  = High rounded to cents (None if missing)
    Rows whose price is missing or not positive are dropped.

Splits come from the "Stock Splits" action column: every non-zero value is
one split event with that factor (2.0 for 2-for-1, 0.1 for 1-for-10).

Limitations:
- Rate limits exist but are not documented
- Delisted tickers often lack split history (see split_overrides.py)
"""

import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import yfinance as yf

from counterfactual.services.comparison.types import StockData, StockPrice, StockSplit
from counterfactual.services.constants import CURRENCY_PRECISION, DEFAULT_FETCH_MAX_WORKERS
from counterfactual.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
    TickerNotFoundError,
)
from counterfactual.services.market_data.base import MarketDataProvider

logger = logging.getLogger(__name__)


class YahooFinanceProvider(MarketDataProvider):
    """
    Yahoo Finance implementation of MarketDataProvider.

    Configuration:
        timeout: API request timeout in seconds (default: 10)
        max_workers: Threads used by get_multiple_stocks (default: 8)
    """

    def __init__(self, timeout: int = 10, max_workers: int = DEFAULT_FETCH_MAX_WORKERS) -> None:
        super().__init__(max_workers=max_workers)
        self._timeout = timeout
        logger.info(f"YahooFinanceProvider initialized (timeout={timeout}s, max_workers={max_workers})")

    @property
    def name(self) -> str:
        return "yahoo"

    def get_stock_data(self, ticker: str, start_date: str, end_date: str) -> StockData:
        """
        Fetch daily prices and splits from Yahoo Finance.

        Raises:
            TickerNotFoundError: If Yahoo does not know the ticker
            ProviderUnavailableError: If Yahoo Finance is unavailable
            RateLimitError: If Yahoo throttles the request
        """
        return self._execute_with_retry(self._fetch_stock_data, ticker, start_date, end_date)

    def _fetch_stock_data(self, ticker: str, start_date: str, end_date: str) -> StockData:
        """Internal method to fetch one ticker."""
        ticker = ticker.strip().upper()
        logger.debug(f"Fetching {ticker}: {start_date} to {end_date}")

        try:
            yf_ticker = yf.Ticker(ticker)
            df = yf_ticker.history(
                start=start_date,
                end=end_date,
                interval="1d",
                auto_adjust=False,
                actions=True,
                timeout=self._timeout,
            )

            if df.empty:
                if not self._is_valid_ticker_info(yf_ticker.info):
                    raise TickerNotFoundError(ticker=ticker, provider=self.name)
                logger.warning(f"No price data for {ticker} between {start_date} and {end_date}")
                return StockData(ticker=ticker)

            prices = self._dataframe_to_prices(df)
            splits = self._dataframe_to_splits(df, ticker)
            logger.debug(f"Fetched {len(prices)} days and {len(splits)} splits for {ticker}")
            return StockData(ticker=ticker, prices=tuple(prices), splits=tuple(splits))

        except TickerNotFoundError:
            raise
        except Exception as e:
            error_str = str(e).lower()

            if "not found" in error_str or "delisted" in error_str:
                raise TickerNotFoundError(ticker=ticker, provider=self.name)

            if "rate limit" in error_str or "too many requests" in error_str:
                raise RateLimitError(provider=self.name)

            logger.error(f"Yahoo Finance error for {ticker}: {e}")
            raise ProviderUnavailableError(provider=self.name, reason=str(e))

    # =========================================================================
    # DATAFRAME CONVERSION
    # =========================================================================

    def _dataframe_to_prices(self, df) -> list[StockPrice]:
        """
        Convert a yfinance history DataFrame into StockPrice entries.

        Args:
            df: DataFrame with Close, High and (usually) Adj Close columns

        Returns:
            StockPrice list in index order, skipping unusable rows
        """
        prices = []

        for idx, row in df.iterrows():
            price_date = idx.date().isoformat() if hasattr(idx, "date") else str(idx)[:10]

            price = self._to_cents(row.get("Adj Close"))
            if price is None:
                price = self._to_cents(row.get("Close"))

            if price is None or price <= 0:
                logger.debug(f"Skipping {price_date}: no usable price")
                continue

            prices.append(StockPrice(date=price_date, price=price, high=self._to_cents(row.get("High"))))

        return prices

    def _dataframe_to_splits(self, df, ticker: str) -> list[StockSplit]:
        """Extract split events from the "Stock Splits" action column."""
        if "Stock Splits" not in df.columns:
            return []

        splits = []
        for idx, factor in df["Stock Splits"].items():
            factor_value = self._to_decimal(factor)
            if factor_value is None or factor_value == 0:
                continue
            split_date = idx.date().isoformat() if hasattr(idx, "date") else str(idx)[:10]
            splits.append(StockSplit(date=split_date, ticker=ticker, split_factor=factor_value))

        return splits

    @staticmethod
    def _to_decimal(value: Any) -> Decimal | None:
        """Convert a value to Decimal, returning None for NaN/None."""
        if value is None:
            return None
        try:
            if math.isnan(float(value)):
                return None
            return Decimal(str(value))
        except (TypeError, ValueError):
            return None

    @classmethod
    def _to_cents(cls, value: Any) -> Decimal | None:
        """Convert a value to Decimal rounded to cents, returning None for NaN/None."""
        decimal_value = cls._to_decimal(value)
        if decimal_value is None:
            return None
        return decimal_value.quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def _is_valid_ticker_info(info: dict | None) -> bool:
        """
        Check if a Yahoo Finance info dict represents a real ticker.

        Yahoo returns an info dict even for invalid tickers, but it lacks
        meaningful data. We check for a price or a name.
        """
        if not info:
            return False
        return bool(
            info.get("regularMarketPrice")
            or info.get("shortName")
            or info.get("longName")
        )
