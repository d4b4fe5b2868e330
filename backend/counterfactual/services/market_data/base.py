# backend/counterfactual/services/market_data/base.py
"""
Abstract interface for market data providers.

A provider supplies, per ticker and date range, the daily price series and
the split events the comparison engines consume.

The base class owns the behaviour every provider shares:
- Retry with exponential backoff for transient failures (tenacity)
- Parallel multi-ticker fetching with per-ticker failure isolation: a ticker
  that cannot be fetched becomes an empty series instead of failing the batch

Date convention:
    start_date is inclusive, end_date is exclusive (ISO strings). The market
    clock (services/comparison/date_range.py) already moves end_date past
    today once the close is published.
"""

import contextvars
import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from counterfactual.services.comparison.types import StockData
from counterfactual.services.constants import DEFAULT_FETCH_MAX_WORKERS
from counterfactual.services.exceptions import (
    ProviderUnavailableError,
    RateLimitError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class BatchStockResult:
    """
    Result of fetching several tickers.

    Every requested ticker appears in `data`; failed tickers map to an empty
    StockData and their error message is kept in `failed`.

    Attributes:
        data: Ticker -> StockData (empty for failures)
        failed: Ticker -> error message
    """

    data: dict[str, StockData] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def success_count(self) -> int:
        return len(self.data) - len(self.failed)

    @property
    def all_successful(self) -> bool:
        return not self.failed


class MarketDataProvider(ABC):
    """
    Abstract base class for market data providers.

    Retry Behavior:
        `_execute_with_retry` retries ProviderUnavailableError and
        RateLimitError with exponential backoff. Subclasses can tune:

        - MAX_RETRY_ATTEMPTS: Total attempts (default: 3)
        - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
        - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
        - RETRY_MULTIPLIER: Exponential multiplier (default: 1)

        TickerNotFoundError is permanent and never retried.
    """

    MAX_RETRY_ATTEMPTS: int = 3
    RETRY_MIN_WAIT: int = 1
    RETRY_MAX_WAIT: int = 10
    RETRY_MULTIPLIER: int = 1

    def __init__(self, max_workers: int = DEFAULT_FETCH_MAX_WORKERS) -> None:
        self._max_workers = max_workers

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this provider (e.g. "yahoo")."""

    @abstractmethod
    def get_stock_data(self, ticker: str, start_date: str, end_date: str) -> StockData:
        """
        Fetch prices and splits for one ticker.

        Args:
            ticker: Trading symbol (e.g. "AAPL")
            start_date: ISO start date (inclusive)
            end_date: ISO end date (exclusive)

        Returns:
            StockData with ascending prices and the ticker's splits

        Raises:
            TickerNotFoundError: Ticker unknown to the provider
            ProviderUnavailableError: Network or API error (retryable)
            RateLimitError: Rate limit exceeded (retryable)
        """

    def get_multiple_stocks(
            self,
            tickers: list[str],
            start_date: str,
            end_date: str,
    ) -> BatchStockResult:
        """
        Fetch several tickers in parallel, isolating failures.

        Each ticker runs in a worker thread with a copy of the caller's
        context, so log records keep the request's correlation ID.

        Args:
            tickers: Symbols to fetch (duplicates are fetched once)
            start_date: ISO start date (inclusive)
            end_date: ISO end date (exclusive)

        Returns:
            BatchStockResult with an entry for every ticker, in request order
        """
        unique = list(dict.fromkeys(tickers))
        result = BatchStockResult()
        if not unique:
            return result

        fetched: dict[str, StockData] = {}
        workers = min(self._max_workers, len(unique))

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"{self.name}-fetch") as executor:
            futures = {
                executor.submit(
                    contextvars.copy_context().run,
                    self.get_stock_data,
                    ticker,
                    start_date,
                    end_date,
                ): ticker
                for ticker in unique
            }
            for future in as_completed(futures):
                ticker = futures[future]
                try:
                    fetched[ticker] = future.result()
                except Exception as e:
                    logger.warning(f"Failed to fetch {ticker} from {self.name}, using empty series: {e}")
                    fetched[ticker] = StockData(ticker=ticker)
                    result.failed[ticker] = str(e)

        for ticker in unique:
            result.data[ticker] = fetched[ticker]

        logger.debug(
            f"Fetched {result.success_count}/{len(unique)} tickers from {self.name} "
            f"({start_date} to {end_date})"
        )
        return result

    def _execute_with_retry(
            self,
            func: Callable[..., T],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Execute a function with retry logic for transient failures.

        Args:
            func: Function to execute
            *args: Positional arguments for func
            **kwargs: Keyword arguments for func

        Returns:
            Return value of func

        Raises:
            The last exception if all retries fail
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type((ProviderUnavailableError, RateLimitError)),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        def _inner() -> T:
            return func(*args, **kwargs)

        return _inner()
