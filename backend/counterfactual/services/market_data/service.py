# backend/counterfactual/services/market_data/service.py
"""
Cache-backed access to a market data provider.

MarketDataService is what the comparison service and the market-data routes
talk to. It answers from the PriceCache when it can and only sends misses to
the provider. Failed tickers are never cached, so a later request retries
them.
"""

import logging

from counterfactual.services.comparison.types import StockData
from counterfactual.services.market_data.base import BatchStockResult, MarketDataProvider
from counterfactual.services.market_data.cache import PriceCache
from counterfactual.services.market_data.split_overrides import merge_with_historical_splits

logger = logging.getLogger(__name__)


class MarketDataService:
    """
    Fetches ticker series through a provider with a shared cache.

    Usage:
        service = MarketDataService(provider=YahooFinanceProvider(), cache=PriceCache())
        batch = service.fetch_multiple_stocks(["AAPL", "SPY"], "2024-01-02", "2024-06-01")
    """

    def __init__(self, provider: MarketDataProvider, cache: PriceCache | None = None) -> None:
        self._provider = provider
        self._cache = cache if cache is not None else PriceCache()

    @property
    def provider(self) -> MarketDataProvider:
        return self._provider

    @property
    def cache(self) -> PriceCache:
        return self._cache

    def fetch_stock_data(self, ticker: str, start_date: str, end_date: str) -> StockData:
        """
        Fetch one ticker, from cache when available.

        Provider errors propagate (TickerNotFoundError, ProviderUnavailableError,
        RateLimitError) so single-ticker callers can report them.
        """
        ticker = ticker.strip().upper()
        cached = self._cache.get(ticker, start_date, end_date)
        if cached is not None:
            logger.debug(f"Cache hit: {ticker} {start_date}..{end_date}")
            return cached

        logger.debug(f"Cache miss: {ticker} {start_date}..{end_date}")
        data = self._provider.get_stock_data(ticker, start_date, end_date)
        self._cache.set(data, start_date, end_date)
        return data

    def fetch_stock_data_with_overrides(self, ticker: str, start_date: str, end_date: str) -> StockData:
        """fetch_stock_data with the manual split table merged in."""
        data = self.fetch_stock_data(ticker, start_date, end_date)
        splits = merge_with_historical_splits(data.ticker, data.splits)
        return StockData(ticker=data.ticker, prices=data.prices, splits=tuple(splits))

    def fetch_multiple_stocks(self, tickers: list[str], start_date: str, end_date: str) -> BatchStockResult:
        """
        Fetch several tickers, isolating failures.

        Args:
            tickers: Symbols to fetch
            start_date: ISO start date (inclusive)
            end_date: ISO end date (exclusive)

        Returns:
            BatchStockResult with an entry for every ticker, in request order.
            Failed tickers hold an empty StockData.
        """
        unique = list(dict.fromkeys(ticker.strip().upper() for ticker in tickers))

        cached: dict[str, StockData] = {}
        misses: list[str] = []
        for ticker in unique:
            hit = self._cache.get(ticker, start_date, end_date)
            if hit is not None:
                cached[ticker] = hit
            else:
                misses.append(ticker)

        logger.debug(f"Price cache: {len(cached)} hits, {len(misses)} misses")

        fetched = self._provider.get_multiple_stocks(misses, start_date, end_date) if misses else BatchStockResult()
        for ticker, data in fetched.data.items():
            if ticker not in fetched.failed:
                self._cache.set(data, start_date, end_date)

        result = BatchStockResult(failed=dict(fetched.failed))
        for ticker in unique:
            result.data[ticker] = cached.get(ticker) or fetched.data.get(ticker, StockData(ticker=ticker))
        return result

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Price cache cleared")
