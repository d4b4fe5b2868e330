# backend/counterfactual/services/market_data/__init__.py
"""
Market data providers, caching and manual split overrides.

Usage:
    from counterfactual.services.market_data import (
        MarketDataService,
        PriceCache,
        YahooFinanceProvider,
    )

    service = MarketDataService(YahooFinanceProvider(), PriceCache())
    data = service.fetch_stock_data("AAPL", "2024-01-02", "2024-06-01")
"""

from counterfactual.services.market_data.base import BatchStockResult, MarketDataProvider
from counterfactual.services.market_data.cache import PriceCache
from counterfactual.services.market_data.service import MarketDataService
from counterfactual.services.market_data.split_overrides import (
    HISTORICAL_SPLITS,
    get_historical_splits,
    merge_with_historical_splits,
)
from counterfactual.services.market_data.yahoo import YahooFinanceProvider

__all__ = [
    "BatchStockResult",
    "HISTORICAL_SPLITS",
    "MarketDataProvider",
    "MarketDataService",
    "PriceCache",
    "YahooFinanceProvider",
    "get_historical_splits",
    "merge_with_historical_splits",
]
