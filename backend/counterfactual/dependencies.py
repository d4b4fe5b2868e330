# backend/counterfactual/dependencies.py
"""
Dependency injection module for FastAPI services.

This module provides singleton service instances that are shared across
all requests. A single MarketDataService means a single price cache, so
repeated comparisons over the same tickers and window skip Yahoo Finance
entirely.

Services are lazily initialized on first use to avoid import-time side effects.

Initialization order:
    get_price_cache ─┐
                     ├─> get_market_data_service ─> get_comparison_service
    get_market_data_provider ┘

    get_upload_service (independent)

Usage in routers:
    from counterfactual.dependencies import get_comparison_service

    @router.post("")
    def compare(service: ComparisonService = Depends(get_comparison_service)):
        ...

Tests replace these with app.dependency_overrides.
"""

import logging
from functools import lru_cache

from counterfactual.config import settings
from counterfactual.services.comparison import ComparisonService
from counterfactual.services.market_data import (
    MarketDataProvider,
    MarketDataService,
    PriceCache,
    YahooFinanceProvider,
)
from counterfactual.services.upload import UploadService

logger = logging.getLogger(__name__)


# =============================================================================
# SINGLETON SERVICES
# =============================================================================

@lru_cache(maxsize=1)
def get_price_cache() -> PriceCache:
    """Get the singleton price cache (bounded by PRICE_CACHE_MAX_ENTRIES)."""
    logger.debug(f"Initializing singleton PriceCache (max_entries={settings.price_cache_max_entries})")
    return PriceCache(max_entries=settings.price_cache_max_entries)


@lru_cache(maxsize=1)
def get_market_data_provider() -> MarketDataProvider:
    """
    Get the singleton market data provider.

    Shared so the fetch thread pool size applies globally and retries are
    consistent across requests.
    """
    logger.debug("Initializing singleton YahooFinanceProvider")
    return YahooFinanceProvider(
        timeout=settings.market_data_timeout,
        max_workers=settings.market_data_max_workers,
    )


@lru_cache(maxsize=1)
def get_market_data_service() -> MarketDataService:
    """Get the singleton MarketDataService (provider + shared cache)."""
    logger.debug("Initializing singleton MarketDataService")
    return MarketDataService(provider=get_market_data_provider(), cache=get_price_cache())


@lru_cache(maxsize=1)
def get_comparison_service() -> ComparisonService:
    """
    Get the singleton ComparisonService.

    Benchmark ticker and market clock come from settings.
    """
    logger.debug(f"Initializing singleton ComparisonService (benchmark={settings.benchmark_ticker})")
    return ComparisonService(
        market_data_service=get_market_data_service(),
        benchmark_ticker=settings.benchmark_ticker,
        timezone_name=settings.market_timezone,
        close_hour=settings.market_close_hour,
    )


@lru_cache(maxsize=1)
def get_upload_service() -> UploadService:
    """Get the singleton UploadService. It holds no state beyond its size limit."""
    return UploadService()
