# backend/counterfactual/services/__init__.py
"""
Service layer for business logic.

This package contains the service layer which encapsulates business logic
separate from the API (router) layer. Services:
- Have NO knowledge of HTTP (no HTTPException, no status codes)
- Raise domain-specific exceptions
- Are easily testable via dependency injection

Usage:
    from counterfactual.services import ComparisonService, MarketDataService
    from counterfactual.services import UploadService
    from counterfactual.services import (
        IngestionError,
        MarketDataError,
        TickerNotFoundError,
    )

Architecture:
    services/
    ├── __init__.py                  # This file - main exports
    ├── exceptions.py                # Domain exceptions
    ├── constants.py                 # Business constants and limits
    ├── comparison/                  # Portfolio vs. index engine
    │   ├── service.py               # Orchestrator (market data -> engines)
    │   ├── types.py                 # Input/output dataclasses
    │   ├── price_index.py           # On-or-before price lookups
    │   ├── splits.py                # Split un-adjustment
    │   ├── time_series.py           # Daily portfolio vs. counterfactual
    │   ├── breakdown.py             # Per-ticker standing
    │   ├── summary.py               # Portfolio rollup
    │   └── date_range.py            # Market-clock date range
    ├── market_data/                 # Market data package
    │   ├── base.py                  # Abstract provider interface
    │   ├── yahoo.py                 # Yahoo Finance implementation
    │   ├── cache.py                 # Bounded LRU price cache
    │   ├── split_overrides.py       # Manual split history
    │   └── service.py               # Cache-backed fetching
    └── upload/                      # Brokerage CSV ingestion
        ├── service.py               # Upload orchestration
        ├── merger.py                # Multi-file merge
        └── parsers/                 # One parser per dialect
"""

from counterfactual.services.comparison import ComparisonService
from counterfactual.services.exceptions import (
    EmptyFileError,
    IngestionError,
    MarketDataError,
    MissingColumnsError,
    ProviderUnavailableError,
    RateLimitError,
    ServiceError,
    TickerNotFoundError,
    ValidationError,
)
from counterfactual.services.market_data import (
    MarketDataProvider,
    MarketDataService,
    PriceCache,
    YahooFinanceProvider,
)
from counterfactual.services.upload import UploadService

__all__ = [
    # ==========================================================================
    # Services
    # ==========================================================================
    "ComparisonService",
    "MarketDataService",
    "UploadService",
    # Market Data Provider
    "MarketDataProvider",
    "YahooFinanceProvider",
    "PriceCache",

    # ==========================================================================
    # Exceptions
    # ==========================================================================
    "ServiceError",
    "ValidationError",
    # Ingestion
    "IngestionError",
    "EmptyFileError",
    "MissingColumnsError",
    # Market data
    "MarketDataError",
    "ProviderUnavailableError",
    "TickerNotFoundError",
    "RateLimitError",
]
