# backend/counterfactual/services/market_data/cache.py
"""
In-memory cache of fetched ticker series.

Entries are keyed by ticker and the exact requested range, so a request for
a different window is a miss. The cache is owned by MarketDataService and
lives as long as the caller keeps it; clear() drops everything.
"""

import logging
import threading
from collections import OrderedDict

from counterfactual.services.comparison.types import StockData
from counterfactual.services.constants import PRICE_CACHE_MAX_ENTRIES

logger = logging.getLogger(__name__)


class PriceCache:
    """
    Thread-safe bounded LRU cache of StockData.

    Evicts least-recently-used entries when capacity is reached.
    Uses OrderedDict for O(1) access and eviction.
    """

    def __init__(self, max_entries: int = PRICE_CACHE_MAX_ENTRIES) -> None:
        """
        Initialize the cache.

        Args:
            max_entries: Maximum number of ticker/range entries to store
        """
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self._max_entries = max_entries
        self._entries: OrderedDict[str, StockData] = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def key(ticker: str, start_date: str, end_date: str) -> str:
        """Cache key for a ticker and requested range."""
        return f"{ticker}-{start_date}-{end_date}"

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def get(self, ticker: str, start_date: str, end_date: str) -> StockData | None:
        """Get an entry, marking it most recently used."""
        cache_key = self.key(ticker, start_date, end_date)
        with self._lock:
            if cache_key in self._entries:
                self._entries.move_to_end(cache_key)
                return self._entries[cache_key]
            return None

    def set(self, data: StockData, start_date: str, end_date: str) -> None:
        """Store an entry, evicting the oldest if at capacity."""
        cache_key = self.key(data.ticker, start_date, end_date)
        with self._lock:
            if cache_key in self._entries:
                self._entries.move_to_end(cache_key)
            elif len(self._entries) >= self._max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Price cache full, evicted {evicted}")
            self._entries[cache_key] = data

    def clear(self) -> None:
        """Clear all entries from the cache."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, cache_key: object) -> bool:
        with self._lock:
            return cache_key in self._entries
