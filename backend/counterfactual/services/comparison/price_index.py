# backend/counterfactual/services/comparison/price_index.py
"""
Date-keyed price lookups over one ticker's price history.

Lookup policy ("on or before"):
    - Return the price of the latest entry dated <= target
    - If the target precedes every entry, clamp to the FIRST entry's price
    - Return None only when the series is empty

"Latest" policy:
    - latest_price() returns the last entry's price
    - An empty series yields ZERO for compatibility with callers that expect
      a number; use has_data (or latest()) to tell "no data" from a
      legitimately zero-priced instrument

Lookups are O(log n) binary searches over a sorted copy of the input; the
caller's sequence is never reordered or retained.
"""

from __future__ import annotations

from bisect import bisect_right
from collections.abc import Iterable, Iterator
from decimal import Decimal

from counterfactual.services.comparison.types import StockPrice
from counterfactual.services.constants import ZERO


class PriceIndex:
    """
    Immutable, ascending view over a ticker's StockPrice series.

    Example:
        index = PriceIndex(prices)
        index.price_on_or_before("2024-01-06")  # Friday's close on a Saturday
        index.latest_price()                    # most recent close
    """

    __slots__ = ("_prices", "_dates")

    def __init__(self, prices: Iterable[StockPrice]) -> None:
        self._prices: tuple[StockPrice, ...] = tuple(sorted(prices, key=lambda p: p.date))
        self._dates: list[str] = [p.date for p in self._prices]

    def __len__(self) -> int:
        return len(self._prices)

    def __iter__(self) -> Iterator[StockPrice]:
        return iter(self._prices)

    @property
    def has_data(self) -> bool:
        return bool(self._prices)

    @property
    def first_date(self) -> str | None:
        return self._dates[0] if self._dates else None

    @property
    def last_date(self) -> str | None:
        return self._dates[-1] if self._dates else None

    def find(self, target_date: str) -> StockPrice | None:
        """
        Find the entry governing target_date.

        Returns:
            Latest entry dated <= target_date, the first entry if target_date
            precedes all data, or None for an empty series.
        """
        if not self._prices:
            return None
        position = bisect_right(self._dates, target_date)
        if position == 0:
            return self._prices[0]
        return self._prices[position - 1]

    def get(self, exact_date: str) -> StockPrice | None:
        """Return the entry dated exactly exact_date, or None."""
        position = bisect_right(self._dates, exact_date)
        if position and self._dates[position - 1] == exact_date:
            return self._prices[position - 1]
        return None

    def price_on_or_before(self, target_date: str) -> Decimal | None:
        """Closing price on or before target_date (clamped to first)."""
        entry = self.find(target_date)
        return entry.price if entry is not None else None

    def high_on_or_before(self, target_date: str) -> Decimal | None:
        """Intraday high on or before target_date, falling back to the close."""
        entry = self.find(target_date)
        if entry is None:
            return None
        return entry.high if entry.high is not None else entry.price

    def latest(self) -> StockPrice | None:
        """Most recent entry, or None for an empty series."""
        return self._prices[-1] if self._prices else None

    def latest_price(self) -> Decimal:
        """Most recent closing price; ZERO for an empty series."""
        entry = self.latest()
        return entry.price if entry is not None else ZERO


# =============================================================================
# FUNCTIONAL SHORTCUTS
# =============================================================================
# One-shot helpers for callers holding a plain list. Each builds a PriceIndex,
# so prefer the class when issuing many lookups against the same series.

def get_price_on_or_before(prices: Iterable[StockPrice], target_date: str) -> Decimal | None:
    """Closing price on or before target_date, clamped to the first entry."""
    return PriceIndex(prices).price_on_or_before(target_date)


def get_high_price_on_or_before(prices: Iterable[StockPrice], target_date: str) -> Decimal | None:
    """Day high on or before target_date (close if no high), clamped to the first entry."""
    return PriceIndex(prices).high_on_or_before(target_date)


def get_latest_price(prices: Iterable[StockPrice]) -> Decimal:
    """Last closing price, or ZERO for an empty series."""
    return PriceIndex(prices).latest_price()
