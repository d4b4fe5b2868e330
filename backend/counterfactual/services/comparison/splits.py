# backend/counterfactual/services/comparison/splits.py
"""
Split "un-adjustment" of provider prices.

Market data providers rescale every historical price for each split that has
happened since, so long-run charts stay continuous. Trade records, however,
carry the share counts that were actually traded on the day. To value those
raw share counts we undo the provider's adjustment:

    true_price(d) = adjusted_price(d) x product(split_factor for splits dated AFTER d)

A price dated on or after every split gets factor 1. Splits are per ticker;
callers only ever pass one ticker's splits.

Example (2-for-1 split on 2024-01-04):
    provider price on 2024-01-01 = 50
    true price on 2024-01-01     = 50 x 2 = 100
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from counterfactual.services.comparison.price_index import PriceIndex
from counterfactual.services.comparison.types import StockPrice, StockSplit
from counterfactual.services.constants import ONE


def split_adjustment_factor(splits: Iterable[StockSplit], price_date: str) -> Decimal:
    """
    Combined factor of every split strictly after price_date.

    Args:
        splits: One ticker's split events (any order)
        price_date: ISO date of the provider price being un-adjusted

    Returns:
        Product of split factors dated after price_date (1 if none)
    """
    factor = ONE
    for split in splits:
        if split.date > price_date:
            factor *= split.split_factor
    return factor


def sort_splits(splits: Iterable[StockSplit]) -> tuple[StockSplit, ...]:
    """Return splits ordered by date, without touching the caller's sequence."""
    return tuple(sorted(splits, key=lambda s: s.date))


class UnadjustedPriceIndex:
    """
    As-traded prices for one ticker.

    Precomputes date -> true price for every provider entry, and answers the
    same on-or-before / clamp-to-first lookups as PriceIndex over those true
    prices.

    Attributes:
        _index: Provider (adjusted) price index
        _splits: Date-sorted splits for this ticker
        _true_prices: Exact-date map of un-adjusted prices
    """

    __slots__ = ("_index", "_splits", "_true_prices")

    def __init__(self, prices: Iterable[StockPrice], splits: Iterable[StockSplit] = ()) -> None:
        self._index = PriceIndex(prices)
        self._splits = sort_splits(splits)
        self._true_prices: dict[str, Decimal] = {
            entry.date: entry.price * split_adjustment_factor(self._splits, entry.date)
            for entry in self._index
        }

    @property
    def has_data(self) -> bool:
        return self._index.has_data

    def price_on(self, exact_date: str) -> Decimal | None:
        """True price for an exact provider date, or None if the provider has no entry."""
        return self._true_prices.get(exact_date)

    def price_on_or_before(self, target_date: str) -> Decimal | None:
        """
        True price on or before target_date, clamped to the first entry.

        The split factor is derived from the date of the entry actually
        found, not from target_date.
        """
        entry = self._index.find(target_date)
        if entry is None:
            return None
        return entry.price * split_adjustment_factor(self._splits, entry.date)

    def price_as_of(self, day: str) -> Decimal | None:
        """Exact-date true price, falling back to an on-or-before lookup."""
        price = self.price_on(day)
        if price is None:
            price = self.price_on_or_before(day)
        return price
