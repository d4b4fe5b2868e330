# backend/counterfactual/services/market_data/split_overrides.py
"""
Manual split history for tickers whose provider data is incomplete.

Delisted securities in particular often come back from Yahoo with prices
that are already split-adjusted but with no split events attached, which
breaks the time series un-adjustment. Entries here fill that gap.

split_factor follows the provider convention:
    - Forward split 4:1 -> 4
    - Reverse split 1:10 -> 0.1

Example: a 1:10 reverse split means 10 old shares became 1 new share, so
adjusted prices before the split are 10x the traded price; multiplying by
0.1 recovers it.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from counterfactual.services.comparison.types import StockSplit

logger = logging.getLogger(__name__)


# Ticker -> [(date, split_factor), ...]
HISTORICAL_SPLITS: dict[str, list[tuple[str, Decimal]]] = {
    # VelocityShares Daily 2x VIX Short Term ETN, delisted July 2020
    "TVIX": [
        ("2012-08-22", Decimal("0.04")),  # 1:25
        ("2016-08-09", Decimal("0.1")),
        ("2017-08-24", Decimal("0.1")),
        ("2018-12-11", Decimal("0.1")),
        ("2019-05-01", Decimal("0.1")),
        ("2020-05-19", Decimal("0.1")),
    ],
}


def get_historical_splits(ticker: str) -> list[StockSplit]:
    """
    Manual splits for a ticker.

    Args:
        ticker: Trading symbol, any case

    Returns:
        StockSplit list (empty if the ticker has no overrides)
    """
    symbol = ticker.upper()
    return [
        StockSplit(date=split_date, ticker=symbol, split_factor=factor)
        for split_date, factor in HISTORICAL_SPLITS.get(symbol, [])
    ]


def merge_with_historical_splits(ticker: str, api_splits: Iterable[StockSplit]) -> list[StockSplit]:
    """
    Merge provider splits with the manual table.

    A manual entry replaces any provider split on the same date.

    Args:
        ticker: Trading symbol
        api_splits: Splits reported by the provider

    Returns:
        Provider splits unchanged when there are no overrides, otherwise the
        merged list sorted by date
    """
    api_splits = list(api_splits)
    manual_splits = get_historical_splits(ticker)
    if not manual_splits:
        return api_splits

    manual_dates = {split.date for split in manual_splits}
    kept = [split for split in api_splits if split.date not in manual_dates]

    logger.debug(
        f"Merged {len(manual_splits)} manual splits for {ticker} "
        f"({len(api_splits) - len(kept)} provider splits replaced)"
    )
    return sorted(kept + manual_splits, key=lambda split: split.date)
