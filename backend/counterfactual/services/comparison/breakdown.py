# backend/counterfactual/services/comparison/breakdown.py
"""
Per-ticker breakdown: each holding against the index it could have been.

For every ticker the trades are netted into:
    - shares      buys add, sells subtract (raw, as-traded share counts)
    - cost        buys add trade cash, sells subtract it
    - index shares the same cash converted at the index price on the trade date
    - buy date    earliest BUY date (sells never move it)

Fully sold or over-sold tickers (net shares <= 0) and tickers without prices
are dropped. Survivors are valued at the provider's latest price; no split
can fall between "latest" and "now", so no un-adjustment is needed here.

Rows are sorted by difference (gain - index gain), best relative performer
first.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal

from counterfactual.services.comparison.price_index import PriceIndex
from counterfactual.services.comparison.types import (
    StockBreakdownData,
    StockPrice,
    Trade,
    round_money,
    round_shares,
)
from counterfactual.services.constants import ZERO


@dataclass
class TickerPosition:
    """
    Running aggregate of one ticker's trades.

    Attributes:
        shares: Net shares (can go negative on over-selling)
        cost: Net cash invested (buys - sells)
        index_shares: Net index shares the same cash would have bought
        first_buy_date: Earliest buy date seen (None until a buy)
    """

    shares: Decimal = ZERO
    cost: Decimal = ZERO
    index_shares: Decimal = ZERO
    first_buy_date: str | None = None

    def apply(self, trade: Trade, index_shares: Decimal) -> None:
        """Fold one trade into the position."""
        if trade.is_sell:
            self.shares -= trade.shares
            self.cost -= trade.amount
            self.index_shares -= index_shares
            return

        self.shares += trade.shares
        self.cost += trade.amount
        self.index_shares += index_shares
        if self.first_buy_date is None or trade.date < self.first_buy_date:
            self.first_buy_date = trade.date


def aggregate_positions(trades: Iterable[Trade], index: PriceIndex) -> dict[str, TickerPosition]:
    """
    Net every ticker's trades, in first-seen ticker order.

    Args:
        trades: Trades in any order
        index: Benchmark price index for converting trade cash to index shares

    Returns:
        Mapping of ticker to its aggregated position
    """
    positions: dict[str, TickerPosition] = {}
    for trade in trades:
        index_price = index.price_on_or_before(trade.date)
        index_shares = trade.amount / index_price if index_price else ZERO
        positions.setdefault(trade.ticker, TickerPosition()).apply(trade, index_shares)
    return positions


def calculate_stock_breakdown(
        trades: Sequence[Trade],
        prices_by_ticker: Mapping[str, Sequence[StockPrice]],
        index_prices: Sequence[StockPrice],
) -> list[StockBreakdownData]:
    """
    Current standing of each held ticker against the index alternative.

    Args:
        trades: Executed trades, any order
        prices_by_ticker: Provider prices per ticker
        index_prices: Benchmark index prices

    Returns:
        One row per ticker with positive net shares and price data,
        sorted by difference descending
    """
    index = PriceIndex(index_prices)
    current_index_price = index.latest_price()

    breakdown: list[StockBreakdownData] = []

    for ticker, position in aggregate_positions(trades, index).items():
        if position.shares <= ZERO:
            continue

        ticker_index = PriceIndex(prices_by_ticker.get(ticker, ()))
        if not ticker_index.has_data:
            continue

        current_price = ticker_index.latest_price()
        current_value = position.shares * current_price
        index_shares = max(ZERO, position.index_shares)
        index_current_value = index_shares * current_index_price

        net_investment = max(ZERO, position.cost)
        avg_buy_price = net_investment / position.shares
        gain = current_value - net_investment
        index_gain = index_current_value - net_investment

        breakdown.append(StockBreakdownData(
            ticker=ticker,
            shares=round_shares(position.shares),
            # Only sells would leave this unset, and those rows are dropped above
            buy_date=position.first_buy_date or "",
            buy_price=round_money(avg_buy_price),
            current_price=current_price,
            current_value=round_money(current_value),
            index_shares=round_money(index_shares),
            index_current_value=round_money(index_current_value),
            gain=round_money(gain),
            index_gain=round_money(index_gain),
            difference=round_money(gain - index_gain),
        ))

    # sorted() is stable with reverse=True, so ties keep first-seen order
    return sorted(breakdown, key=lambda row: row.difference, reverse=True)
