# backend/counterfactual/services/comparison/time_series.py
"""
Portfolio vs. index time series reconstruction.

Walks every day the index has a price for and emits, per day:
    - portfolio value: held shares x as-traded price, summed over tickers
    - counterfactual value: index shares "bought instead" x index price
    - cost basis and the percent return of both

Two policies are decided ONCE per run, independently of each other:

    Cost basis:
        cash-flow basis   sum of all cash-flow amounts is positive;
                          cost basis = cash flows dated <= day
        trade basis       otherwise; cost basis = net buy/sell cash, floored at 0

    Counterfactual index shares:
        deposit basis     at least one cash flow is a deposit;
                          shares = cumulative deposits converted at the index
                          price on each deposit date (flat between deposits)
        trade basis       otherwise; every buy adds and every sell removes the
                          index shares its cash value would have bought that day

Cost basis counts every cash movement (dividends, interest...), while the
counterfactual only buys the index with deposits, so the two policies can
disagree within one run.

Complexity:
    O(T log T + D log D + N x H) where T = trades, D = cash flows,
    N = index days and H = tickers held. Trades, deposits and cash flows are
    each consumed through a forward-only cursor; nothing is re-applied.

The function is pure: inputs are never mutated and identical inputs yield
identical output.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal

from counterfactual.services.comparison.price_index import PriceIndex
from counterfactual.services.comparison.splits import UnadjustedPriceIndex
from counterfactual.services.comparison.types import (
    CashFlow,
    PortfolioDataPoint,
    StockPrice,
    StockSplit,
    Trade,
    round_money,
)
from counterfactual.services.constants import HUNDRED, ZERO

logger = logging.getLogger(__name__)


def calculate_portfolio_time_series(
        trades: Sequence[Trade],
        prices_by_ticker: Mapping[str, Sequence[StockPrice]],
        index_prices: Sequence[StockPrice],
        cash_flows: Iterable[CashFlow] = (),
        splits_by_ticker: Mapping[str, Sequence[StockSplit]] | None = None,
) -> list[PortfolioDataPoint]:
    """
    Reconstruct portfolio and counterfactual value for every index day.

    Args:
        trades: Executed trades, any order
        prices_by_ticker: Provider (split-adjusted) prices per ticker
        index_prices: Benchmark index prices; their dates form the timeline
        cash_flows: Deposits, dividends, capital gains and interest
        splits_by_ticker: Split events per ticker (used to un-adjust prices)

    Returns:
        One PortfolioDataPoint per index day with a positive cost basis,
        ascending by date. Empty if there are no trades or no index prices.
    """
    if not trades or not index_prices:
        return []

    splits_by_ticker = splits_by_ticker or {}
    cash_flows = list(cash_flows)

    # Stable sort on the ISO string keeps same-day trades in input order
    sorted_trades = sorted(trades, key=lambda t: t.date)
    index = PriceIndex(index_prices)

    true_prices = {
        ticker: UnadjustedPriceIndex(prices, splits_by_ticker.get(ticker, ()))
        for ticker, prices in prices_by_ticker.items()
    }

    use_cash_flow_basis = sum((cf.amount for cf in cash_flows), ZERO) > ZERO
    sorted_cash_flows = sorted(cash_flows, key=lambda cf: cf.date)

    deposits = sorted((cf for cf in cash_flows if cf.is_deposit), key=lambda cf: cf.date)
    use_deposit_basis = len(deposits) > 0
    deposit_steps = _cumulative_deposit_index_shares(deposits, index)

    trade_index_deltas = [_trade_index_share_delta(trade, index) for trade in sorted_trades]

    logger.debug(
        f"Time series: {len(sorted_trades)} trades, {len(index)} index days, "
        f"cost basis={'cash flows' if use_cash_flow_basis else 'trades'}, "
        f"counterfactual basis={'deposits' if use_deposit_basis else 'trades'}"
    )

    data_points: list[PortfolioDataPoint] = []

    shares_per_ticker: dict[str, Decimal] = {}
    trade_cursor = 0
    trade_index_shares = ZERO
    trade_cost_basis = ZERO

    deposit_cursor = 0
    deposit_index_shares = ZERO

    cash_flow_cursor = 0
    cash_flow_total = ZERO

    for index_entry in index:
        day = index_entry.date

        # Apply every trade up to and including today
        while trade_cursor < len(sorted_trades) and sorted_trades[trade_cursor].date <= day:
            trade = sorted_trades[trade_cursor]
            held = shares_per_ticker.get(trade.ticker, ZERO)
            if trade.is_sell:
                shares_per_ticker[trade.ticker] = held - trade.shares
                trade_cost_basis -= trade.amount
            else:
                shares_per_ticker[trade.ticker] = held + trade.shares
                trade_cost_basis += trade.amount
            trade_index_shares += trade_index_deltas[trade_cursor]
            trade_cursor += 1

        portfolio_value = _portfolio_value(shares_per_ticker, true_prices, day)

        if use_deposit_basis:
            while deposit_cursor < len(deposit_steps) and deposit_steps[deposit_cursor][0] <= day:
                deposit_index_shares = deposit_steps[deposit_cursor][1]
                deposit_cursor += 1
            index_shares = deposit_index_shares
        else:
            index_shares = trade_index_shares

        counterfactual_value = max(ZERO, index_shares) * index_entry.price

        if use_cash_flow_basis:
            while (
                    cash_flow_cursor < len(sorted_cash_flows)
                    and sorted_cash_flows[cash_flow_cursor].date <= day
            ):
                cash_flow_total += sorted_cash_flows[cash_flow_cursor].amount
                cash_flow_cursor += 1
            cost_basis = cash_flow_total
        else:
            cost_basis = max(ZERO, trade_cost_basis)

        # A zero cost basis has no meaningful return; skip the day entirely
        if cost_basis <= ZERO:
            continue

        data_points.append(PortfolioDataPoint(
            date=day,
            portfolio_value=round_money(portfolio_value),
            counterfactual_value=round_money(counterfactual_value),
            cost_basis=round_money(cost_basis),
            portfolio_return=round_money(_percent_return(portfolio_value, cost_basis)),
            counterfactual_return=round_money(_percent_return(counterfactual_value, cost_basis)),
        ))

    return data_points


# =============================================================================
# HELPERS
# =============================================================================

def _cumulative_deposit_index_shares(
        deposits: Sequence[CashFlow],
        index: PriceIndex,
) -> list[tuple[str, Decimal]]:
    """
    Running index-share total after each deposit, in date order.

    Deposits whose index price is missing or zero are skipped (no shares
    can be bought), leaving the running total unchanged.
    """
    steps: list[tuple[str, Decimal]] = []
    cumulative = ZERO
    for deposit in deposits:
        index_price = index.price_on_or_before(deposit.date)
        if not index_price:
            continue
        cumulative += deposit.amount / index_price
        steps.append((deposit.date, cumulative))
    return steps


def _trade_index_share_delta(trade: Trade, index: PriceIndex) -> Decimal:
    """Index shares the trade's cash would have bought (negative for sells)."""
    index_price = index.price_on_or_before(trade.date)
    if not index_price:
        return ZERO
    index_shares = trade.amount / index_price
    return -index_shares if trade.is_sell else index_shares


def _portfolio_value(
        shares_per_ticker: Mapping[str, Decimal],
        true_prices: Mapping[str, UnadjustedPriceIndex],
        day: str,
) -> Decimal:
    """Sum of held shares x as-traded price; flat or short positions are skipped."""
    value = ZERO
    for ticker, shares in shares_per_ticker.items():
        if shares <= ZERO:
            continue
        ticker_prices = true_prices.get(ticker)
        price = ticker_prices.price_as_of(day) if ticker_prices is not None else None
        value += shares * (price if price is not None else ZERO)
    return value


def _percent_return(value: Decimal, cost_basis: Decimal) -> Decimal:
    """(value - cost) / cost x 100; the caller guarantees cost_basis > 0."""
    return (value - cost_basis) / cost_basis * HUNDRED
