# backend/counterfactual/services/comparison/summary.py
"""
Portfolio-wide summary of the per-ticker breakdown.

Total cost basis is recomputed here from the raw trades (net buy/sell cash,
floored at zero) instead of being summed from the breakdown rows. The two
figures can disagree when trades reference tickers that were dropped from
the breakdown (fully sold, or no price data); both computations are kept
deliberately.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from counterfactual.services.comparison.types import (
    CashFlow,
    PerformerRef,
    StockBreakdownData,
    SummaryData,
    Trade,
    round_money,
)
from counterfactual.services.constants import HUNDRED, ZERO


def calculate_summary(
        breakdown: Sequence[StockBreakdownData],
        cash_flows: Iterable[CashFlow] = (),
        trades: Iterable[Trade] = (),
) -> SummaryData:
    """
    Reduce breakdown rows and trades to portfolio totals.

    Args:
        breakdown: Output of calculate_stock_breakdown
        cash_flows: Accepted for call-site symmetry with the time series;
            the summary's cost basis is trade-based
        trades: Trades used for the cost basis

    Returns:
        SummaryData; all zeros with no performers for an empty breakdown
    """
    if not breakdown:
        return SummaryData()

    net_trade_cost = ZERO
    for trade in trades:
        net_trade_cost += -trade.amount if trade.is_sell else trade.amount
    total_cost_basis = max(ZERO, net_trade_cost)

    total_portfolio_value = sum((row.current_value for row in breakdown), ZERO)
    total_counterfactual_value = sum((row.index_current_value for row in breakdown), ZERO)
    total_difference = total_portfolio_value - total_counterfactual_value

    best = worst = breakdown[0]
    for row in breakdown:
        if row.difference > best.difference:
            best = row
        if row.difference < worst.difference:
            worst = row

    return SummaryData(
        total_cost_basis=round_money(total_cost_basis),
        total_portfolio_value=round_money(total_portfolio_value),
        total_counterfactual_value=round_money(total_counterfactual_value),
        portfolio_return=round_money(_percent_of(total_portfolio_value - total_cost_basis, total_cost_basis)),
        counterfactual_return=round_money(
            _percent_of(total_counterfactual_value - total_cost_basis, total_cost_basis)
        ),
        total_difference=round_money(total_difference),
        percentage_difference=round_money(_percent_of(total_difference, total_cost_basis)),
        best_performer=PerformerRef(ticker=best.ticker, difference=best.difference),
        worst_performer=PerformerRef(ticker=worst.ticker, difference=worst.difference),
    )


def _percent_of(amount: Decimal, base: Decimal) -> Decimal:
    """amount / base x 100, or ZERO when base is zero."""
    if base <= ZERO:
        return ZERO
    return amount / base * HUNDRED
