# backend/counterfactual/services/comparison/__init__.py
"""
Portfolio vs. index comparison core.

The four calculation entry points are pure functions over the dataclasses in
types.py. ComparisonService wires them to market data.
"""

from counterfactual.services.comparison.breakdown import calculate_stock_breakdown
from counterfactual.services.comparison.date_range import get_date_range, market_end_date
from counterfactual.services.comparison.price_index import (
    PriceIndex,
    get_high_price_on_or_before,
    get_latest_price,
    get_price_on_or_before,
)
from counterfactual.services.comparison.service import ComparisonService, fill_missing_prices
from counterfactual.services.comparison.splits import UnadjustedPriceIndex, split_adjustment_factor
from counterfactual.services.comparison.summary import calculate_summary
from counterfactual.services.comparison.time_series import calculate_portfolio_time_series
from counterfactual.services.comparison.types import (
    CashFlow,
    CashFlowType,
    ComparisonResult,
    CsvFormat,
    DateRange,
    PerformerRef,
    PortfolioData,
    PortfolioDataPoint,
    StockBreakdownData,
    StockData,
    StockPrice,
    StockSplit,
    SummaryData,
    Trade,
    TradeType,
)

__all__ = [
    "CashFlow",
    "CashFlowType",
    "ComparisonResult",
    "ComparisonService",
    "CsvFormat",
    "DateRange",
    "PerformerRef",
    "PortfolioData",
    "PortfolioDataPoint",
    "PriceIndex",
    "StockBreakdownData",
    "StockData",
    "StockPrice",
    "StockSplit",
    "SummaryData",
    "Trade",
    "TradeType",
    "UnadjustedPriceIndex",
    "calculate_portfolio_time_series",
    "calculate_stock_breakdown",
    "calculate_summary",
    "fill_missing_prices",
    "get_date_range",
    "get_high_price_on_or_before",
    "get_latest_price",
    "get_price_on_or_before",
    "market_end_date",
    "split_adjustment_factor",
]
