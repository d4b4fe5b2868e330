# backend/counterfactual/schemas/__init__.py
"""
Pydantic schemas for API request/response validation.

This package contains all Pydantic schemas organized by domain:
- comparison: Comparison requests and results
- errors: Error response formats
- market_data: Ticker price/split lookups
- upload: CSV parsing and merging
- validators: Reusable validation functions (ticker, date range)

Usage:
    from counterfactual.schemas import ComparisonRequest, ComparisonResponse
    from counterfactual.schemas import StockDataResponse
    from counterfactual.schemas import PortfolioDataResponse, MergeResponse
"""

from counterfactual.schemas.comparison import (
    CalculateRequest,
    CashFlowInput,
    ComparisonRequest,
    ComparisonResponse,
    DateRangeResponse,
    PerformerResponse,
    PortfolioDataPointResponse,
    StockBreakdownResponse,
    StockPriceInput,
    StockSplitInput,
    SummaryResponse,
    TradeInput,
)
from counterfactual.schemas.errors import ErrorDetail, ValidationErrorDetail
from counterfactual.schemas.market_data import (
    StockDataResponse,
    StockPriceResponse,
    StockSplitResponse,
)
from counterfactual.schemas.upload import (
    CashFlowResponse,
    DuplicateResponse,
    MergeResponse,
    MergeValidationResponse,
    PortfolioDataResponse,
    TradeResponse,
)

__all__ = [
    # Comparison
    "CalculateRequest",
    "CashFlowInput",
    "ComparisonRequest",
    "ComparisonResponse",
    "DateRangeResponse",
    "PerformerResponse",
    "PortfolioDataPointResponse",
    "StockBreakdownResponse",
    "StockPriceInput",
    "StockSplitInput",
    "SummaryResponse",
    "TradeInput",
    # Errors
    "ErrorDetail",
    "ValidationErrorDetail",
    # Market data
    "StockDataResponse",
    "StockPriceResponse",
    "StockSplitResponse",
    # Upload
    "CashFlowResponse",
    "DuplicateResponse",
    "MergeResponse",
    "MergeValidationResponse",
    "PortfolioDataResponse",
    "TradeResponse",
]
