# backend/counterfactual/routers/market_data.py
"""
Market data lookup endpoints.

Exposes the same price and split data the comparison engines consume,
so clients can chart a single ticker or build a /comparison/calculate
request themselves.
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, Query, Request

from counterfactual.dependencies import get_market_data_service
from counterfactual.middleware.rate_limit import limiter
from counterfactual.schemas.market_data import StockDataResponse
from counterfactual.schemas.validators import validate_date_range, validate_ticker
from counterfactual.services.constants import RATE_LIMIT_MARKET_DATA
from counterfactual.services.exceptions import ValidationError
from counterfactual.services.market_data import MarketDataService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/market-data",
    tags=["Market Data"],
)


@router.get(
    "/stock/{ticker}",
    response_model=StockDataResponse,
    summary="Daily prices and splits for one ticker",
    responses={
        400: {"description": "Invalid ticker or date range"},
        404: {"description": "Ticker not known to the provider"},
        503: {"description": "Market data provider unavailable"},
    },
)
@limiter.limit(RATE_LIMIT_MARKET_DATA)
def get_stock_data(
        request: Request,  # Required for rate limiting
        ticker: str,
        start: date = Query(..., description="First date to include (YYYY-MM-DD)"),
        end: date = Query(..., description="End date, exclusive (YYYY-MM-DD)"),
        service: MarketDataService = Depends(get_market_data_service),
) -> StockDataResponse:
    """
    Fetch daily close/high prices and split history for a ticker.

    Prices use the provider's adjusted close when available, rounded to
    cents. Splits include manual corrections for tickers the provider
    reports incompletely.
    """
    try:
        symbol = validate_ticker(ticker)
    except ValueError as e:
        raise ValidationError(str(e), field="ticker")

    try:
        validate_date_range(start, end)
    except ValueError as e:
        raise ValidationError(str(e), field="start")

    data = service.fetch_stock_data_with_overrides(symbol, start.isoformat(), end.isoformat())
    logger.debug(f"Returning {len(data.prices)} prices and {len(data.splits)} splits for {symbol}")
    return StockDataResponse.model_validate(data)
