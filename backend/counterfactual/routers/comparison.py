# backend/counterfactual/routers/comparison.py
"""
Portfolio vs. index comparison endpoints.

Answers "what if every dollar I deposited had bought the index instead?"

Endpoints:
- POST /comparison            Fetch market data and run the full comparison
- POST /comparison/calculate  Run the engines over caller-supplied series
- GET  /comparison/date-range Default market data window (no trades)

Key features:
- Missing trade prices are filled with the day high on or before the trade
- Tickers whose data cannot be fetched degrade to "no data" and are
  reported in failed_tickers instead of failing the request
- Money values are serialized as decimal strings, rounded to cents
"""

import logging

from fastapi import APIRouter, Depends, Request

from counterfactual.dependencies import get_comparison_service
from counterfactual.middleware.rate_limit import limiter
from counterfactual.schemas.comparison import (
    CalculateRequest,
    ComparisonRequest,
    ComparisonResponse,
    DateRangeResponse,
)
from counterfactual.services.comparison import ComparisonService
from counterfactual.services.constants import (
    RATE_LIMIT_CALCULATE,
    RATE_LIMIT_COMPARISON,
    RATE_LIMIT_DEFAULT,
)

logger = logging.getLogger(__name__)

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/comparison",
    tags=["Comparison"],
)


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post(
    "",
    response_model=ComparisonResponse,
    summary="Compare a portfolio against the benchmark index",
    response_description="Time series, per-stock breakdown and summary",
)
@limiter.limit(RATE_LIMIT_COMPARISON)
def compare_portfolio(
        request: Request,  # Required for rate limiting
        body: ComparisonRequest,
        service: ComparisonService = Depends(get_comparison_service),
) -> ComparisonResponse:
    """
    Compare actual holdings against a counterfactual index portfolio.

    **Counterfactual rules:**
    - With deposits: every deposit buys index shares on its date
    - Without deposits: every buy's cost buys index shares, every sell's
      proceeds sell them

    **Cost basis:** cumulative cash flows when any are supplied, otherwise
    net trade cost.

    Market data is fetched from the trade dates up to the last available
    close. An empty trade list returns an empty result.
    """
    trades, cash_flows = body.to_domain()
    logger.info(f"Comparison request: {len(trades)} trades, {len(cash_flows)} cash flows")

    result = service.compare(trades, cash_flows)
    return ComparisonResponse.model_validate(result)


@router.post(
    "/calculate",
    response_model=ComparisonResponse,
    summary="Run the comparison over supplied price series",
    response_description="Time series, per-stock breakdown and summary",
)
@limiter.limit(RATE_LIMIT_CALCULATE)
def calculate_comparison(
        request: Request,  # Required for rate limiting
        body: CalculateRequest,
        service: ComparisonService = Depends(get_comparison_service),
) -> ComparisonResponse:
    """
    Run the calculation engines without touching market data.

    The caller supplies the price series per ticker, the index series and
    optional splits. Useful for what-if scenarios and offline replays.
    The response has no date_range and no failed_tickers.
    """
    trades, cash_flows = body.to_domain()
    result = service.calculate(
        trades,
        body.prices_by_ticker(),
        body.index_series(),
        cash_flows,
        body.splits_by_ticker(),
    )
    return ComparisonResponse.model_validate(result)


@router.get(
    "/date-range",
    response_model=DateRangeResponse,
    summary="Default market data window",
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def get_default_date_range(
        request: Request,
        service: ComparisonService = Depends(get_comparison_service),
) -> DateRangeResponse:
    """
    Window used when there are no trades: one year back to the next
    market-clock end date (exclusive).
    """
    return DateRangeResponse.model_validate(service.date_range())
