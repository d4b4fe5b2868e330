# backend/counterfactual/routers/upload.py
"""
Brokerage export upload endpoints.

Provides endpoints for turning brokerage CSV exports into trades and cash
flows, and for combining several overlapping exports into one file.

Key features:
- Dialect auto-detection from the header row (Robinhood, Fidelity,
  Schwab, or the simple ticker/date/shares format)
- Rows that cannot be interpreted are skipped, never fatal
- Merge reports header mismatches and duplicates, and drops rows whose
  keys the client passes back
"""

import logging

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import Response

from counterfactual.dependencies import get_upload_service
from counterfactual.middleware.rate_limit import limiter
from counterfactual.schemas.upload import MergeResponse, PortfolioDataResponse
from counterfactual.services.constants import RATE_LIMIT_DEFAULT, RATE_LIMIT_UPLOAD
from counterfactual.services.upload import UploadService, generate_sample_csv

logger = logging.getLogger(__name__)

# =============================================================================
# ROUTER SETUP
# =============================================================================

router = APIRouter(
    prefix="/upload",
    tags=["Upload"],
)

SAMPLE_FILENAME = "sample_portfolio.csv"


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post(
    "/parse",
    response_model=PortfolioDataResponse,
    summary="Parse a brokerage export",
    response_description="Detected dialect, trades and cash flows",
    responses={
        400: {"description": "Empty file, missing columns or file too large"},
    },
)
@limiter.limit(RATE_LIMIT_UPLOAD)
def parse_upload(
        request: Request,  # Required for rate limiting
        file: UploadFile = File(..., description="CSV export from a brokerage"),
        upload_service: UploadService = Depends(get_upload_service),
) -> PortfolioDataResponse:
    """
    Parse a CSV export into trades and cash flows.

    **Detected dialects:**
    - Robinhood: Activity Date, Instrument, Trans Code, Quantity, Price, Amount
    - Fidelity: Run Date, Action, Symbol, Quantity, Price, Amount
    - Schwab: Stock Plan Activity / Reinvest Shares rows
    - Simple: ticker, date, shares (price and type optional)

    **Simple format example:**
    ```
    ticker,date,shares,price,type
    AAPL,2023-01-15,10,150.00,buy
    ```
    """
    content = file.file.read()
    filename = file.filename or "upload.csv"

    data = upload_service.parse_file(content, filename)
    logger.info(
        f"Parsed {filename} as {data.format.value}: "
        f"{len(data.trades)} trades, {len(data.cash_flows)} cash flows"
    )
    return PortfolioDataResponse.model_validate(data)


@router.get(
    "/sample",
    summary="Download a sample CSV",
    response_class=Response,
    responses={200: {"content": {"text/csv": {}}}},
)
@limiter.limit(RATE_LIMIT_DEFAULT)
def download_sample(request: Request) -> Response:
    """Sample file in the simple ticker/date/shares format."""
    return Response(
        content=generate_sample_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{SAMPLE_FILENAME}"'},
    )


@router.post(
    "/merge",
    response_model=MergeResponse,
    summary="Merge several exports of the same dialect",
    response_description="Merged rows, CSV text and validation report",
)
@limiter.limit(RATE_LIMIT_UPLOAD)
def merge_uploads(
        request: Request,  # Required for rate limiting
        files: list[UploadFile] = File(..., description="Exports to merge, in priority order"),
        exclude_keys: list[str] = Form(
            default=[],
            description="Duplicate keys (from a previous response) to drop"
        ),
        upload_service: UploadService = Depends(get_upload_service),
) -> MergeResponse:
    """
    Merge overlapping exports.

    Rows are taken in file order. Non-transaction rows (disclaimers,
    totals) are dropped, and a row repeating an earlier key is kept only
    once. Rows whose key is listed in exclude_keys are dropped entirely.
    Every duplicate is reported in validation.duplicates.
    """
    payload = [(f.filename or f"file{i}.csv", f.file.read()) for i, f in enumerate(files, start=1)]

    result = upload_service.merge_files(payload, set(exclude_keys))
    return MergeResponse.model_validate(result)
