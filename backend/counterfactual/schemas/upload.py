# backend/counterfactual/schemas/upload.py
"""
Pydantic schemas for CSV upload endpoints.

These schemas handle:
- Parsed portfolio responses (trades + cash flows + detected dialect)
- Multi-file merge responses with duplicate reports
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from counterfactual.services.comparison.types import CashFlowType, CsvFormat, TradeType


# =============================================================================
# PARSE RESPONSE
# =============================================================================

class TradeResponse(BaseModel):
    id: str
    ticker: str
    date: str
    shares: Decimal
    type: TradeType
    price: Decimal | None = None

    model_config = ConfigDict(from_attributes=True)


class CashFlowResponse(BaseModel):
    id: str
    date: str
    amount: Decimal
    type: CashFlowType
    ticker: str | None = None

    model_config = ConfigDict(from_attributes=True)


class PortfolioDataResponse(BaseModel):
    """Result of POST /upload/parse."""

    format: CsvFormat = Field(..., description="Detected export dialect")
    trades: list[TradeResponse]
    cash_flows: list[CashFlowResponse]

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# MERGE RESPONSE
# =============================================================================

class DuplicateResponse(BaseModel):
    """A row already seen earlier in the merge (1-based row numbers)."""

    file1: str
    row1: int
    file2: str
    row2: int
    content: str = Field(..., description="Short display form of the row")
    key: str = Field(..., description="Pass back in exclude_keys to drop this row")

    model_config = ConfigDict(from_attributes=True)


class MergeValidationResponse(BaseModel):
    errors: list[str]
    warnings: list[str]
    duplicates: list[DuplicateResponse]

    model_config = ConfigDict(from_attributes=True)


class MergeResponse(BaseModel):
    """Result of POST /upload/merge."""

    headers: list[str]
    rows: list[list[str]]
    csv: str = Field(..., description="Merged file as CSV text")
    validation: MergeValidationResponse

    model_config = ConfigDict(from_attributes=True)
