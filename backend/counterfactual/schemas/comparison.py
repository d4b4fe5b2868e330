# backend/counterfactual/schemas/comparison.py
"""
Pydantic schemas for portfolio vs. index comparison.

Request schemas validate and normalize client input, then convert into the
frozen dataclasses of services/comparison/types.py. Response schemas read
those dataclasses back (from_attributes=True).

Money values are Decimal and serialize as JSON strings ("1234.50").
Dates are ISO "YYYY-MM-DD".
"""

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from counterfactual.schemas.validators import validate_ticker
from counterfactual.services.comparison.types import (
    CashFlow,
    CashFlowType,
    StockPrice,
    StockSplit,
    Trade,
    TradeType,
)


# =============================================================================
# INPUT SCHEMAS
# =============================================================================

class TradeInput(BaseModel):
    """A trade as submitted by a client."""

    id: str | None = Field(default=None, description="Client identifier; generated when omitted")
    ticker: str = Field(..., description="Trading symbol (e.g. AAPL)")
    date: dt.date = Field(..., description="Trade date")
    shares: Decimal = Field(..., gt=0, description="Shares traded (not split-adjusted)")
    type: TradeType = Field(default=TradeType.BUY)
    price: Decimal | None = Field(
        default=None,
        ge=0,
        description="Per-share price; when omitted the day high is used"
    )

    @field_validator('ticker')
    @classmethod
    def validate_and_normalize_ticker(cls, v: str) -> str:
        """Validate and normalize ticker symbol."""
        return validate_ticker(v)

    def to_trade(self, position: int) -> Trade:
        """Convert to the domain record; position numbers generated ids."""
        iso_date = self.date.isoformat()
        return Trade(
            id=self.id or f"{self.ticker}-{iso_date}-{position}",
            ticker=self.ticker,
            date=iso_date,
            shares=self.shares,
            type=self.type,
            price=self.price,
        )


class CashFlowInput(BaseModel):
    """A deposit or income event as submitted by a client."""

    id: str | None = None
    date: dt.date
    amount: Decimal = Field(..., ge=0)
    type: CashFlowType = Field(default=CashFlowType.DEPOSIT)
    ticker: str | None = Field(default=None, description="Paying ticker, for dividends")

    @field_validator('ticker')
    @classmethod
    def normalize_ticker(cls, v: str | None) -> str | None:
        if v is None or not v.strip():
            return None
        return validate_ticker(v)

    def to_cash_flow(self, position: int) -> CashFlow:
        iso_date = self.date.isoformat()
        return CashFlow(
            id=self.id or f"cashflow-{iso_date}-{position}",
            date=iso_date,
            amount=self.amount,
            type=self.type,
            ticker=self.ticker,
        )


class StockPriceInput(BaseModel):
    """One day of a caller-supplied price series."""

    date: dt.date
    price: Decimal = Field(..., ge=0)
    high: Decimal | None = Field(default=None, ge=0)

    def to_stock_price(self) -> StockPrice:
        return StockPrice(date=self.date.isoformat(), price=self.price, high=self.high)


class StockSplitInput(BaseModel):
    """A caller-supplied split event (2 for 2-for-1, 0.1 for 1-for-10)."""

    date: dt.date
    split_factor: Decimal = Field(..., gt=0)

    def to_stock_split(self, ticker: str) -> StockSplit:
        return StockSplit(date=self.date.isoformat(), ticker=ticker, split_factor=self.split_factor)


def _to_domain(trades: list[TradeInput], cash_flows: list[CashFlowInput]) -> tuple[list[Trade], list[CashFlow]]:
    return (
        [trade.to_trade(i) for i, trade in enumerate(trades, start=1)],
        [flow.to_cash_flow(i) for i, flow in enumerate(cash_flows, start=1)],
    )


class ComparisonRequest(BaseModel):
    """Body of POST /comparison."""

    trades: list[TradeInput] = Field(default_factory=list)
    cash_flows: list[CashFlowInput] = Field(default_factory=list)

    def to_domain(self) -> tuple[list[Trade], list[CashFlow]]:
        return _to_domain(self.trades, self.cash_flows)


class CalculateRequest(BaseModel):
    """Body of POST /comparison/calculate: trades plus every series needed."""

    trades: list[TradeInput] = Field(default_factory=list)
    cash_flows: list[CashFlowInput] = Field(default_factory=list)
    prices: dict[str, list[StockPriceInput]] = Field(
        default_factory=dict,
        description="Price series per ticker"
    )
    index_prices: list[StockPriceInput] = Field(
        default_factory=list,
        description="Benchmark index price series"
    )
    splits: dict[str, list[StockSplitInput]] = Field(
        default_factory=dict,
        description="Split events per ticker"
    )

    @field_validator('prices', 'splits')
    @classmethod
    def normalize_series_keys(cls, v: dict) -> dict:
        """Uppercase ticker keys so they match normalized trades."""
        return {validate_ticker(ticker): series for ticker, series in v.items()}

    def to_domain(self) -> tuple[list[Trade], list[CashFlow]]:
        return _to_domain(self.trades, self.cash_flows)

    def prices_by_ticker(self) -> dict[str, list[StockPrice]]:
        return {ticker: [p.to_stock_price() for p in series] for ticker, series in self.prices.items()}

    def index_series(self) -> list[StockPrice]:
        return [p.to_stock_price() for p in self.index_prices]

    def splits_by_ticker(self) -> dict[str, list[StockSplit]]:
        return {
            ticker: [s.to_stock_split(ticker) for s in series]
            for ticker, series in self.splits.items()
        }


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class PortfolioDataPointResponse(BaseModel):
    """One day of the portfolio vs. counterfactual series."""

    date: str
    portfolio_value: Decimal
    counterfactual_value: Decimal
    cost_basis: Decimal
    portfolio_return: Decimal = Field(..., description="Percent return on cost basis")
    counterfactual_return: Decimal = Field(..., description="Percent return on cost basis")

    model_config = ConfigDict(from_attributes=True)


class StockBreakdownResponse(BaseModel):
    """Current standing of one held ticker against the index."""

    ticker: str
    shares: Decimal
    buy_date: str = Field(..., description="Earliest buy date")
    buy_price: Decimal = Field(..., description="Average cost per held share")
    current_price: Decimal
    current_value: Decimal
    index_shares: Decimal
    index_current_value: Decimal
    gain: Decimal
    index_gain: Decimal
    difference: Decimal = Field(..., description="gain - index_gain")

    model_config = ConfigDict(from_attributes=True)


class PerformerResponse(BaseModel):
    ticker: str
    difference: Decimal

    model_config = ConfigDict(from_attributes=True)


class SummaryResponse(BaseModel):
    """Portfolio-wide totals."""

    total_cost_basis: Decimal
    total_portfolio_value: Decimal
    total_counterfactual_value: Decimal
    portfolio_return: Decimal
    counterfactual_return: Decimal
    total_difference: Decimal
    percentage_difference: Decimal
    best_performer: PerformerResponse | None = None
    worst_performer: PerformerResponse | None = None

    model_config = ConfigDict(from_attributes=True)


class DateRangeResponse(BaseModel):
    """Requested market data window; end_date is exclusive."""

    start_date: str
    end_date: str

    model_config = ConfigDict(from_attributes=True)


class ComparisonResponse(BaseModel):
    """Full comparison result."""

    time_series: list[PortfolioDataPointResponse]
    breakdown: list[StockBreakdownResponse]
    summary: SummaryResponse
    date_range: DateRangeResponse | None = None
    failed_tickers: list[str] = Field(
        default_factory=list,
        description="Tickers whose market data could not be fetched (valued as missing)"
    )

    model_config = ConfigDict(from_attributes=True)
