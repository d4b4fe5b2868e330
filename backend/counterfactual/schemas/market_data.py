# backend/counterfactual/schemas/market_data.py
"""
Pydantic schemas for market data lookups.

Prices are the provider's daily close (Adj Close when available) and day
high, rounded to cents. Splits include the manual override table.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class StockPriceResponse(BaseModel):
    date: str
    price: Decimal
    high: Decimal | None = None

    model_config = ConfigDict(from_attributes=True)


class StockSplitResponse(BaseModel):
    date: str
    ticker: str
    split_factor: Decimal = Field(..., description="2 for 2-for-1, 0.1 for 1-for-10")

    model_config = ConfigDict(from_attributes=True)


class StockDataResponse(BaseModel):
    """Price series and split history for one ticker."""

    ticker: str
    prices: list[StockPriceResponse]
    splits: list[StockSplitResponse]

    model_config = ConfigDict(from_attributes=True)
