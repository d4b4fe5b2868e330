# backend/counterfactual/services/comparison/types.py
"""
Internal data types for the comparison engines.

These dataclasses are the inputs and outputs of the calculation core.
They are NOT Pydantic schemas - those are defined in
counterfactual/schemas/comparison.py for API serialization.

Design Principles:
- Immutable value objects (frozen=True); engines never mutate their inputs
- Use Decimal for ALL financial values (never float)
- Dates are ISO "YYYY-MM-DD" strings; ordering is plain string ordering,
  which is chronological for that format and immune to time zone skew
- An absent trade price is None, never an implicit zero

Type Hierarchy:
    Trade               - One executed buy/sell
    CashFlow            - Deposit, dividend, capital gain or interest
    StockPrice          - One day's close (and optional high) for a ticker
    StockSplit          - One split event for a ticker
    PortfolioDataPoint  - One day of the reconstructed time series
    StockBreakdownData  - Current standing of one ticker
    PerformerRef        - Ticker + difference, used by the summary
    SummaryData         - Portfolio-wide rollup
    DateRange           - Start/end dates requested from market data
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from counterfactual.services.constants import CURRENCY_PRECISION, SHARE_PRECISION, ZERO


# =============================================================================
# ENUMS
# =============================================================================

class TradeType(str, Enum):
    """Direction of a trade."""

    BUY = "buy"
    SELL = "sell"


class CashFlowType(str, Enum):
    """
    Kind of cash movement.

    Every type counts toward cash-flow cost basis; only DEPOSIT buys
    counterfactual index shares.
    """

    DEPOSIT = "deposit"
    DIVIDEND = "dividend"
    CAPGAIN = "capgain"
    INTEREST = "interest"


class CsvFormat(str, Enum):
    """Brokerage export dialect a file was parsed as."""

    ROBINHOOD = "robinhood"
    FIDELITY = "fidelity"
    SCHWAB = "schwab"
    SIMPLE = "simple"


# =============================================================================
# ROUNDING
# =============================================================================

def round_money(value: Decimal) -> Decimal:
    """Round a monetary or percentage value to 2 places, half away from zero."""
    return value.quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)


def round_shares(value: Decimal) -> Decimal:
    """Round a share count to 6 places, half away from zero."""
    return value.quantize(SHARE_PRECISION, rounding=ROUND_HALF_UP)


# =============================================================================
# INPUTS
# =============================================================================

@dataclass(frozen=True)
class Trade:
    """
    A single executed transaction.

    Attributes:
        id: Stable identifier (e.g. "AAPL-2023-01-15-1")
        ticker: Uppercase trading symbol
        date: ISO trade date
        shares: Actual (not split-adjusted) share count, always positive
        type: BUY or SELL
        price: Per-share price, or None when unknown (resolved externally)
    """

    id: str
    ticker: str
    date: str
    shares: Decimal
    type: TradeType = TradeType.BUY
    price: Decimal | None = None

    def __post_init__(self) -> None:
        """Validate share count and price."""
        if self.shares <= ZERO:
            raise ValueError(f"shares must be positive, got {self.shares}")
        if self.price is not None and self.price < ZERO:
            raise ValueError(f"price cannot be negative, got {self.price}")

    @property
    def is_sell(self) -> bool:
        return self.type == TradeType.SELL

    @property
    def amount(self) -> Decimal:
        """Cash value of the trade; an unknown price counts as zero."""
        return self.shares * (self.price if self.price is not None else ZERO)

    def with_price(self, price: Decimal) -> Trade:
        """Return a copy of this trade with its price filled in."""
        return replace(self, price=price)


@dataclass(frozen=True)
class CashFlow:
    """
    A dated cash movement that is not a trade fill.

    Attributes:
        id: Stable identifier (e.g. "cashflow-2023-01-15-3")
        date: ISO date
        amount: Non-negative amount; the type conveys its meaning
        type: DEPOSIT, DIVIDEND, CAPGAIN or INTEREST
        ticker: Paying ticker for dividends (optional)
    """

    id: str
    date: str
    amount: Decimal
    type: CashFlowType = CashFlowType.DEPOSIT
    ticker: str | None = None

    @property
    def is_deposit(self) -> bool:
        return self.type == CashFlowType.DEPOSIT


@dataclass(frozen=True)
class StockPrice:
    """
    One ticker's observation for one calendar day.

    Attributes:
        date: ISO date
        price: Closing price (possibly split-adjusted by the provider)
        high: Intraday high (optional)
    """

    date: str
    price: Decimal
    high: Decimal | None = None


@dataclass(frozen=True)
class StockSplit:
    """
    A corporate split event.

    Attributes:
        date: ISO date the split took effect
        ticker: Symbol the split applies to
        split_factor: New shares per old share (2 for 2-for-1, 0.1 for 1-for-10)
    """

    date: str
    ticker: str
    split_factor: Decimal


@dataclass(frozen=True)
class StockData:
    """Price and split history for one ticker, as returned by market data."""

    ticker: str
    prices: tuple[StockPrice, ...] = ()
    splits: tuple[StockSplit, ...] = ()

    @property
    def has_data(self) -> bool:
        return len(self.prices) > 0


@dataclass(frozen=True)
class PortfolioData:
    """Trades and cash flows parsed from one brokerage export."""

    trades: tuple[Trade, ...]
    cash_flows: tuple[CashFlow, ...]
    format: CsvFormat


# =============================================================================
# OUTPUTS
# =============================================================================

@dataclass(frozen=True)
class PortfolioDataPoint:
    """
    One calendar day of the reconstructed comparison.

    All values are rounded to 2 places at emission.

    Attributes:
        date: ISO date (a day the index has a price for)
        portfolio_value: Sum of held shares x true price
        counterfactual_value: Index shares x index price
        cost_basis: Cumulative cash flows, or net trade cost
        portfolio_return: Percent return of the actual portfolio
        counterfactual_return: Percent return of the index alternative
    """

    date: str
    portfolio_value: Decimal
    counterfactual_value: Decimal
    cost_basis: Decimal
    portfolio_return: Decimal
    counterfactual_return: Decimal


@dataclass(frozen=True)
class StockBreakdownData:
    """
    Current standing of one ticker against the index alternative.

    Attributes:
        ticker: Trading symbol
        shares: Net shares held (6 places)
        buy_date: Earliest buy date
        buy_price: Average cost per share (net cost floored at zero / shares)
        current_price: Latest provider price, unrounded
        current_value: shares x current_price
        index_shares: Index shares the same cash would have bought
        index_current_value: index_shares x latest index price
        gain: current_value - net investment
        index_gain: index_current_value - net investment
        difference: gain - index_gain (ranking key)
    """

    ticker: str
    shares: Decimal
    buy_date: str
    buy_price: Decimal
    current_price: Decimal
    current_value: Decimal
    index_shares: Decimal
    index_current_value: Decimal
    gain: Decimal
    index_gain: Decimal
    difference: Decimal


@dataclass(frozen=True)
class PerformerRef:
    """Reference to the best or worst performing ticker."""

    ticker: str
    difference: Decimal


@dataclass(frozen=True)
class SummaryData:
    """
    Portfolio-wide rollup of the breakdown.

    Attributes:
        total_cost_basis: Net trade cost floored at zero
        total_portfolio_value: Sum of breakdown current values
        total_counterfactual_value: Sum of breakdown index values
        portfolio_return: Percent return on total cost basis
        counterfactual_return: Percent return of the index alternative
        total_difference: Portfolio minus counterfactual value
        percentage_difference: total_difference as percent of cost basis
        best_performer: Row with the largest difference (None if empty)
        worst_performer: Row with the smallest difference (None if empty)
    """

    total_cost_basis: Decimal = ZERO
    total_portfolio_value: Decimal = ZERO
    total_counterfactual_value: Decimal = ZERO
    portfolio_return: Decimal = ZERO
    counterfactual_return: Decimal = ZERO
    total_difference: Decimal = ZERO
    percentage_difference: Decimal = ZERO
    best_performer: PerformerRef | None = None
    worst_performer: PerformerRef | None = None


@dataclass(frozen=True)
class DateRange:
    """Start and end dates (ISO) to request from market data."""

    start_date: str
    end_date: str


@dataclass
class ComparisonResult:
    """
    Everything a comparison run produces.

    Attributes:
        time_series: Day-by-day reconstruction
        breakdown: Per-ticker standing, best first
        summary: Portfolio-wide rollup
        date_range: Range fetched from market data (None if nothing ran)
        trades: Trades as used by the engines (missing prices filled)
        failed_tickers: Tickers whose fetch failed and degraded to no data
    """

    time_series: list[PortfolioDataPoint] = field(default_factory=list)
    breakdown: list[StockBreakdownData] = field(default_factory=list)
    summary: SummaryData = field(default_factory=SummaryData)
    date_range: DateRange | None = None
    trades: list[Trade] = field(default_factory=list)
    failed_tickers: list[str] = field(default_factory=list)
