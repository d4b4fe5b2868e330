# backend/tests/schemas/test_comparison_schemas.py
"""
Tests for comparison request schemas and shared validators.

This module tests:
- Ticker validation and normalization (uppercase, FB -> META)
- Date range validation for market data requests
- Conversion of request bodies into domain records
- Response schemas reading the domain dataclasses
"""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from counterfactual.schemas.comparison import (
    CalculateRequest,
    ComparisonRequest,
    ComparisonResponse,
    TradeInput,
)
from counterfactual.schemas.validators import validate_date_range, validate_ticker
from counterfactual.services.comparison import (
    CashFlowType,
    ComparisonResult,
    DateRange,
    TradeType,
)


# =============================================================================
# VALIDATORS
# =============================================================================

class TestValidateTicker:

    @pytest.mark.parametrize("raw,expected", [
        ("aapl", "AAPL"),
        ("  nvda ", "NVDA"),
        ("brk.b", "BRK.B"),
        ("BRK-B", "BRK-B"),
        ("^gspc", "^GSPC"),
        ("fb", "META"),
    ])
    def test_valid(self, raw, expected):
        assert validate_ticker(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "A" * 21, "AA PL", "$AAPL", ".AAPL"])
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            validate_ticker(raw)


class TestValidateDateRange:

    def test_valid(self):
        assert validate_date_range(date(2024, 1, 2), date(2024, 1, 3)) == (date(2024, 1, 2), date(2024, 1, 3))

    def test_empty_range(self):
        with pytest.raises(ValueError, match="before end date"):
            validate_date_range(date(2024, 1, 3), date(2024, 1, 3))

    def test_too_early(self):
        with pytest.raises(ValueError):
            validate_date_range(date(1960, 1, 1), date(2024, 1, 3))


# =============================================================================
# REQUESTS
# =============================================================================

class TestTradeInput:

    def test_to_trade_generates_id(self):
        trade = TradeInput(ticker="aapl", date="2024-01-02", shares="10").to_trade(3)

        assert trade.id == "AAPL-2024-01-02-3"
        assert trade.ticker == "AAPL"
        assert trade.date == "2024-01-02"
        assert trade.shares == Decimal("10")
        assert trade.type == TradeType.BUY
        assert trade.price is None

    def test_client_id_kept(self):
        trade = TradeInput(id="t-1", ticker="AAPL", date="2024-01-02", shares="1").to_trade(1)
        assert trade.id == "t-1"

    @pytest.mark.parametrize("field,value", [("shares", "0"), ("price", "-1")])
    def test_rejects_out_of_range(self, field, value):
        data = {"ticker": "AAPL", "date": "2024-01-02", "shares": "1", field: value}
        with pytest.raises(ValidationError):
            TradeInput(**data)


class TestComparisonRequest:

    def test_to_domain_numbers_positions(self):
        body = ComparisonRequest(
            trades=[
                {"ticker": "AAPL", "date": "2024-01-02", "shares": "1"},
                {"ticker": "MSFT", "date": "2024-01-03", "shares": "2", "type": "sell", "price": "300"},
            ],
            cash_flows=[{"date": "2024-01-02", "amount": "1000", "type": "dividend", "ticker": " "}],
        )

        trades, cash_flows = body.to_domain()

        assert [t.id for t in trades] == ["AAPL-2024-01-02-1", "MSFT-2024-01-03-2"]
        assert trades[1].type == TradeType.SELL
        assert cash_flows[0].id == "cashflow-2024-01-02-1"
        assert cash_flows[0].type == CashFlowType.DIVIDEND
        assert cash_flows[0].ticker is None


class TestCalculateRequest:

    def test_series_keys_normalized(self):
        body = CalculateRequest(
            prices={"aapl": [{"date": "2024-01-02", "price": "130", "high": "131"}]},
            splits={"fb": [{"date": "2022-06-06", "split_factor": "20"}]},
        )

        prices = body.prices_by_ticker()
        splits = body.splits_by_ticker()

        assert list(prices) == ["AAPL"]
        assert prices["AAPL"][0].date == "2024-01-02"
        assert prices["AAPL"][0].high == Decimal("131")
        assert splits["META"][0].ticker == "META"
        assert splits["META"][0].split_factor == Decimal("20")

    def test_invalid_series_key(self):
        with pytest.raises(ValidationError):
            CalculateRequest(prices={"not valid": []})


# =============================================================================
# RESPONSES
# =============================================================================

class TestComparisonResponse:

    def test_reads_domain_result(self):
        result = ComparisonResult(date_range=DateRange(start_date="2024-01-02", end_date="2024-06-01"))

        response = ComparisonResponse.model_validate(result)

        assert response.time_series == []
        assert response.summary.total_cost_basis == Decimal("0")
        assert response.summary.best_performer is None
        assert response.date_range.end_date == "2024-06-01"
        assert response.failed_tickers == []
