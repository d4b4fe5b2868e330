# backend/counterfactual/services/upload/parsers/simple.py
"""
Generic CSV fallback: ticker, date, shares[, price][, type].

Used when no brokerage dialect matches. Required columns are checked up
front; individual bad rows are skipped with a warning. A buy with a known
positive price also records a deposit of shares x price, so the
counterfactual can buy the index with the same money.

Example:
    ticker,date,shares,price,type
    AAPL,2023-01-15,10,142.50,buy
    AAPL,2023-06-01,4,180.00,sell
"""

import logging

from counterfactual.services.comparison.types import (
    CashFlow,
    CsvFormat,
    PortfolioData,
    Trade,
    TradeType,
)
from counterfactual.services.constants import ZERO
from counterfactual.services.exceptions import MissingColumnsError
from counterfactual.services.upload.parsers.base import CsvDialectParser
from counterfactual.services.upload.parsers.shared import (
    cell,
    column_index,
    convert_date_format,
    lower_header,
    normalize_ticker,
    parse_csv_line,
    parse_number,
)

logger = logging.getLogger(__name__)

SAMPLE_CSV = """ticker,date,shares,price
AAPL,2023-01-15,10,142.50
GOOGL,2023-02-20,5,94.00
MSFT,2023-03-10,8,250.00
NVDA,2023-04-05,15,
AMZN,2023-05-12,12,110.00"""


class SimpleParser(CsvDialectParser):
    """Parser for the generic ticker/date/shares layout."""

    required_columns = ("ticker", "date", "shares")

    @property
    def format(self) -> CsvFormat:
        return CsvFormat.SIMPLE

    def parse(self, text: str) -> PortfolioData:
        """
        Raises:
            MissingColumnsError: If ticker, date or shares is absent
        """
        lines = text.strip().split("\n")
        header = lower_header(parse_csv_line(lines[0]))

        missing = [name for name in self.required_columns if name not in header]
        if missing:
            raise MissingColumnsError(missing=missing)

        ticker_idx = column_index(header, "ticker")
        date_idx = column_index(header, "date")
        shares_idx = column_index(header, "shares")
        price_idx = column_index(header, "price")
        type_idx = column_index(header, "type")

        trades: list[Trade] = []
        cash_flows: list[CashFlow] = []

        for i, line in enumerate(lines[1:], start=1):
            line = line.strip()
            if not line:
                continue

            values = parse_csv_line(line)
            ticker = normalize_ticker(cell(values, ticker_idx))
            date = convert_date_format(cell(values, date_idx))
            shares = parse_number(cell(values, shares_idx))
            price = parse_number(cell(values, price_idx))
            trade_type = TradeType.SELL if cell(values, type_idx).strip().lower() == "sell" else TradeType.BUY

            if not ticker or not date or shares is None:
                logger.warning(f"Skipping invalid row {i + 1}: {line}")
                continue

            trade = self._build(i + 1, lambda: Trade(
                id=f"{ticker}-{date}-{i}",
                ticker=ticker,
                date=date,
                shares=shares,
                type=trade_type,
                price=price,
            ))
            if trade is None:
                continue
            trades.append(trade)

            if trade_type == TradeType.BUY and price is not None and price > ZERO:
                cash_flows.append(CashFlow(
                    id=f"cashflow-{date}-{i}",
                    date=date,
                    amount=shares * price,
                ))

        return PortfolioData(trades=tuple(trades), cash_flows=tuple(cash_flows), format=self.format)
