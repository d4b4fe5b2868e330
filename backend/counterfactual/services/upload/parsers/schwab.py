# backend/counterfactual/services/upload/parsers/schwab.py
"""
Schwab equity award (vest) export.

Identifying columns: Action, Symbol, Quantity.

Only "Stock Plan Activity" (RSU vests) and "Reinvest Shares" rows are used;
each becomes a buy. A vest is compensation rather than a purchase from
cash, so a deposit of quantity x price is synthesized for it when the price
is known, letting the counterfactual invest the same value in the index.
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

_VEST_ACTIONS = ("Stock Plan Activity", "Reinvest Shares")


class SchwabParser(CsvDialectParser):
    """Parser for Schwab equity award CSVs."""

    required_columns = ("action", "symbol", "quantity")

    @property
    def format(self) -> CsvFormat:
        return CsvFormat.SCHWAB

    def parse(self, text: str) -> PortfolioData:
        lines = text.strip().split("\n")
        header = lower_header(parse_csv_line(lines[0]))
        date_idx = column_index(header, "date")
        action_idx = column_index(header, "action")
        symbol_idx = column_index(header, "symbol")
        quantity_idx = column_index(header, "quantity")
        price_idx = column_index(header, "price")

        trades: list[Trade] = []
        cash_flows: list[CashFlow] = []

        for i, line in enumerate(lines[1:], start=1):
            line = line.strip()
            if not line:
                continue

            values = parse_csv_line(line)
            if cell(values, action_idx) not in _VEST_ACTIONS:
                continue

            symbol = normalize_ticker(cell(values, symbol_idx))
            raw_date = cell(values, date_idx)
            quantity = parse_number(cell(values, quantity_idx), ",")
            price = parse_number(cell(values, price_idx), "$,")

            if not symbol or not raw_date or quantity is None or quantity <= ZERO:
                continue

            date = convert_date_format(raw_date)
            trade = self._build(i, lambda: Trade(
                id=f"{symbol}-{date}-{i}",
                ticker=symbol,
                date=date,
                shares=quantity,
                type=TradeType.BUY,
                price=price,
            ))
            if trade is None:
                continue
            trades.append(trade)

            if price is not None and price > ZERO:
                cash_flows.append(CashFlow(
                    id=f"cashflow-{date}-{i}",
                    date=date,
                    amount=quantity * price,
                ))

        return PortfolioData(trades=tuple(trades), cash_flows=tuple(cash_flows), format=self.format)
