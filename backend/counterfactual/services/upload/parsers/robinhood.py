# backend/counterfactual/services/upload/parsers/robinhood.py
"""
Robinhood account activity export.

Identifying columns: Activity Date, Instrument, Trans Code.

Mapping by Trans Code:
    Buy / Sell            -> trade (price optional)
    SPL                   -> buy at price 0 (split shares carry no cost)
    ACH                   -> deposit
    CDIV                  -> dividend
    SCAP / LCAP           -> capital gain
    INT                   -> interest
    anything else         -> skipped

Descriptions can contain quoted newlines, so the file is read as
multi-line CSV.
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
    cash_flow_type_for,
    cell,
    column_index,
    convert_date_format,
    lower_header,
    normalize_ticker,
    parse_multiline_csv,
    parse_number,
)

logger = logging.getLogger(__name__)

_TRADE_CODES = {"Buy": TradeType.BUY, "Sell": TradeType.SELL}


class RobinhoodParser(CsvDialectParser):
    """Parser for Robinhood activity CSVs."""

    required_columns = ("activity date", "instrument", "trans code")

    @property
    def format(self) -> CsvFormat:
        return CsvFormat.ROBINHOOD

    def parse(self, text: str) -> PortfolioData:
        rows = parse_multiline_csv(text)
        if len(rows) < 2:
            return PortfolioData(trades=(), cash_flows=(), format=self.format)

        header = lower_header(rows[0])
        date_idx = column_index(header, "activity date")
        instrument_idx = column_index(header, "instrument")
        code_idx = column_index(header, "trans code")
        quantity_idx = column_index(header, "quantity")
        price_idx = column_index(header, "price")
        amount_idx = column_index(header, "amount")

        trades: list[Trade] = []
        cash_flows: list[CashFlow] = []

        for i, values in enumerate(rows[1:], start=1):
            raw_date = cell(values, date_idx)
            if not raw_date:
                continue
            date = convert_date_format(raw_date)
            code = cell(values, code_idx)
            ticker = normalize_ticker(cell(values, instrument_idx))

            flow_type = cash_flow_type_for(code)
            if flow_type is not None:
                amount = parse_number(cell(values, amount_idx), "$(),")
                if amount is not None and amount > ZERO:
                    cash_flows.append(CashFlow(
                        id=f"cashflow-{date}-{i}",
                        date=date,
                        amount=amount,
                        type=flow_type,
                        ticker=ticker or None,
                    ))
                continue

            if code not in _TRADE_CODES and code != "SPL":
                continue
            if not ticker:
                continue

            quantity = parse_number(cell(values, quantity_idx))
            if quantity is None or quantity <= ZERO:
                continue

            if code == "SPL":
                trade = self._build(i, lambda: Trade(
                    id=f"{ticker}-{date}-{i}-split",
                    ticker=ticker,
                    date=date,
                    shares=quantity,
                    type=TradeType.BUY,
                    price=ZERO,
                ))
            else:
                price = parse_number(cell(values, price_idx), "$,")
                trade = self._build(i, lambda: Trade(
                    id=f"{ticker}-{date}-{i}",
                    ticker=ticker,
                    date=date,
                    shares=quantity,
                    type=_TRADE_CODES[code],
                    price=price,
                ))
            if trade is not None:
                trades.append(trade)

        return PortfolioData(trades=tuple(trades), cash_flows=tuple(cash_flows), format=self.format)
