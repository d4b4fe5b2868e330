# backend/counterfactual/services/upload/parsers/fidelity.py
"""
Fidelity account history export.

Identifying columns: Run Date, Action, Symbol, Amount ($).

Mapping by Action:
    YOU BOUGHT... / REINVESTMENT...           -> buy
    YOU SOLD...                               -> sell
    Contributions                             -> deposit (+ buy if a symbol is given)
    ...ELECTRONIC FUNDS TRANSFER RECEIVED...  -> deposit
    ...TRANSFERRED FROM TO BROKERAGE...       -> deposit
    DIVIDEND RECEIVED...                      -> dividend

Money market positions (FDRXX, SPAXX) are cash equivalents and skipped.
A price of 0 means "unknown". Fidelity prepends disclaimer text, so rows
whose Run Date is not a M/D/YYYY date are ignored.
"""

import logging
from decimal import Decimal

from counterfactual.services.comparison.types import (
    CashFlow,
    CashFlowType,
    CsvFormat,
    PortfolioData,
    Trade,
    TradeType,
)
from counterfactual.services.constants import MONEY_MARKET_TICKERS, ZERO
from counterfactual.services.upload.parsers.base import CsvDialectParser
from counterfactual.services.upload.parsers.shared import (
    cell,
    column_index,
    convert_date_format,
    lower_header,
    normalize_ticker,
    parse_multiline_csv,
    parse_number,
)

logger = logging.getLogger(__name__)

_DEPOSIT_MARKERS = ("ELECTRONIC FUNDS TRANSFER RECEIVED", "TRANSFERRED FROM TO BROKERAGE")


class FidelityParser(CsvDialectParser):
    """Parser for Fidelity history CSVs."""

    required_columns = ("run date", "action", "symbol", "amount ($)")

    @property
    def format(self) -> CsvFormat:
        return CsvFormat.FIDELITY

    def parse(self, text: str) -> PortfolioData:
        rows = parse_multiline_csv(text)
        if len(rows) < 2:
            return PortfolioData(trades=(), cash_flows=(), format=self.format)

        header = lower_header(rows[0])
        date_idx = column_index(header, "run date")
        action_idx = column_index(header, "action")
        symbol_idx = column_index(header, "symbol")
        price_idx = column_index(header, "price ($)")
        quantity_idx = column_index(header, "quantity")
        amount_idx = column_index(header, "amount ($)")

        trades: list[Trade] = []
        cash_flows: list[CashFlow] = []

        for i, values in enumerate(rows[1:], start=1):
            raw_date = cell(values, date_idx).strip()
            if "/" not in raw_date:
                continue

            date = convert_date_format(raw_date)
            action = cell(values, action_idx).strip()
            action_upper = action.upper()
            symbol = normalize_ticker(cell(values, symbol_idx))

            price = parse_number(cell(values, price_idx), "$,")
            if price is not None and price == ZERO:
                price = None
            quantity = parse_number(cell(values, quantity_idx), ",")
            amount = parse_number(cell(values, amount_idx), "$,")

            if action_upper.startswith(("YOU BOUGHT", "REINVESTMENT")):
                if quantity is not None and quantity <= ZERO:
                    continue
                self._add_trade(trades, i, symbol, date, quantity, TradeType.BUY, price)

            elif action_upper.startswith("YOU SOLD"):
                self._add_trade(trades, i, symbol, date, quantity, TradeType.SELL, price)

            elif action == "Contributions":
                if amount is not None and amount > ZERO:
                    cash_flows.append(CashFlow(id=f"cashflow-{date}-{i}", date=date, amount=amount))
                # 401k target date funds come through with no symbol
                if quantity is not None and quantity > ZERO:
                    self._add_trade(trades, i, symbol, date, quantity, TradeType.BUY, price)

            elif any(marker in action_upper for marker in _DEPOSIT_MARKERS):
                if amount is not None and amount > ZERO:
                    cash_flows.append(CashFlow(id=f"cashflow-{date}-{i}", date=date, amount=amount))

            elif action_upper.startswith("DIVIDEND RECEIVED"):
                if amount is None or amount <= ZERO or symbol in MONEY_MARKET_TICKERS:
                    continue
                cash_flows.append(CashFlow(
                    id=f"cashflow-{date}-{i}",
                    date=date,
                    amount=amount,
                    type=CashFlowType.DIVIDEND,
                    ticker=symbol or None,
                ))

        return PortfolioData(trades=tuple(trades), cash_flows=tuple(cash_flows), format=self.format)

    def _add_trade(
            self,
            trades: list[Trade],
            row_number: int,
            symbol: str,
            date: str,
            quantity: Decimal | None,
            trade_type: TradeType,
            price: Decimal | None,
    ) -> None:
        """Append a trade unless the symbol is missing or a money market fund."""
        if not symbol or quantity is None or symbol in MONEY_MARKET_TICKERS:
            return
        trade = self._build(row_number, lambda: Trade(
            id=f"{symbol}-{date}-{row_number}",
            ticker=symbol,
            date=date,
            shares=abs(quantity),
            type=trade_type,
            price=price,
        ))
        if trade is not None:
            trades.append(trade)
