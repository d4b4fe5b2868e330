# backend/counterfactual/services/upload/parsers/shared.py
"""
Helpers shared by the brokerage CSV dialect parsers.

Normalization rules applied by every dialect:
    - Tickers are uppercased and renamed (FB -> META)
    - MM/DD/YYYY dates become YYYY-MM-DD; for "MM/DD/YYYY as of MM/DD/YYYY"
      the "as of" date is used; anything else is left as-is
    - Numbers are read as Decimal after stripping currency decoration
"""

import csv
import io
import re
from decimal import Decimal, InvalidOperation

from counterfactual.services.comparison.types import CashFlowType
from counterfactual.services.constants import TICKER_RENAMES

_AS_OF_PATTERN = re.compile(r"as of (\d{1,2}/\d{1,2}/\d{4})")
_US_DATE_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

_CASH_FLOW_CODES: dict[str, CashFlowType] = {
    "ACH": CashFlowType.DEPOSIT,
    "CDIV": CashFlowType.DIVIDEND,
    "SCAP": CashFlowType.CAPGAIN,
    "LCAP": CashFlowType.CAPGAIN,
    "INT": CashFlowType.INTEREST,
}


# =============================================================================
# CSV SPLITTING
# =============================================================================

def parse_csv_line(line: str) -> list[str]:
    """Split one CSV line into trimmed fields, honouring double quotes."""
    fields = next(csv.reader([line.rstrip("\r")]), [])
    return [value.strip() for value in fields] or [""]


def parse_multiline_csv(text: str, strip: bool = True) -> list[list[str]]:
    """
    Split CSV text into rows, allowing quoted fields to span lines.

    Rows whose fields are all empty are dropped.

    Args:
        text: Full CSV text
        strip: Trim whitespace around each field

    Returns:
        List of rows, header included
    """
    rows = []
    for record in csv.reader(io.StringIO(text)):
        if strip:
            record = [value.strip() for value in record]
        if any(value != "" for value in record):
            rows.append(record)
    return rows


def lower_header(header: list[str]) -> list[str]:
    return [name.strip().lower() for name in header]


def column_index(header: list[str], name: str) -> int | None:
    """Position of a (lowercased) column name, or None if absent."""
    try:
        return header.index(name)
    except ValueError:
        return None


def cell(values: list[str], index: int | None) -> str:
    """Field at index, or "" when the column or the field is missing."""
    if index is None or index >= len(values):
        return ""
    return values[index]


# =============================================================================
# VALUE NORMALIZATION
# =============================================================================

def convert_date_format(value: str) -> str:
    """
    Convert a brokerage date to ISO.

    Examples:
        "3/5/2024"                  -> "2024-03-05"
        "03/05/2024 as of 03/01/2024" -> "2024-03-01"
        "2024-03-05"                -> "2024-03-05"
    """
    as_of = _AS_OF_PATTERN.search(value)
    candidate = as_of.group(1) if as_of else value.split(" ")[0]

    match = _US_DATE_PATTERN.match(candidate)
    if match:
        month, day, year = match.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"
    return value


def normalize_ticker(value: str) -> str:
    """Uppercase a symbol and apply known renames."""
    ticker = value.strip().upper()
    return TICKER_RENAMES.get(ticker, ticker)


def cash_flow_type_for(trans_code: str) -> CashFlowType | None:
    """Cash-flow type of a Robinhood transaction code, None for non-cash codes."""
    return _CASH_FLOW_CODES.get(trans_code)


def parse_number(value: str, strip_chars: str = "") -> Decimal | None:
    """
    Read a decimal number, ignoring the given decoration characters.

    Returns None for blanks, non-numbers, NaN and infinities.
    """
    cleaned = value
    for char in strip_chars:
        cleaned = cleaned.replace(char, "")
    cleaned = cleaned.strip()
    if not cleaned:
        return None
    try:
        number = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    return number
