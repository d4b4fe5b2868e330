# backend/counterfactual/services/upload/parsers/__init__.py
"""
Brokerage CSV parsers package.

Supported dialects (detected from the header row, in this order):
- Robinhood   activity date, instrument, trans code
- Fidelity    run date, action, symbol, amount ($)
- Schwab      action, symbol, quantity
- Simple      ticker, date, shares (fallback)

Order matters: a Fidelity header also satisfies the Schwab check.

Usage:
    from counterfactual.services.upload.parsers import parse_csv

    data = parse_csv(text)
    print(data.format, len(data.trades), len(data.cash_flows))
"""

import logging

from counterfactual.services.comparison.types import CsvFormat, PortfolioData
from counterfactual.services.exceptions import EmptyFileError
from counterfactual.services.upload.parsers.base import CsvDialectParser
from counterfactual.services.upload.parsers.fidelity import FidelityParser
from counterfactual.services.upload.parsers.robinhood import RobinhoodParser
from counterfactual.services.upload.parsers.schwab import SchwabParser
from counterfactual.services.upload.parsers.shared import parse_csv_line
from counterfactual.services.upload.parsers.simple import SAMPLE_CSV, SimpleParser

logger = logging.getLogger(__name__)

# =============================================================================
# PARSER REGISTRY
# =============================================================================

# Detection order; the last entry is the fallback
_PARSERS: list[CsvDialectParser] = [
    RobinhoodParser(),
    FidelityParser(),
    SchwabParser(),
    SimpleParser(),
]


def detect_parser(header: list[str]) -> CsvDialectParser:
    """
    Pick the parser for a header row.

    Returns the first dialect whose identifying columns are all present,
    falling back to the simple parser.
    """
    for parser in _PARSERS[:-1]:
        if parser.matches(header):
            return parser
    return _PARSERS[-1]


def get_parser(csv_format: CsvFormat) -> CsvDialectParser:
    """Parser for an explicit dialect."""
    for parser in _PARSERS:
        if parser.format == csv_format:
            return parser
    raise ValueError(f"No parser registered for format: {csv_format}")


def parse_csv(text: str) -> PortfolioData:
    """
    Parse a brokerage export into trades and cash flows.

    Args:
        text: Full CSV text

    Returns:
        PortfolioData tagged with the detected format

    Raises:
        EmptyFileError: If there is no header plus at least one data line
        MissingColumnsError: If the simple fallback lacks required columns
    """
    lines = text.strip().split("\n")
    if len(lines) < 2:
        raise EmptyFileError()

    parser = detect_parser(parse_csv_line(lines[0]))
    data = parser.parse(text)

    logger.info(
        f"Parsed {parser.name} CSV: {len(data.trades)} trades, "
        f"{len(data.cash_flows)} cash flows"
    )
    return data


def generate_sample_csv() -> str:
    """Sample file in the simple format (one row has no price)."""
    return SAMPLE_CSV


# =============================================================================
# EXPORTS
# =============================================================================

__all__ = [
    "CsvDialectParser",
    "FidelityParser",
    "RobinhoodParser",
    "SchwabParser",
    "SimpleParser",
    "detect_parser",
    "generate_sample_csv",
    "get_parser",
    "parse_csv",
]
