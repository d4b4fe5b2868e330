# backend/counterfactual/services/upload/parsers/base.py
"""
Abstract interface for brokerage CSV dialect parsers.

Each dialect (Robinhood, Fidelity, Schwab, simple) implements this contract.
A parser is ONLY responsible for:
- Recognising its dialect from the header row
- Mapping rows to Trade and CashFlow records
- Skipping rows it does not understand

It does NOT fetch prices or validate trade dates against market calendars.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TypeVar

from counterfactual.services.comparison.types import CsvFormat, PortfolioData

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CsvDialectParser(ABC):
    """
    Abstract base class for CSV dialect parsers.

    Example:
        parser = RobinhoodParser()
        if parser.matches(header):
            data = parser.parse(text)
    """

    #: Lowercased column names that identify the dialect
    required_columns: tuple[str, ...] = ()

    @property
    @abstractmethod
    def format(self) -> CsvFormat:
        """Dialect produced by this parser."""
        pass

    @property
    def name(self) -> str:
        return self.format.value

    def matches(self, header: list[str]) -> bool:
        """True if every identifying column is present (case-insensitive)."""
        lowered = {name.strip().lower() for name in header}
        return all(column in lowered for column in self.required_columns)

    @abstractmethod
    def parse(self, text: str) -> PortfolioData:
        """
        Parse the full CSV text (header included).

        Rows that cannot be mapped are skipped, never raised.
        """
        pass

    def _build(self, row_number: int, factory: Callable[[], T]) -> T | None:
        """
        Construct a record, skipping the row if the record rejects its values.

        Trade and CashFlow validate themselves (e.g. shares must be
        positive); a rejected row is logged and dropped.
        """
        try:
            return factory()
        except ValueError as e:
            logger.warning(f"Skipping {self.name} row {row_number}: {e}")
            return None
