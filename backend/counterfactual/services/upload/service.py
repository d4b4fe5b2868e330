# backend/counterfactual/services/upload/service.py
"""
Upload service for brokerage CSV files.

Turns uploaded bytes into text and hands them to the dialect parsers or the
CSV merger. Keeps file-level concerns (size limit, encoding) out of the
parsers.

Usage:
    service = UploadService()
    data = service.parse_file(content, "robinhood.csv")
"""

import logging
from dataclasses import dataclass

from counterfactual.services.comparison.types import PortfolioData
from counterfactual.services.constants import MAX_UPLOAD_FILE_SIZE_BYTES
from counterfactual.services.exceptions import ValidationError
from counterfactual.services.upload.merger import (
    UploadedFile,
    ValidationResult,
    export_csv,
    merge_csvs,
    parse_csv_text,
    validate_files,
)
from counterfactual.services.upload.parsers import parse_csv

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """
    Result of merging several exports.

    Attributes:
        headers: Header row of the first file
        rows: Merged, de-duplicated rows
        csv: Merged file as CSV text
        validation: Header mismatches and duplicates found before merging
    """

    headers: list[str]
    rows: list[list[str]]
    csv: str
    validation: ValidationResult


class UploadService:
    """
    Service for processing uploaded CSV files.

    Example:
        service = UploadService()
        data = service.parse_file(raw_bytes, "export.csv")
        merged = service.merge_files([("a.csv", a_bytes), ("b.csv", b_bytes)])
    """

    def __init__(self, max_file_size: int = MAX_UPLOAD_FILE_SIZE_BYTES) -> None:
        self._max_file_size = max_file_size

    def parse_file(self, content: bytes, filename: str) -> PortfolioData:
        """
        Parse one uploaded export.

        Raises:
            ValidationError: If the file is too large
            IngestionError: If the CSV is empty or lacks required columns
        """
        text = self.decode(content, filename)
        logger.info(f"Parsing uploaded file: {filename} ({len(content)} bytes)")
        return parse_csv(text)

    def merge_files(
            self,
            files: list[tuple[str, bytes]],
            exclude_keys: set[str] | None = None,
    ) -> MergeResult:
        """
        Validate and merge several exports of the same dialect.

        Args:
            files: (filename, content) pairs, in priority order
            exclude_keys: Duplicate keys the user chose to drop

        Returns:
            MergeResult with the merged CSV and the validation report
        """
        uploaded = []
        for filename, content in files:
            parsed = parse_csv_text(self.decode(content, filename))
            uploaded.append(UploadedFile(name=filename, headers=parsed.headers, rows=parsed.rows))

        validation = validate_files(uploaded)
        headers, rows = merge_csvs(uploaded, exclude_keys or set())

        logger.info(
            f"Merged {len(uploaded)} files into {len(rows)} rows "
            f"({len(validation.duplicates)} duplicates, {len(validation.errors)} header errors)"
        )
        return MergeResult(headers=headers, rows=rows, csv=export_csv(headers, rows), validation=validation)

    def decode(self, content: bytes, filename: str) -> str:
        """
        Decode file content, enforcing the size limit.

        Tries UTF-8 (with or without BOM), falls back to Latin-1.
        """
        if len(content) > self._max_file_size:
            raise ValidationError(
                f"{filename} is {len(content)} bytes; the limit is {self._max_file_size} bytes",
                field="file",
            )

        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError:
            pass

        # Latin-1 never fails, but may produce garbage
        logger.warning(f"{filename} is not UTF-8, falling back to Latin-1 encoding")
        return content.decode("latin-1")
