# backend/counterfactual/services/upload/__init__.py
"""
Upload service package.

This package turns brokerage exports into trades and cash flows:
- Dialect detection (Robinhood, Fidelity, Schwab, simple)
- Ticker and date normalization
- Merging overlapping exports with duplicate detection

Usage:
    from counterfactual.services.upload import UploadService, parse_csv

    data = parse_csv(text)
    merged = UploadService().merge_files([("2023.csv", a), ("2024.csv", b)])

Architecture:
    upload/
    ├── __init__.py          # This file - main exports
    ├── service.py           # UploadService (decoding, size limit)
    ├── merger.py            # Multi-file merge + duplicate detection
    └── parsers/             # One parser per brokerage dialect
        ├── base.py          # Abstract interface
        ├── shared.py        # CSV splitting, date/ticker/number helpers
        ├── robinhood.py
        ├── fidelity.py
        ├── schwab.py
        └── simple.py        # Fallback + sample file
"""

from counterfactual.services.upload.merger import (
    DuplicateInfo,
    ParsedCSV,
    UploadedFile,
    ValidationResult,
    create_duplicate_key,
    export_csv,
    find_duplicates,
    merge_csvs,
    parse_csv_text,
    validate_files,
    validate_headers,
)
from counterfactual.services.upload.parsers import (
    CsvDialectParser,
    detect_parser,
    generate_sample_csv,
    parse_csv,
)
from counterfactual.services.upload.service import MergeResult, UploadService

__all__ = [
    # Service
    "UploadService",
    "MergeResult",
    # Parsers
    "CsvDialectParser",
    "detect_parser",
    "generate_sample_csv",
    "parse_csv",
    # Merger
    "DuplicateInfo",
    "ParsedCSV",
    "UploadedFile",
    "ValidationResult",
    "create_duplicate_key",
    "export_csv",
    "find_duplicates",
    "merge_csvs",
    "parse_csv_text",
    "validate_files",
    "validate_headers",
]
