# backend/counterfactual/services/upload/merger.py
"""
Combine several brokerage exports into one file.

Brokerages cap export ranges, so a full history often arrives as several
overlapping files. This module keeps only real transaction rows, checks
that the files share a header, finds rows that appear in more than one
file, and merges them.

Duplicate keys (lowercased, trimmed, "|"-joined):
    Robinhood  activity date | instrument | trans code | quantity | amount
    Fidelity   run date | symbol | action | quantity | amount ($)
    Other      every column

Fields are kept exactly as exported (no trimming) so the merged file
round-trips into the dialect parsers.
"""

import logging
from dataclasses import dataclass, field

from counterfactual.services.constants import FIDELITY_ACTION_PREFIXES, ROBINHOOD_TRANS_CODES
from counterfactual.services.upload.parsers.shared import (
    cell,
    column_index,
    lower_header,
    parse_multiline_csv,
)

logger = logging.getLogger(__name__)

_ROBINHOOD_CODES_LOWER = frozenset(code.lower() for code in ROBINHOOD_TRANS_CODES)
_FIDELITY_PREFIXES_UPPER = tuple(prefix.upper() for prefix in FIDELITY_ACTION_PREFIXES)

# Longer first fields without a comma are disclaimer/description text
_MAX_DATA_FIELD_LENGTH = 50


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class ParsedCSV:
    """Header row plus transaction rows of one file."""

    headers: list[str] = field(default_factory=list)
    rows: list[list[str]] = field(default_factory=list)


@dataclass
class UploadedFile:
    """
    One file taking part in a merge.

    Attributes:
        name: Display name (usually the filename)
        headers: Header row
        rows: Transaction rows
    """

    name: str
    headers: list[str]
    rows: list[list[str]]

    @property
    def row_count(self) -> int:
        return len(self.rows)


@dataclass
class DuplicateInfo:
    """
    A row that also appears earlier in the merge.

    Row numbers are 1-based positions among the file's transaction rows.
    """

    file1: str
    row1: int
    file2: str
    row2: int
    content: str
    key: str


@dataclass
class ValidationResult:
    """Header errors, warnings and duplicates found across files."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    duplicates: list[DuplicateInfo] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


# =============================================================================
# PARSING
# =============================================================================

def is_transaction_row(row: list[str], headers: list[str]) -> bool:
    """
    True if a row holds a transaction rather than header noise or a footer.

    Robinhood rows need an M/D/YYYY date and a known trans code, Fidelity
    rows an M/D/YYYY date and a known action prefix. Other layouts need at
    least two non-empty fields and a first field that is not long prose.
    """
    lowered = lower_header(headers)

    date_idx = column_index(lowered, "activity date")
    code_idx = column_index(lowered, "trans code")
    if date_idx is not None and code_idx is not None:
        date_value = cell(row, date_idx).strip()
        code = cell(row, code_idx).strip()
        if "/" not in date_value or not code:
            return False
        return code.lower() in _ROBINHOOD_CODES_LOWER

    run_date_idx = column_index(lowered, "run date")
    action_idx = column_index(lowered, "action")
    if run_date_idx is not None and action_idx is not None:
        date_value = cell(row, run_date_idx).strip()
        action = cell(row, action_idx).strip()
        if "/" not in date_value or not action:
            return False
        return action.upper().startswith(_FIDELITY_PREFIXES_UPPER)

    if sum(1 for value in row if value.strip()) < 2:
        return False

    first = cell(row, 0).strip()
    return not (len(first) > _MAX_DATA_FIELD_LENGTH and "," not in first)


def parse_csv_text(text: str) -> ParsedCSV:
    """Split a file into its header and its transaction rows."""
    rows = parse_multiline_csv(text, strip=False)
    if not rows:
        return ParsedCSV()

    headers = rows[0]
    data_rows = [row for row in rows[1:] if is_transaction_row(row, headers)]
    logger.debug(f"Kept {len(data_rows)} of {len(rows) - 1} rows as transactions")
    return ParsedCSV(headers=headers, rows=data_rows)


# =============================================================================
# VALIDATION
# =============================================================================

def validate_headers(files: list[UploadedFile]) -> list[str]:
    """
    Compare every file's header to the first file's (case-insensitive).

    Returns:
        One error message per mismatching file
    """
    if not files:
        return []

    reference = files[0]
    reference_set = {name.lower() for name in reference.headers}
    errors = []

    for file in files[1:]:
        file_set = {name.lower() for name in file.headers}
        missing = [name for name in reference.headers if name.lower() not in file_set]
        extra = [name for name in file.headers if name.lower() not in reference_set]

        if missing or extra:
            message = f"{file.name} has different columns than {reference.name}"
            if missing:
                message += f". Missing: {', '.join(missing)}"
            if extra:
                message += f". Extra: {', '.join(extra)}"
            errors.append(message)

    return errors


def _key_columns(headers: list[str]) -> list[int | None] | None:
    """Indexes of the duplicate-key columns, None to use every column."""
    lowered = lower_header(headers)

    date_idx = column_index(lowered, "activity date")
    instrument_idx = column_index(lowered, "instrument")
    code_idx = column_index(lowered, "trans code")
    if date_idx is not None and instrument_idx is not None and code_idx is not None:
        return [
            date_idx,
            instrument_idx,
            code_idx,
            column_index(lowered, "quantity"),
            column_index(lowered, "amount"),
        ]

    run_date_idx = column_index(lowered, "run date")
    action_idx = column_index(lowered, "action")
    if run_date_idx is not None and action_idx is not None:
        return [
            run_date_idx,
            column_index(lowered, "symbol"),
            action_idx,
            column_index(lowered, "quantity"),
            column_index(lowered, "amount ($)"),
        ]

    return None


def create_duplicate_key(row: list[str], headers: list[str]) -> str:
    """Key identifying the same transaction across files."""
    indexes = _key_columns(headers)
    if indexes is None:
        parts = row
    else:
        parts = [cell(row, index) for index in indexes]
    return "|".join(part.strip().lower() for part in parts)


def format_row_for_display(row: list[str], headers: list[str]) -> str:
    """Short human-readable summary of a row."""
    lowered = lower_header(headers)
    indexes = _key_columns(headers)
    if indexes is None:
        return " | ".join(row[:5])

    parts = [cell(row, index) for index in indexes]
    if column_index(lowered, "trans code") is None:
        # Fidelity: "YOU BOUGHT NVIDIA CORP..." -> "YOU BOUGHT"
        parts[2] = " ".join(parts[2].split(" ")[:2])
    return " | ".join(part for part in parts if part.strip())


def find_duplicates(files: list[UploadedFile]) -> list[DuplicateInfo]:
    """
    Rows whose key was already seen, in this or an earlier file.

    Each duplicate points back at the first occurrence.
    """
    duplicates = []
    first_seen: dict[str, tuple[str, int]] = {}

    for file in files:
        for row_idx, row in enumerate(file.rows):
            key = create_duplicate_key(row, file.headers)
            if key in first_seen:
                first_file, first_row = first_seen[key]
                duplicates.append(DuplicateInfo(
                    file1=first_file,
                    row1=first_row + 1,
                    file2=file.name,
                    row2=row_idx + 1,
                    content=format_row_for_display(row, file.headers),
                    key=key,
                ))
            else:
                first_seen[key] = (file.name, row_idx)

    return duplicates


def validate_files(files: list[UploadedFile]) -> ValidationResult:
    """Header check plus duplicate scan."""
    duplicates = find_duplicates(files)
    warnings = []
    if duplicates:
        warnings.append(f"Found {len(duplicates)} potential duplicate row(s)")
    return ValidationResult(errors=validate_headers(files), warnings=warnings, duplicates=duplicates)


# =============================================================================
# MERGE / EXPORT
# =============================================================================

def merge_csvs(
        files: list[UploadedFile],
        exclude_keys: set[str] | None = None,
) -> tuple[list[str], list[list[str]]]:
    """
    Concatenate files, dropping excluded keys and repeated rows.

    Args:
        files: Files in priority order; the first file's header is used
        exclude_keys: Duplicate keys to drop entirely

    Returns:
        (headers, rows)
    """
    if not files:
        return [], []

    exclude_keys = exclude_keys or set()
    seen: set[str] = set()
    rows = []

    for file in files:
        for row in file.rows:
            key = create_duplicate_key(row, file.headers)
            if key in exclude_keys or key in seen:
                continue
            seen.add(key)
            rows.append(row)

    return list(files[0].headers), rows


def _escape_field(value: str) -> str:
    if "," in value or '"' in value or "\n" in value:
        return '"' + value.replace('"', '""') + '"'
    return value


def export_csv(headers: list[str], rows: list[list[str]]) -> str:
    """Render rows as CSV text, quoting only where needed."""
    lines = [",".join(_escape_field(name) for name in headers)]
    lines.extend(",".join(_escape_field(value) for value in row) for row in rows)
    return "\n".join(lines)
