# backend/tests/services/test_csv_merger.py
"""
Tests for multi-file CSV merging and the UploadService.

This module tests:
- Transaction row filtering per layout
- Header validation across files
- Duplicate keys and duplicate detection
- Merging with exclusions and CSV export
- UploadService decoding and size limit
"""

import pytest

from counterfactual.services.comparison import CsvFormat
from counterfactual.services.exceptions import ValidationError
from counterfactual.services.upload import (
    UploadedFile,
    UploadService,
    create_duplicate_key,
    export_csv,
    find_duplicates,
    merge_csvs,
    parse_csv,
    parse_csv_text,
    validate_files,
    validate_headers,
)
from counterfactual.services.upload.merger import is_transaction_row

ROBINHOOD_HEADER = "Activity Date,Instrument,Trans Code,Quantity,Price,Amount"
ROBINHOOD_BUY = '1/15/2024,AAPL,Buy,10,$185.50,"($1,855.00)"'
ROBINHOOD_ACH = '2/1/2024,,ACH,,,"$2,000.00"'
ROBINHOOD_SELL = "3/1/2024,AAPL,Sell,5,$190.00,$950.00"

FILE_A = "\n".join([
    ROBINHOOD_HEADER,
    ROBINHOOD_BUY,
    ROBINHOOD_ACH,
    "",
    '"The data provided is for informational purposes only."',
])
FILE_B = "\n".join([ROBINHOOD_HEADER, ROBINHOOD_ACH, ROBINHOOD_SELL])


@pytest.fixture
def uploaded_files():
    a = parse_csv_text(FILE_A)
    b = parse_csv_text(FILE_B)
    return [
        UploadedFile(name="a.csv", headers=a.headers, rows=a.rows),
        UploadedFile(name="b.csv", headers=b.headers, rows=b.rows),
    ]


# =============================================================================
# ROW FILTERING
# =============================================================================

class TestTransactionRows:
    """Only real transactions survive parse_csv_text."""

    def test_robinhood_footer_dropped(self):
        parsed = parse_csv_text(FILE_A)

        assert parsed.headers == ROBINHOOD_HEADER.split(",")
        assert len(parsed.rows) == 2

    def test_robinhood_unknown_code_dropped(self):
        headers = ROBINHOOD_HEADER.split(",")
        assert not is_transaction_row(["1/15/2024", "AAPL", "XFER", "1", "", ""], headers)
        assert is_transaction_row(["1/15/2024", "AAPL", "buy", "1", "", ""], headers)

    def test_fidelity_action_prefixes(self):
        headers = ["Run Date", "Action", "Symbol", "Amount ($)"]

        assert is_transaction_row(["01/02/2024", "Electronic Funds Transfer Received", "", "100"], headers)
        assert is_transaction_row(["01/16/2024", "YOU BOUGHT NVIDIA CORP", "NVDA", "-10"], headers)
        assert not is_transaction_row(["01/16/2024", "JOURNALED CASH", "", "10"], headers)
        assert not is_transaction_row(["Brokerage", "YOU BOUGHT", "NVDA", "-10"], headers)

    def test_generic_layout(self):
        headers = ["ticker", "date", "shares"]

        assert is_transaction_row(["AAPL", "2024-01-02", "1"], headers)
        assert not is_transaction_row(["AAPL", "", ""], headers)
        assert not is_transaction_row(["x" * 60, "2024-01-02", "1"], headers)

    def test_empty_text(self):
        parsed = parse_csv_text("")

        assert parsed.headers == []
        assert parsed.rows == []


# =============================================================================
# VALIDATION
# =============================================================================

class TestValidation:

    def test_matching_headers(self, uploaded_files):
        assert validate_headers(uploaded_files) == []

    def test_header_case_ignored(self):
        files = [
            UploadedFile(name="a.csv", headers=["Ticker", "Date"], rows=[]),
            UploadedFile(name="b.csv", headers=["ticker", "DATE"], rows=[]),
        ]
        assert validate_headers(files) == []

    def test_mismatched_headers(self):
        files = [
            UploadedFile(name="a.csv", headers=["Ticker", "Date", "Amount"], rows=[]),
            UploadedFile(name="b.csv", headers=["Ticker", "Date", "Price"], rows=[]),
        ]

        [error] = validate_headers(files)

        assert error == "b.csv has different columns than a.csv. Missing: Amount. Extra: Price"

    def test_validate_files_reports_duplicates(self, uploaded_files):
        result = validate_files(uploaded_files)

        assert result.is_valid
        assert len(result.duplicates) == 1
        assert result.warnings == ["Found 1 potential duplicate row(s)"]


# =============================================================================
# DUPLICATES
# =============================================================================

class TestDuplicates:

    def test_robinhood_key(self):
        headers = ROBINHOOD_HEADER.split(",")
        row = ["2/1/2024", "", "ACH", "", "", " $2,000.00 "]

        assert create_duplicate_key(row, headers) == "2/1/2024||ach||$2,000.00"

    def test_fidelity_key(self):
        headers = ["Run Date", "Action", "Symbol", "Quantity", "Price ($)", "Amount ($)"]
        row = ["01/16/2024", "YOU BOUGHT NVIDIA", "NVDA", "5", "540.00", "-2700.00"]

        assert create_duplicate_key(row, headers) == "01/16/2024|nvda|you bought nvidia|5|-2700.00"

    def test_generic_key_uses_every_column(self):
        assert create_duplicate_key(["AAPL", "2024-01-02", "1"], ["ticker", "date", "shares"]) == "aapl|2024-01-02|1"

    def test_duplicate_points_at_first_occurrence(self, uploaded_files):
        [duplicate] = find_duplicates(uploaded_files)

        assert (duplicate.file1, duplicate.row1) == ("a.csv", 2)
        assert (duplicate.file2, duplicate.row2) == ("b.csv", 1)
        assert duplicate.content == "2/1/2024 | ACH | $2,000.00"

    def test_duplicate_within_one_file(self):
        rows = [["AAPL", "2024-01-02", "1"], ["AAPL", "2024-01-02", "1"]]
        files = [UploadedFile(name="a.csv", headers=["ticker", "date", "shares"], rows=rows)]

        [duplicate] = find_duplicates(files)

        assert (duplicate.row1, duplicate.row2) == (1, 2)


# =============================================================================
# MERGE / EXPORT
# =============================================================================

class TestMerge:

    def test_repeats_dropped(self, uploaded_files):
        headers, rows = merge_csvs(uploaded_files)

        assert headers == ROBINHOOD_HEADER.split(",")
        assert [row[2] for row in rows] == ["Buy", "ACH", "Sell"]

    def test_excluded_keys_dropped_entirely(self, uploaded_files):
        [duplicate] = find_duplicates(uploaded_files)

        _, rows = merge_csvs(uploaded_files, exclude_keys={duplicate.key})

        assert [row[2] for row in rows] == ["Buy", "Sell"]

    def test_no_files(self):
        assert merge_csvs([]) == ([], [])

    def test_export_quotes_only_where_needed(self):
        text = export_csv(["a", "b"], [["1,000", 'say "hi"'], ["plain", "x"]])

        assert text == 'a,b\n"1,000","say ""hi"""\nplain,x'

    def test_merged_csv_parses_as_robinhood(self, uploaded_files):
        headers, rows = merge_csvs(uploaded_files)

        data = parse_csv(export_csv(headers, rows))

        assert data.format == CsvFormat.ROBINHOOD
        assert len(data.trades) == 2
        assert len(data.cash_flows) == 1


# =============================================================================
# UPLOAD SERVICE
# =============================================================================

class TestUploadService:

    def test_parse_file_strips_bom(self):
        content = "\ufeffticker,date,shares\nAAPL,2024-01-02,1".encode("utf-8")

        data = UploadService().parse_file(content, "bom.csv")

        assert data.format == CsvFormat.SIMPLE
        assert data.trades[0].ticker == "AAPL"

    def test_latin1_fallback(self):
        content = "ticker,date,shares,note\nAAPL,2024-01-02,1,café".encode("latin-1")

        data = UploadService().parse_file(content, "latin1.csv")

        assert len(data.trades) == 1

    def test_size_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            UploadService(max_file_size=10).parse_file(b"x" * 11, "big.csv")

        assert exc_info.value.field == "file"

    def test_merge_files(self):
        result = UploadService().merge_files([
            ("a.csv", FILE_A.encode()),
            ("b.csv", FILE_B.encode()),
        ])

        assert len(result.rows) == 3
        assert result.csv.splitlines()[0] == ROBINHOOD_HEADER
        assert len(result.validation.duplicates) == 1
        assert result.validation.errors == []
