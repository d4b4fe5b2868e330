# backend/tests/routers/test_upload_api.py
"""
Integration tests for the upload endpoints.

Tests cover:
- Parsing each supported dialect through POST /upload/parse
- File-level errors (empty, missing columns, too large)
- Sample download
- Multi-file merge with duplicate reporting and exclusions
"""

import pytest
from fastapi.testclient import TestClient

from counterfactual.dependencies import get_upload_service
from counterfactual.main import app
from counterfactual.services.upload import UploadService

SIMPLE_CSV = "ticker,date,shares,price\nAAPL,2024-01-02,10,185.50\nNVDA,2024-01-03,5,\n"

ROBINHOOD_HEADER = "Activity Date,Instrument,Trans Code,Quantity,Price,Amount"
ROBINHOOD_A = "\n".join([
    ROBINHOOD_HEADER,
    '1/15/2024,AAPL,Buy,10,$185.50,"($1,855.00)"',
    '2/1/2024,,ACH,,,"$2,000.00"',
])
ROBINHOOD_B = "\n".join([
    ROBINHOOD_HEADER,
    '2/1/2024,,ACH,,,"$2,000.00"',
    "3/1/2024,AAPL,Sell,5,$190.00,$950.00",
])


def csv_file(content: str, name: str = "portfolio.csv") -> tuple[str, bytes, str]:
    return name, content.encode("utf-8"), "text/csv"


# =============================================================================
# POST /upload/parse
# =============================================================================

class TestParseUpload:
    """Tests for POST /upload/parse."""

    def test_simple_format(self, client: TestClient):
        response = client.post("/upload/parse", files={"file": csv_file(SIMPLE_CSV)})

        assert response.status_code == 200
        data = response.json()
        assert data["format"] == "simple"
        assert [t["ticker"] for t in data["trades"]] == ["AAPL", "NVDA"]
        assert data["trades"][0]["price"] == "185.50"
        assert data["trades"][1]["price"] is None
        assert data["trades"][0]["type"] == "buy"
        assert len(data["cash_flows"]) == 1
        assert data["cash_flows"][0]["type"] == "deposit"

    def test_robinhood_format(self, client: TestClient):
        response = client.post("/upload/parse", files={"file": csv_file(ROBINHOOD_A)})

        assert response.status_code == 200
        data = response.json()
        assert data["format"] == "robinhood"
        assert data["trades"][0]["date"] == "2024-01-15"
        assert data["cash_flows"][0]["amount"] == "2000.00"

    def test_empty_file(self, client: TestClient):
        response = client.post("/upload/parse", files={"file": csv_file("ticker,date,shares\n")})

        assert response.status_code == 400
        assert response.json()["error"] == "EmptyFileError"

    def test_missing_columns(self, client: TestClient):
        response = client.post("/upload/parse", files={"file": csv_file("symbol,when\nAAPL,2024-01-02\n")})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "MissingColumnsError"
        assert data["details"] == {"missing": ["ticker", "date", "shares"]}

    def test_file_too_large(self, client: TestClient):
        app.dependency_overrides[get_upload_service] = lambda: UploadService(max_file_size=16)

        response = client.post("/upload/parse", files={"file": csv_file(SIMPLE_CSV)})

        assert response.status_code == 400
        assert response.json()["details"] == {"field": "file"}

    def test_missing_file(self, client: TestClient):
        response = client.post("/upload/parse")

        assert response.status_code == 422


# =============================================================================
# GET /upload/sample
# =============================================================================

class TestSample:

    def test_download_sample(self, client: TestClient):
        response = client.get("/upload/sample")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="sample_portfolio.csv"' in response.headers["content-disposition"]
        assert response.text.splitlines()[0] == "ticker,date,shares,price"

    def test_sample_round_trips_through_parse(self, client: TestClient):
        sample = client.get("/upload/sample").text

        response = client.post("/upload/parse", files={"file": csv_file(sample)})

        assert response.status_code == 200
        assert len(response.json()["trades"]) == 5


# =============================================================================
# POST /upload/merge
# =============================================================================

class TestMerge:
    """Tests for POST /upload/merge."""

    @pytest.fixture
    def files(self):
        return [
            ("files", csv_file(ROBINHOOD_A, "2024-q1.csv")),
            ("files", csv_file(ROBINHOOD_B, "2024-q2.csv")),
        ]

    def test_merge_reports_duplicates(self, client: TestClient, files):
        response = client.post("/upload/merge", files=files)

        assert response.status_code == 200
        data = response.json()
        assert data["headers"] == ROBINHOOD_HEADER.split(",")
        assert len(data["rows"]) == 3
        assert data["validation"]["errors"] == []
        [duplicate] = data["validation"]["duplicates"]
        assert duplicate["file1"] == "2024-q1.csv"
        assert duplicate["row1"] == 2
        assert duplicate["file2"] == "2024-q2.csv"
        assert duplicate["row2"] == 1

    def test_exclude_keys(self, client: TestClient, files):
        key = client.post("/upload/merge", files=files).json()["validation"]["duplicates"][0]["key"]

        response = client.post("/upload/merge", files=files, data={"exclude_keys": [key]})

        assert response.status_code == 200
        assert [row[2] for row in response.json()["rows"]] == ["Buy", "Sell"]

    def test_merged_csv_parses(self, client: TestClient, files):
        merged = client.post("/upload/merge", files=files).json()["csv"]

        response = client.post("/upload/parse", files={"file": csv_file(merged)})

        assert response.status_code == 200
        assert response.json()["format"] == "robinhood"
        assert len(response.json()["trades"]) == 2

    def test_header_mismatch_reported(self, client: TestClient):
        response = client.post("/upload/merge", files=[
            ("files", csv_file(ROBINHOOD_A, "a.csv")),
            ("files", csv_file(SIMPLE_CSV, "b.csv")),
        ])

        assert response.status_code == 200
        assert len(response.json()["validation"]["errors"]) == 1
