"""Tests for the FastAPI REST endpoints."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from slipledger import __version__
from slipledger.api.app import app
from slipledger.budget.categories import EXPENSE_CATEGORIES, INCOME_CATEGORIES, NO_SPEND
from slipledger.errors import ImageLoadError, RecognitionError
from slipledger.extraction.slip_parser import parse_slip_text
from slipledger.ocr.slip_processor import SlipScanResult
from slipledger.preprocessing.pipeline import QualityMetrics


@pytest.fixture
def client() -> TestClient:
    """Create a FastAPI test client."""
    return TestClient(app)


def _make_scan_result() -> SlipScanResult:
    return SlipScanResult(
        source_file="slip.png",
        parse_result=parse_slip_text("ได้รับเงิน\nจำนวนเงิน 500.00 บาท\n7 ก.พ. 2569", 87.456),
        quality_metrics=QualityMetrics(100.0, 120.0, 50.0, 60.0),
    )


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health_check(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert isinstance(data["tesseract_available"], bool)


class TestParseEndpoint:
    """Tests for POST /slips/parse."""

    def test_parse_text(self, client: TestClient) -> None:
        response = client.post(
            "/slips/parse",
            json={"text": "Receive Transfer\nAmount: 2,000.00 THB\n5 Feb 2026", "confidence": 120},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["amount"] == 2000.0
        assert data["date"] == "2026-02-05"
        assert data["inferred_type"] == "income"
        assert data["confidence"] == 100.0
        assert data["note"] == "OCR จากสลิป"

    def test_parse_empty_text(self, client: TestClient) -> None:
        response = client.post("/slips/parse", json={"text": ""})
        assert response.status_code == 200
        data = response.json()
        assert data["raw_text"] == ""
        assert data["amount"] is None
        assert data["confidence"] is None

    def test_parse_missing_text(self, client: TestClient) -> None:
        response = client.post("/slips/parse", json={})
        assert response.status_code == 422


class TestScanEndpoint:
    """Tests for POST /slips/scan."""

    @patch("slipledger.api.app._get_processor")
    def test_scan_image(self, mock_get: MagicMock, client: TestClient, png_bytes: bytes) -> None:
        mock_get.return_value.scan.return_value = _make_scan_result()

        response = client.post(
            "/slips/scan",
            files={"file": ("slip.png", png_bytes, "image/png")},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["filename"] == "slip.png"
        assert data["result"]["amount"] == 500.0
        assert data["result"]["date"] == "2026-02-07"
        assert data["result"]["inferred_type"] == "income"
        assert data["result"]["confidence"] == 87.46
        assert data["quality_metrics"]["sharpness_after"] == 120.0
        assert "scan_id" in data
        assert data["processing_time_ms"] >= 0
        mock_get.return_value.scan.assert_called_once_with(png_bytes, "slip.png")

    def test_unsupported_file_type(self, client: TestClient) -> None:
        response = client.post(
            "/slips/scan",
            files={"file": ("slip.pdf", b"%PDF-1.4", "application/pdf")},
        )
        assert response.status_code == 400
        assert "Unsupported" in response.json()["detail"]

    @patch("slipledger.api.app._get_processor")
    def test_undecodable_image(self, mock_get: MagicMock, client: TestClient) -> None:
        mock_get.return_value.scan.side_effect = ImageLoadError("Cannot decode image")

        response = client.post(
            "/slips/scan",
            files={"file": ("slip.png", b"garbage", "image/png")},
        )
        assert response.status_code == 400
        assert "Cannot decode" in response.json()["detail"]

    @patch("slipledger.api.app._get_processor")
    def test_recognition_failure(
        self, mock_get: MagicMock, client: TestClient, png_bytes: bytes
    ) -> None:
        mock_get.return_value.scan.side_effect = RecognitionError("Tesseract failed")

        response = client.post(
            "/slips/scan",
            files={"file": ("slip.png", png_bytes, "image/png")},
        )
        assert response.status_code == 500


class TestClassifyEndpoint:
    """Tests for POST /notes/classify."""

    def test_classify_expense(self, client: TestClient) -> None:
        response = client.post(
            "/notes/classify",
            json={
                "note": "ค่าน้ำมันรถ",
                "type": "expense",
                "categories": list(EXPENSE_CATEGORIES),
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["category"] == "Transport (เดินทาง)"
        assert data["confidence"] == 0.66
        assert data["source"] == "fallback"

    def test_classify_dedupes_categories(self, client: TestClient) -> None:
        response = client.post(
            "/notes/classify",
            json={"note": "random", "type": "income", "categories": [" Gift ", "Gift"]},
        )
        assert response.status_code == 200
        assert response.json()["category"] == "Gift"

    def test_classify_empty_note(self, client: TestClient) -> None:
        response = client.post(
            "/notes/classify",
            json={"note": " ", "categories": ["Food"]},
        )
        assert response.status_code == 400

    def test_classify_no_categories(self, client: TestClient) -> None:
        response = client.post("/notes/classify", json={"note": "food"})
        assert response.status_code == 400

    def test_classify_invalid_type(self, client: TestClient) -> None:
        response = client.post(
            "/notes/classify",
            json={"note": "food", "type": "transfer", "categories": ["Food"]},
        )
        assert response.status_code == 422


class TestJarEndpoint:
    """Tests for POST /jars/allocate."""

    def test_allocate(self, client: TestClient) -> None:
        response = client.post("/jars/allocate", json={"income": 100.01})
        assert response.status_code == 200
        data = response.json()
        assert data["income"] == 100.01
        assert [a["key"] for a in data["allocations"]] == [
            "expense",
            "saving",
            "investment",
            "debt",
        ]
        assert data["allocations"][0]["amount"] == 40.0
        assert data["allocations"][-1]["amount"] == 20.01

    def test_negative_income(self, client: TestClient) -> None:
        response = client.post("/jars/allocate", json={"income": -10})
        assert response.status_code == 200
        assert response.json()["income"] == 0.0


class TestCategoriesEndpoint:
    """Tests for GET /categories/{tx_type}."""

    def test_income(self, client: TestClient) -> None:
        response = client.get("/categories/income")
        assert response.status_code == 200
        assert response.json()["categories"] == list(INCOME_CATEGORIES)

    def test_expense_ai_only(self, client: TestClient) -> None:
        response = client.get("/categories/expense", params={"ai_only": True})
        assert response.status_code == 200
        assert NO_SPEND not in response.json()["categories"]

    def test_unknown_type(self, client: TestClient) -> None:
        response = client.get("/categories/transfer")
        assert response.status_code == 422


class TestCoachEndpoint:
    """Tests for POST /coach."""

    def test_coach_shortfalls(self, client: TestClient) -> None:
        response = client.post(
            "/coach",
            json={
                "month": "2026-02",
                "total_income": 40000,
                "total_expense": 36000,
                "total_luxury": 12000,
                "saving_rate": 0.1,
                "net_saving": 4000,
                "jars": [{"key": "debt", "label": "Debt", "target": 8000, "actual": 2000}],
                "top_categories": [{"category": "Food (อาหาร)", "amount": 9000, "count": 31}],
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "fallback"
        assert data["summary"] == "เดือน 2026-02 ภาพรวมสุทธิ ฿4,000 และอัตราการออม 10.0%"
        assert [r["jar_key"] for r in data["recommendations"]] == ["expense", "debt", "saving"]
        assert "฿6,000 " in data["recommendations"][1]["action"]

    def test_coach_empty_month(self, client: TestClient) -> None:
        response = client.post("/coach", json={"saving_rate": 0.5})
        assert response.status_code == 200
        data = response.json()
        assert data["summary"].startswith("เดือน เดือนนี้ ")
        assert data["recommendations"][0]["priority"] == "low"

    def test_coach_invalid_jars(self, client: TestClient) -> None:
        response = client.post("/coach", json={"jars": "debt"})
        assert response.status_code == 422
