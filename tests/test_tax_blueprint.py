"""
Tests for the tax blueprint.

Requests run against an in-memory SQLite database seeded with one landlord,
two properties, two vendors and a year of transactions.
"""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest

from app.database.models import Transaction
from app.storage import LocalDocumentStore, StorageError

LANDLORD = {"X-User-Id": "1", "X-User-Role": "landlord"}
CONTRACTOR = {"X-User-Id": "2", "X-User-Role": "contractor"}


@pytest.fixture
def seeded(patch_db, landlord_data):
    return patch_db


class TestAuthentication:
    """Test cases for session handling on tax endpoints."""

    def test_missing_session(self, client, seeded):
        response = client.get("/api/tax/schedule-e?year=2024")

        assert response.status_code == 401
        assert response.get_json()["error"] == "Authentication required"

    def test_wrong_role(self, client, seeded):
        response = client.get("/api/tax/1099-report?year=2024", headers=CONTRACTOR)

        assert response.status_code == 401


class TestAmortizationEndpoint:
    """Test cases for GET /api/tax/transactions/<id>/amortization."""

    def test_amortized_transaction(self, client, seeded):
        response = client.get(
            "/api/tax/transactions/103/amortization?year=2025", headers=LANDLORD
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["transactionId"] == 103
        status = data["status"]
        assert status["is_amortized"] is True
        assert status["start_year"] == 2024
        assert status["end_year"] == 2026
        assert float(status["current_year_deduction"]) == 4000.0
        assert float(status["total_deducted_so_far"]) == 8000.0
        assert float(status["remaining_to_deduct"]) == 4000.0
        assert status["years_remaining"] == 1
        assert data["display"]["badge"] == "1 Years Remaining"
        assert data["display"]["summary"] == "$8,000 deducted so far"
        assert data["schedule"] == {"2024": 4000.0, "2025": 4000.0, "2026": 4000.0}

    def test_one_off_transaction(self, client, seeded):
        response = client.get(
            "/api/tax/transactions/102/amortization?year=2024", headers=LANDLORD
        )

        data = response.get_json()
        assert data["display"]["badge"] == "Full Deduction"
        assert data["display"]["current_year"] == "$800 this year"
        assert data["status"]["is_completed"] is True

    def test_unknown_transaction(self, client, seeded):
        response = client.get("/api/tax/transactions/999/amortization", headers=LANDLORD)

        assert response.status_code == 404

    def test_other_landlords_transaction(self, client, seeded):
        other = {"X-User-Id": "77", "X-User-Role": "landlord"}

        response = client.get("/api/tax/transactions/103/amortization", headers=other)

        assert response.status_code == 404

    @pytest.mark.parametrize("year", ["abc", "1800", "2101"])
    def test_invalid_year(self, client, seeded, year):
        response = client.get(
            f"/api/tax/transactions/103/amortization?year={year}", headers=LANDLORD
        )

        assert response.status_code == 400

    def test_negative_expense_is_rejected(self, client, seeded):
        seeded.add(
            Transaction(
                id=200, property_id=10, type="Expense", amount=Decimal("-100"),
                date=date(2024, 1, 5), tax_deductible=True,
            )
        )
        seeded.commit()

        response = client.get(
            "/api/tax/transactions/200/amortization?year=2024", headers=LANDLORD
        )

        assert response.status_code == 400

    def test_window_running_past_2100(self, client, seeded):
        seeded.add(
            Transaction(
                id=201, property_id=10, type="Expense", amount=Decimal("2700"),
                date=date(2090, 3, 1), tax_deductible=True, is_amortized=True,
                amortization_years=27, amortization_start_date=date(2090, 3, 1),
            )
        )
        seeded.commit()

        response = client.get(
            "/api/tax/transactions/201/amortization?year=2095", headers=LANDLORD
        )

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"]["end_year"] == 2116
        assert data["schedule"]["2116"] == 100.0


class TestScheduleEEndpoint:
    """Test cases for GET /api/tax/schedule-e."""

    def test_schedule_e_2024(self, client, seeded):
        response = client.get("/api/tax/schedule-e?year=2024", headers=LANDLORD)

        assert response.status_code == 200
        data = response.get_json()
        maple, oak = data["properties"]
        assert maple["property_name"] == "Maple Duplex"
        assert maple["income"] == 2500.0
        assert maple["expenses"]["repairs"] == 800.0
        assert oak["expenses"]["other_expenses"] == 4000.0
        assert data["totals"]["total_expenses"] == 4800.0
        assert data["totals"]["net_income"] == -2300.0
        assert data["uncategorized_expense_ids"] == [104]
        assert data["has_data"] is True
        assert len(data["lines"]) == 15

    def test_amortized_expense_in_later_year(self, client, seeded):
        response = client.get("/api/tax/schedule-e?year=2026", headers=LANDLORD)

        data = response.get_json()
        assert data["totals"]["income"] == 0.0
        assert data["totals"]["expenses"]["other_expenses"] == 4000.0


class Test1099Endpoints:
    """Test cases for the 1099-NEC report, W-9 tracking and generation."""

    def test_report(self, client, seeded):
        response = client.get("/api/tax/1099-report?year=2024", headers=LANDLORD)

        assert response.status_code == 200
        data = response.get_json()
        assert data["threshold"] == 600.0
        assert [v["vendorId"] for v in data["vendors"]] == [21, 20]
        plumber = data["vendors"][1]
        assert plumber["totalPayments"] == 800.0
        assert plumber["qualifiesFor1099"] is True
        assert plumber["missingW9"] is True
        assert data["requiring1099"] == 1
        assert data["missingW9"] == 1

    def test_report_for_year_without_payments(self, client, seeded):
        response = client.get("/api/tax/1099-report?year=2023", headers=LANDLORD)

        assert response.get_json()["vendors"] == []

    def test_update_w9(self, client, seeded):
        response = client.patch("/api/vendors/20/w9", json={"w9OnFile": True}, headers=LANDLORD)

        assert response.status_code == 200
        assert response.get_json() == {"vendorId": 20, "w9OnFile": True}

        report = client.get("/api/tax/1099-report?year=2024", headers=LANDLORD).get_json()
        assert report["missingW9"] == 0

    def test_update_w9_requires_boolean(self, client, seeded):
        response = client.patch("/api/vendors/20/w9", json={"w9OnFile": "yes"}, headers=LANDLORD)

        assert response.status_code == 400

    def test_update_w9_unknown_vendor(self, client, seeded):
        response = client.patch("/api/vendors/99/w9", json={"w9OnFile": True}, headers=LANDLORD)

        assert response.status_code == 404

    def test_generate_requires_w9(self, client, seeded):
        response = client.post("/api/tax/1099/20?year=2024", headers=LANDLORD)

        assert response.status_code == 400

    def test_generate_for_business_vendor(self, client, seeded):
        response = client.post("/api/tax/1099/21?year=2024", headers=LANDLORD)

        assert response.status_code == 400
        assert response.get_json()["error"] == "Vendor does not require a 1099-NEC"

    def test_generate_unknown_vendor(self, client, seeded):
        response = client.post("/api/tax/1099/99?year=2024", headers=LANDLORD)

        assert response.status_code == 404

    def test_generate_stores_document(self, client, seeded, tmp_path):
        store = LocalDocumentStore(base_path=str(tmp_path))
        client.patch("/api/vendors/20/w9", json={"w9OnFile": True}, headers=LANDLORD)

        with patch("app.blueprints.tax.get_document_store", return_value=store):
            response = client.post("/api/tax/1099/20?year=2024", headers=LANDLORD)

        assert response.status_code == 201
        assert response.get_json()["documentKey"] == "1099/2024/20.html"
        document = store.get("1099/2024/20.html").decode("utf-8")
        assert "Jo Plumber" in document
        assert "Pat Owner" in document
        assert "$800" in document

    def test_generate_storage_failure(self, client, seeded):
        client.patch("/api/vendors/20/w9", json={"w9OnFile": True}, headers=LANDLORD)

        with patch("app.blueprints.tax.get_document_store", side_effect=StorageError("disk full")):
            response = client.post("/api/tax/1099/20?year=2024", headers=LANDLORD)

        assert response.status_code == 500
        assert response.get_json()["error"] == "Document storage failed"


class Test1099Documents:
    """Test cases for reading back generated 1099-NEC documents."""

    @pytest.fixture
    def store(self, seeded, client, tmp_path):
        store = LocalDocumentStore(base_path=str(tmp_path))
        client.patch("/api/vendors/20/w9", json={"w9OnFile": True}, headers=LANDLORD)
        with patch("app.blueprints.tax.get_document_store", return_value=store):
            yield store

    def test_download_generated_form(self, client, store):
        client.post("/api/tax/1099/20?year=2024", headers=LANDLORD)

        response = client.get("/api/tax/1099/20?year=2024", headers=LANDLORD)

        assert response.status_code == 200
        assert response.mimetype == "text/html"
        assert "Form 1099-NEC" in response.get_data(as_text=True)

    def test_download_before_generating(self, client, store):
        response = client.get("/api/tax/1099/20?year=2024", headers=LANDLORD)

        assert response.status_code == 404

    def test_download_other_landlords_vendor(self, client, store):
        client.post("/api/tax/1099/20?year=2024", headers=LANDLORD)
        other = {"X-User-Id": "77", "X-User-Role": "landlord"}

        response = client.get("/api/tax/1099/20?year=2024", headers=other)

        assert response.status_code == 404

    def test_list_documents(self, client, store):
        store.put_text("1099/2024/999.html", "<p>other</p>", "text/html")
        client.post("/api/tax/1099/20?year=2024", headers=LANDLORD)

        response = client.get("/api/tax/1099-documents?year=2024", headers=LANDLORD)

        assert response.get_json() == {"year": 2024, "vendorIds": [20]}

    def test_delete_document(self, client, store):
        client.post("/api/tax/1099/20?year=2024", headers=LANDLORD)

        first = client.delete("/api/tax/1099/20?year=2024", headers=LANDLORD)
        second = client.delete("/api/tax/1099/20?year=2024", headers=LANDLORD)

        assert first.status_code == 204
        assert second.status_code == 404
        assert store.list_keys() == []
