"""
Tests for visit and payment evidence endpoints.
"""
from datetime import date, datetime, timedelta, timezone

from fastapi.testclient import TestClient

from watukobu.seed import seed_id


def _visit_payload(asset_id: str, **overrides) -> dict:
    now = datetime.now(timezone.utc)
    payload = {
        "assetId": asset_id,
        "gps_lat": -6.2297,
        "gps_lng": 106.8486,
        "photo_front": "/uploads/front.jpg",
        "photo_side": "/uploads/side.jpg",
        "photo_front_taken_at": (now - timedelta(minutes=4)).isoformat(),
        "photo_side_taken_at": (now - timedelta(minutes=3)).isoformat(),
        "problem_description": "Usaha sepi",
    }
    payload.update(overrides)
    return payload


class TestVisitEndpoints:
    """Test cases for visit submission and review"""

    def test_collector_submits_visit(self, client: TestClient, api_prefix: str, budi_headers: dict, asset_001):
        response = client.post(
            f"{api_prefix}/reports/visits", json=_visit_payload(asset_001.id), headers=budi_headers
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["status"] == "PENDING"
        assert data["outcome"] == "TIDAK_BERTEMU"
        assert data["loan_id"] == "LOAN-2024-001"
        assert data["flags"]["is_suspicious"] is False

    def test_stale_photos_flagged(self, client: TestClient, api_prefix: str, budi_headers: dict, asset_001):
        stale = (datetime.now(timezone.utc) - timedelta(hours=2)).isoformat()
        response = client.post(
            f"{api_prefix}/reports/visits",
            json=_visit_payload(asset_001.id, photo_front_taken_at=stale),
            headers=budi_headers,
        )

        assert response.json()["data"]["flags"]["is_suspicious"] is True

    def test_admin_cannot_submit_visit(self, client: TestClient, api_prefix: str, admin_headers: dict, asset_001):
        response = client.post(
            f"{api_prefix}/reports/visits", json=_visit_payload(asset_001.id), headers=admin_headers
        )

        assert response.status_code == 403

    def test_collector_cannot_report_on_unassigned_asset(
        self, client: TestClient, api_prefix: str, dewi_headers: dict, asset_001
    ):
        response = client.post(
            f"{api_prefix}/reports/visits", json=_visit_payload(asset_001.id), headers=dewi_headers
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "WK_006"

    def test_visit_for_unknown_asset(self, client: TestClient, api_prefix: str, budi_headers: dict):
        response = client.post(
            f"{api_prefix}/reports/visits", json=_visit_payload("missing"), headers=budi_headers
        )

        assert response.status_code == 404

    def test_out_of_range_gps_rejected(self, client: TestClient, api_prefix: str, budi_headers: dict, asset_001):
        response = client.post(
            f"{api_prefix}/reports/visits", json=_visit_payload(asset_001.id, gps_lat=120), headers=budi_headers
        )

        assert response.status_code == 422

    def test_list_pending_visits(self, client: TestClient, api_prefix: str, admin_headers: dict):
        response = client.get(f"{api_prefix}/reports/visits", params={"status": "PENDING"}, headers=admin_headers)

        data = response.json()
        assert data["count"] == 1
        assert data["data"][0]["flags"]["has_required_photos"] is False

    def test_collector_lists_only_own(self, client: TestClient, api_prefix: str, dewi_headers: dict):
        response = client.get(f"{api_prefix}/reports/visits", headers=dewi_headers)

        assert response.json()["count"] == 0

    def test_counts(self, client: TestClient, api_prefix: str, manager_headers: dict):
        response = client.get(f"{api_prefix}/reports/visits/counts", headers=manager_headers)

        assert response.json()["data"] == {"pending_visits": 1, "suspicious_visits": 1, "pending_payments": 0}

    def test_approve_with_commitment(
        self, client: TestClient, api_prefix: str, budi_headers: dict, admin_headers: dict, asset_001
    ):
        promise = (date.today() + timedelta(days=5)).isoformat()
        submitted = client.post(
            f"{api_prefix}/reports/visits",
            json=_visit_payload(asset_001.id, commitment_date=promise),
            headers=budi_headers,
        ).json()["data"]

        response = client.patch(
            f"{api_prefix}/reports/visits/{submitted['id']}", json={"status": "APPROVED"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "APPROVED"
        asset = client.get(f"{api_prefix}/assets/{asset_001.id}", headers=admin_headers).json()["data"]
        assert asset["status"] == "JANJI_BAYAR"

    def test_reject(self, client: TestClient, api_prefix: str, admin_headers: dict):
        response = client.patch(
            f"{api_prefix}/reports/visits/{seed_id('visit-sample-002')}",
            json={"status": "REJECTED", "rejectionReason": "Tanpa foto"},
            headers=admin_headers,
        )

        data = response.json()["data"]
        assert data["status"] == "REJECTED"
        assert data["rejection_reason"] == "Tanpa foto"

    def test_collector_cannot_review(self, client: TestClient, api_prefix: str, budi_headers: dict):
        response = client.patch(
            f"{api_prefix}/reports/visits/{seed_id('visit-sample-002')}",
            json={"status": "APPROVED"},
            headers=budi_headers,
        )

        assert response.status_code == 403

    def test_review_twice(self, client: TestClient, api_prefix: str, admin_headers: dict):
        response = client.patch(
            f"{api_prefix}/reports/visits/{seed_id('visit-sample-001')}",
            json={"status": "APPROVED"},
            headers=admin_headers,
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "WK_002_ALREADY_PROCESSED"

    def test_invalid_decision(self, client: TestClient, api_prefix: str, admin_headers: dict):
        response = client.patch(
            f"{api_prefix}/reports/visits/{seed_id('visit-sample-002')}",
            json={"status": "LATER"},
            headers=admin_headers,
        )

        assert response.status_code == 400

    def test_review_unknown_report(self, client: TestClient, api_prefix: str, admin_headers: dict):
        response = client.patch(
            f"{api_prefix}/reports/visits/missing", json={"status": "APPROVED"}, headers=admin_headers
        )

        assert response.status_code == 404


class TestPaymentEndpoints:
    """Test cases for payment evidence"""

    def test_submit_and_match(
        self, client: TestClient, api_prefix: str, budi_headers: dict, admin_headers: dict, asset_001
    ):
        submitted = client.post(
            f"{api_prefix}/reports/payments",
            json={
                "assetId": asset_001.id,
                "paymentMethod": "TRANSFER",
                "paymentStatus": "PARTIAL",
                "paid_amount": 1_500_000,
            },
            headers=budi_headers,
        )
        assert submitted.status_code == 201
        report_id = submitted.json()["data"]["id"]

        response = client.patch(
            f"{api_prefix}/reports/payments/{report_id}", json={"status": "MATCHED"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "MATCHED"
        asset = client.get(f"{api_prefix}/assets/{asset_001.id}", headers=admin_headers).json()["data"]
        assert asset["total_arrears"] == 3_500_000

    def test_payment_on_unassigned_asset(self, client: TestClient, api_prefix: str, dewi_headers: dict, asset_001):
        response = client.post(
            f"{api_prefix}/reports/payments",
            json={"assetId": asset_001.id, "paymentMethod": "CASH", "paymentStatus": "FULL", "paid_amount": 100},
            headers=dewi_headers,
        )

        assert response.status_code == 403

    def test_invalid_payment_method(self, client: TestClient, api_prefix: str, budi_headers: dict, asset_001):
        response = client.post(
            f"{api_prefix}/reports/payments",
            json={"assetId": asset_001.id, "paymentMethod": "CHEQUE", "paymentStatus": "FULL"},
            headers=budi_headers,
        )

        assert response.status_code == 422

    def test_list_payments(self, client: TestClient, api_prefix: str, manager_headers: dict):
        response = client.get(f"{api_prefix}/reports/payments", params={"status": "MATCHED"}, headers=manager_headers)

        data = response.json()
        assert data["count"] == 1
        assert data["data"][0]["collector_name"] == "Budi Santoso"

    def test_manager_can_reject_payment(
        self, client: TestClient, api_prefix: str, budi_headers: dict, manager_headers: dict, asset_001
    ):
        report_id = client.post(
            f"{api_prefix}/reports/payments",
            json={"assetId": asset_001.id, "paymentMethod": "CASH", "paymentStatus": "FAILED"},
            headers=budi_headers,
        ).json()["data"]["id"]

        response = client.patch(
            f"{api_prefix}/reports/payments/{report_id}",
            json={"status": "REJECTED", "rejection_reason": "Tidak ada bukti"},
            headers=manager_headers,
        )

        assert response.json()["data"]["status"] == "REJECTED"
