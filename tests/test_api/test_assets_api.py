"""
Tests for the asset registry endpoints.
"""
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from watukobu.core.exceptions import DatabaseError
from watukobu.services.asset_service import AssetService


class TestAssetAccess:
    """Test cases for identity and role gates"""

    def test_missing_user_header(self, client: TestClient, api_prefix: str, seeded):
        response = client.get(f"{api_prefix}/assets")

        assert response.status_code == 401
        data = response.json()
        assert data["success"] is False
        assert data["error_code"] == "WK_005"

    def test_unknown_user(self, client: TestClient, api_prefix: str, seeded):
        response = client.get(f"{api_prefix}/assets", headers={"X-User-ID": "nobody"})

        assert response.status_code == 401

    def test_collector_cannot_create(self, client: TestClient, api_prefix: str, budi_headers: dict):
        response = client.post(f"{api_prefix}/assets", json={"loanId": "X-1"}, headers=budi_headers)

        assert response.status_code == 403
        assert response.json()["error_code"] == "WK_006"

    def test_manager_cannot_delete(self, client: TestClient, api_prefix: str, manager_headers: dict, asset_001):
        response = client.delete(f"{api_prefix}/assets/{asset_001.id}", headers=manager_headers)

        assert response.status_code == 403

    def test_error_carries_request_correlation_id(self, client: TestClient, api_prefix: str, admin_headers: dict):
        response = client.get(f"{api_prefix}/assets/missing", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["correlation_id"] == "test-correlation-123"
        assert response.headers["X-Correlation-ID"] == "test-correlation-123"


class TestAssetListing:
    """Test cases for list, get and statistics"""

    def test_admin_lists_everything(self, client: TestClient, api_prefix: str, admin_headers: dict):
        response = client.get(f"{api_prefix}/assets", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 5
        assert data["data"][0]["loan_id"] == "LOAN-2024-003"
        assert data["data"][0]["collector"]["name"] == "Budi Santoso"

    def test_collector_only_sees_own(self, client: TestClient, api_prefix: str, dewi_headers: dict, budi):
        response = client.get(f"{api_prefix}/assets", params={"collectorId": budi.id}, headers=dewi_headers)

        assert response.status_code == 200
        loan_ids = {a["loan_id"] for a in response.json()["data"]}
        assert loan_ids == {"LOAN-2024-004", "LOAN-2024-005"}

    def test_query_filters(self, client: TestClient, api_prefix: str, admin_headers: dict):
        response = client.get(
            f"{api_prefix}/assets",
            params={"status": "MACET", "minArrears": 5_000_000},
            headers=admin_headers,
        )

        assert {a["loan_id"] for a in response.json()["data"]} == {"LOAN-2024-001", "LOAN-2024-003"}

    def test_collector_cannot_open_other_asset(
        self, client: TestClient, api_prefix: str, dewi_headers: dict, asset_001
    ):
        response = client.get(f"{api_prefix}/assets/{asset_001.id}", headers=dewi_headers)

        assert response.status_code == 403

    def test_collector_opens_own_asset(self, client: TestClient, api_prefix: str, budi_headers: dict, asset_001):
        response = client.get(f"{api_prefix}/assets/{asset_001.id}", headers=budi_headers)

        assert response.status_code == 200
        assert response.json()["data"]["debtor_name"] == "Ahmad Wijaya"

    def test_stats(self, client: TestClient, api_prefix: str, manager_headers: dict):
        response = client.get(f"{api_prefix}/assets/stats", headers=manager_headers)

        assert response.status_code == 200
        assert response.json()["data"]["total"] == 5

    def test_recent(self, client: TestClient, api_prefix: str, admin_headers: dict):
        response = client.get(f"{api_prefix}/assets/recent", params={"limit": 2}, headers=admin_headers)

        assert response.json()["count"] == 2


class TestAssetWrites:
    """Test cases for create, update, delete and import"""

    def test_create(self, client: TestClient, api_prefix: str, admin_headers: dict):
        response = client.post(
            f"{api_prefix}/assets",
            json={"nomorAccount": "LOAN-2025-500", "namaDebitur": "Sri Wahyuni", "totalTunggakan": 2500000},
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["loan_id"] == "LOAN-2025-500"
        assert data["total_arrears"] == 2_500_000
        assert data["collector_id"] is None

    def test_create_duplicate(self, client: TestClient, api_prefix: str, admin_headers: dict):
        response = client.post(f"{api_prefix}/assets", json={"loanId": "LOAN-2024-001"}, headers=admin_headers)

        assert response.status_code == 409

    def test_create_without_loan_id(self, client: TestClient, api_prefix: str, admin_headers: dict):
        response = client.post(f"{api_prefix}/assets", json={"debtorName": "Anon"}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["error_code"] == "WK_001_LOAN_ID"

    def test_create_database_failure(self, client: TestClient, api_prefix: str, admin_headers: dict):
        failure = AsyncMock(side_effect=DatabaseError("database is locked", operation="create_asset"))
        with patch.object(AssetService, "create_asset", failure):
            response = client.post(
                f"{api_prefix}/assets", json={"loanId": "LOAN-2025-900"}, headers=admin_headers
            )

        assert response.status_code == 500
        assert response.json()["error_code"] == "INTERNAL_SERVER_ERROR"

    def test_patch(self, client: TestClient, api_prefix: str, admin_headers: dict, asset_001):
        response = client.patch(
            f"{api_prefix}/assets/{asset_001.id}", json={"phone": "0899"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert response.json()["data"]["phone"] == "0899"
        assert response.json()["data"]["total_arrears"] == 5_000_000

    def test_delete(self, client: TestClient, api_prefix: str, admin_headers: dict, asset_001):
        asset_id = asset_001.id
        response = client.delete(f"{api_prefix}/assets/{asset_id}", headers=admin_headers)

        assert response.status_code == 200
        assert client.get(f"{api_prefix}/assets/{asset_id}", headers=admin_headers).status_code == 404

    def test_bulk_delete(self, client: TestClient, api_prefix: str, admin_headers: dict, asset_001):
        response = client.post(
            f"{api_prefix}/assets/bulk-delete",
            json={"asset_ids": [asset_001.id, "missing"]},
            headers=admin_headers,
        )

        assert response.json()["deleted_count"] == 1

    def test_unassign(self, client: TestClient, api_prefix: str, admin_headers: dict, asset_001):
        response = client.post(f"{api_prefix}/assets/{asset_001.id}/unassign", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["collector_id"] is None

    def test_import(self, client: TestClient, api_prefix: str, admin_headers: dict):
        response = client.post(
            f"{api_prefix}/assets/import",
            json={"assets": [{"loanId": "LOAN-2025-600"}, {"loanId": "LOAN-2024-001"}]},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["imported_count"] == 1
        assert data["skipped_count"] == 1

    def test_import_spreadsheet_row(self, client: TestClient, api_prefix: str, admin_headers: dict):
        row = {"nomorAccount": 7001002003, "namaDebitur": "Rina", "totalTunggakan": "", "tanggalRealisasi": ""}
        response = client.post(f"{api_prefix}/assets/import", json={"assets": [row]}, headers=admin_headers)

        assert response.json()["imported_count"] == 1
        listed = client.get(f"{api_prefix}/assets", params={"search": "7001002003"}, headers=admin_headers).json()
        assert listed["data"][0]["loan_id"] == "7001002003"
        assert listed["data"][0]["total_arrears"] == 0.0

    def test_bank_csv_import(self, client: TestClient, api_prefix: str, admin_headers: dict):
        content = "ACCTNO;NAMA DEBITUR;KELOLAAN\n7001;Hendra;AKTIF\n7002;Lina;PASIF\n"
        response = client.post(
            f"{api_prefix}/assets/import/bank-csv", json={"content": content}, headers=admin_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["imported_count"] == 2
        assert data["original_row_count"] == 2

    def test_bank_csv_without_columns(self, client: TestClient, api_prefix: str, admin_headers: dict):
        response = client.post(
            f"{api_prefix}/assets/import/bank-csv", json={"content": "A;B\n1;2\n"}, headers=admin_headers
        )

        assert response.status_code == 400
