"""
Tests for the user and profile endpoints.
"""
from fastapi.testclient import TestClient


class TestUserEndpoints:
    """Test cases for team listing and profiles"""

    def test_list_collectors(self, client: TestClient, api_prefix: str, manager_headers: dict):
        response = client.get(f"{api_prefix}/users", params={"role": "COLLECTOR"}, headers=manager_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert data["data"][0]["assigned_count"] == 3

    def test_collector_cannot_list(self, client: TestClient, api_prefix: str, budi_headers: dict):
        response = client.get(f"{api_prefix}/users", headers=budi_headers)

        assert response.status_code == 403

    def test_me(self, client: TestClient, api_prefix: str, budi_headers: dict):
        response = client.get(f"{api_prefix}/users/me", headers=budi_headers)

        data = response.json()["data"]
        assert data["email"] == "budi.santoso@watukobu.co.id"
        assert data["role"] == "COLLECTOR"

    def test_get_profile(self, client: TestClient, api_prefix: str, admin_headers: dict, dewi):
        response = client.get(f"{api_prefix}/users/{dewi.id}/profile", headers=admin_headers)

        assert response.json()["data"]["name"] == "Dewi Lestari"

    def test_update_own_profile(self, client: TestClient, api_prefix: str, budi_headers: dict, budi):
        response = client.put(
            f"{api_prefix}/users/{budi.id}/profile",
            json={"name": "Budi Santoso S.E.", "phone": "0812000111", "avatarUrl": "/uploads/avatar.png"},
            headers=budi_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["name"] == "Budi Santoso S.E."
        assert data["avatar_url"] == "/uploads/avatar.png"

    def test_update_other_profile(self, client: TestClient, api_prefix: str, budi_headers: dict, dewi):
        response = client.put(
            f"{api_prefix}/users/{dewi.id}/profile", json={"name": "Dewi"}, headers=budi_headers
        )

        assert response.status_code == 403

    def test_update_with_taken_email(self, client: TestClient, api_prefix: str, budi_headers: dict, budi):
        response = client.put(
            f"{api_prefix}/users/{budi.id}/profile",
            json={"name": "Budi", "email": "admin@watukobu.co.id"},
            headers=budi_headers,
        )

        assert response.status_code == 409

    def test_update_blank_name(self, client: TestClient, api_prefix: str, budi_headers: dict, budi):
        response = client.put(
            f"{api_prefix}/users/{budi.id}/profile", json={"name": " "}, headers=budi_headers
        )

        assert response.status_code == 400
