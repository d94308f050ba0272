"""
Tests for the health check endpoints.
"""
import time

from fastapi.testclient import TestClient

from watukobu.core.config import settings


class TestHealthEndpoint:
    """Test cases for the basic health endpoint."""

    def test_health_check_success(self, client: TestClient, api_prefix: str):
        """Test that the health endpoint returns successful response."""
        response = client.get(f"{api_prefix}/health")

        assert response.status_code == 200
        data = response.json()

        assert data["status"] == "healthy"
        assert data["version"] == settings.service_version
        assert data["service_name"] == settings.service_name
        assert isinstance(data["uptime_seconds"], float)
        assert data["uptime_seconds"] >= 0
        assert "timestamp" in data

    def test_health_needs_no_user(self, client: TestClient, api_prefix: str):
        """Health checks are served without an X-User-ID header."""
        response = client.get(f"{api_prefix}/health")

        assert response.status_code == 200

    def test_correlation_id_echoed(self, client: TestClient, api_prefix: str):
        response = client.get(f"{api_prefix}/health", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"

    def test_correlation_id_generated(self, client: TestClient, api_prefix: str):
        response = client.get(f"{api_prefix}/health")

        assert len(response.headers["X-Correlation-ID"]) == 8

    def test_health_uptime_increases(self, client: TestClient, api_prefix: str):
        """Test that uptime increases between requests."""
        uptime1 = client.get(f"{api_prefix}/health").json()["uptime_seconds"]
        time.sleep(0.1)
        uptime2 = client.get(f"{api_prefix}/health").json()["uptime_seconds"]

        assert uptime2 - uptime1 >= 0.1


class TestDetailedHealthEndpoint:
    """Test cases for the detailed health endpoint."""

    def test_detailed_health_check_success(self, client: TestClient, api_prefix: str):
        response = client.get(f"{api_prefix}/health/detailed")

        assert response.status_code == 200
        data = response.json()

        assert data["status"] == "healthy"
        assert data["checks"] == {"database": "healthy"}
        assert data["service_name"] == settings.service_name
