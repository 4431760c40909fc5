"""Integration tests for /health, /healthz and /metrics endpoints."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from backend.app.main import app


@pytest.fixture
def client() -> TestClient:
    """Create test client."""
    return TestClient(app)


class TestHealthEndpoint:
    """Test /health and /healthz endpoints."""

    def test_health_always_ok(self, client: TestClient) -> None:
        """Test /health returns 200 while the process runs."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @patch("backend.app.api.routes.health.check_db")
    def test_healthz_returns_200_when_db_ok(
        self, mock_check_db: MagicMock, client: TestClient
    ) -> None:
        """Test /healthz returns 200 when the DB is reachable."""
        mock_check_db.return_value = (True, "ok")

        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"]["db"] == "ok"

    @patch("backend.app.api.routes.health.check_db")
    def test_healthz_returns_503_when_db_fails(
        self, mock_check_db: MagicMock, client: TestClient
    ) -> None:
        """Test /healthz returns 503 when DB check fails."""
        mock_check_db.return_value = (False, "connection refused")

        response = client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["db"] == "connection refused"


class TestMetricsEndpoint:
    """Test /metrics endpoint."""

    def test_metrics_returns_prometheus_format(self, client: TestClient) -> None:
        """Test /metrics returns Prometheus text format."""
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]

    def test_metrics_includes_sync_metrics(self, client: TestClient) -> None:
        """Test /metrics includes auto-save and normalization metrics."""
        from backend.app.utils.metrics import metrics

        metrics.record_save("personal", "saved", 12.5)
        metrics.inc_normalization_skip("hotel", "missing_price")
        metrics.inc_duplicate_skipped("flight", 2)

        response = client.get("/metrics")

        assert response.status_code == 200
        text = response.text
        assert "itinerary_saves_total" in text
        assert "itinerary_save_latency_ms" in text
        assert "normalization_skips_total" in text
        assert "duplicate_events_skipped_total" in text


class TestRootEndpoint:
    """Test root endpoint."""

    def test_root_returns_api_info(self, client: TestClient) -> None:
        """Test root endpoint returns API information."""
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Itinerary Sync API"
        assert data["version"] == "0.1.0"
