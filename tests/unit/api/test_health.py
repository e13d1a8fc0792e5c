"""Tests for health check endpoints."""

import pytest
from httpx import AsyncClient


pytestmark = pytest.mark.unit


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    async def test_liveness_returns_alive(self, client: AsyncClient) -> None:
        response = await client.get("/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    async def test_readiness_reports_unreachable_database(self, client: AsyncClient) -> None:
        response = await client.get("/health/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["checks"] == {"database": "unavailable", "tenant_directory": "unknown"}

    async def test_info_returns_app_metadata(self, client: AsyncClient) -> None:
        response = await client.get("/info")

        assert response.status_code == 200
        data = response.json()
        assert data["app"] == "Mercato"
        assert data["tenancy"]["schema_prefix"] == "tenant_"
        assert data["tenancy"]["shared_schema"] == "public"

    async def test_request_id_is_echoed(self, client: AsyncClient) -> None:
        response = await client.get("/health/live", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"
