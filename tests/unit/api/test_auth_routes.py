"""Tests for session inspection and token handling at the API edge."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from mercato.core.auth.backend import create_access_token
from tests.conftest import SUPERADMIN_ID, TENANT_USER_ID


pytestmark = pytest.mark.unit


class TestCurrentSession:
    """Tests for GET /api/v1/auth/me."""

    async def test_tenant_session_claims(self, client: AsyncClient, tenant_headers) -> None:
        response = await client.get("/api/v1/auth/me", headers=tenant_headers)

        assert response.status_code == 200
        assert response.json() == {
            "user_id": TENANT_USER_ID,
            "tenant_id": "abc123",
            "is_superadmin": False,
        }

    async def test_superadmin_session_has_no_tenant(
        self, client: AsyncClient, superadmin_headers
    ) -> None:
        response = await client.get("/api/v1/auth/me", headers=superadmin_headers)

        assert response.status_code == 200
        assert response.json() == {
            "user_id": SUPERADMIN_ID,
            "tenant_id": None,
            "is_superadmin": True,
        }

    async def test_missing_token(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/auth/me")

        assert response.status_code == 401
        assert response.json()["type"].endswith("/errors/missing_token")

    async def test_garbage_token(self, client: AsyncClient) -> None:
        response = await client.get(
            "/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
        assert response.json()["type"].endswith("/errors/invalid_token")

    async def test_expired_token(self, client: AsyncClient) -> None:
        token = create_access_token(
            TENANT_USER_ID, "abc123", expires_delta=timedelta(minutes=-5)
        )

        response = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
        )

        assert response.status_code == 401


class TestLoginValidation:
    """Request validation for the login endpoints; no database is reached."""

    async def test_login_requires_slug(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/login",
            json={"username": "alice", "password": "secret"},
        )

        assert response.status_code == 422
        fields = [e["field"] for e in response.json()["errors"]]
        assert "tenant_slug" in fields

    async def test_admin_login_requires_email(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/v1/auth/admin/login",
            json={"email": "not-an-email", "password": "secret"},
        )

        assert response.status_code == 422
