"""Tests for how requests are routed to tenant scopes.

The app fixture swaps in an in-memory directory and session factory, so
these tests see which scope a request would open without a database.
"""

import pytest
import structlog
from httpx import AsyncClient

from mercato.core.auth.backend import create_access_token
from mercato.core.tenancy import identifiers
from tests.conftest import TENANT_USER_ID


pytestmark = pytest.mark.unit


def bearer(tenant_id: str | None, user_id: str = TENANT_USER_ID) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, tenant_id)}"}


class TestTenantScopedRoutes:
    """Tests for routes that require a tenant scope."""

    async def test_session_without_tenant_must_log_in_again(
        self, client: AsyncClient, session_factory
    ) -> None:
        response = await client.get("/api/v1/products", headers=bearer(None))

        assert response.status_code == 401
        data = response.json()
        assert data["type"].endswith("/errors/missing_tenant_context")
        assert "log in again" in data["detail"]
        assert session_factory.sessions == []

    async def test_malformed_tenant_is_rejected(
        self, client: AsyncClient, session_factory, directory
    ) -> None:
        response = await client.get(
            "/api/v1/products", headers=bearer('abc", "public')
        )

        assert response.status_code == 400
        assert "public" not in response.json()["detail"]
        assert directory.lookups == []
        assert session_factory.sessions == []

    async def test_rejected_tenant_id_stays_out_of_the_log_context(
        self, client: AsyncClient, monkeypatch
    ) -> None:
        events: list[tuple[str, dict]] = []

        class RecordingLogger:
            def warning(self, event: str, **fields) -> None:
                events.append((event, {**structlog.contextvars.get_contextvars(), **fields}))

        monkeypatch.setattr(identifiers, "logger", RecordingLogger())
        hostile = 'x"; DROP SCHEMA public; --'

        response = await client.get("/api/v1/products", headers=bearer(hostile))

        assert response.status_code == 400
        [(event, fields)] = events
        assert event == "tenant_id_rejected"
        assert fields["user_id"] == TENANT_USER_ID
        assert "tenant_id" not in fields
        assert hostile not in repr(fields)

    async def test_inactive_tenant_is_rejected(
        self, client: AsyncClient, inactive_tenant, session_factory
    ) -> None:
        response = await client.get(
            "/api/v1/products", headers=bearer(inactive_tenant.id)
        )

        assert response.status_code == 401
        assert response.json()["type"].endswith("/errors/invalid_session")
        assert session_factory.sessions == []

    async def test_unknown_tenant_is_rejected_like_inactive(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/products", headers=bearer("nosuch"))

        assert response.status_code == 401
        assert response.json()["type"].endswith("/errors/invalid_session")

    async def test_superadmin_cannot_open_tenant_scope(
        self, client: AsyncClient, superadmin_headers, session_factory
    ) -> None:
        response = await client.get("/api/v1/products", headers=superadmin_headers)

        assert response.status_code == 403
        assert response.json()["type"].endswith("/errors/tenant_session_required")
        assert session_factory.sessions == []

    async def test_permission_check_runs_in_tenant_scope(
        self, client: AsyncClient, tenant_headers, session_factory
    ) -> None:
        response = await client.get("/api/v1/products", headers=tenant_headers)

        assert response.status_code == 403
        data = response.json()
        assert data["type"].endswith("/errors/permission_denied")
        assert data["required_permissions"] == ["products:read"]

        # One scoped transaction, pinned before the role lookup, rolled back
        assert len(session_factory.sessions) == 1
        session = session_factory.sessions[0]
        assert session.search_path == ["tenant_abc123", "public"]
        assert session.statements[0].startswith("SET LOCAL search_path")
        assert session.transaction.rolled_back

    async def test_non_uuid_subject_is_rejected(
        self, client: AsyncClient, active_tenant
    ) -> None:
        response = await client.get(
            "/api/v1/products", headers=bearer(active_tenant.id, user_id="alice")
        )

        assert response.status_code == 401
        assert response.json()["type"].endswith("/errors/invalid_token")


class TestTenantAdminRoutes:
    """Tests for the superadmin-only tenant directory routes."""

    async def test_tenant_user_is_forbidden(self, client: AsyncClient, tenant_headers) -> None:
        response = await client.get("/api/v1/admin/tenants", headers=tenant_headers)

        assert response.status_code == 403
        assert response.json()["type"].endswith("/errors/not_superadmin")

    async def test_superadmin_lists_active_tenants(
        self, client: AsyncClient, superadmin_headers, session_factory
    ) -> None:
        response = await client.get("/api/v1/admin/tenants", headers=superadmin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["slug"] == "acme"
        assert "database_url" not in data["items"][0]
        assert session_factory.sessions == []

    async def test_superadmin_lists_inactive_tenants_on_request(
        self, client: AsyncClient, superadmin_headers
    ) -> None:
        response = await client.get(
            "/api/v1/admin/tenants",
            params={"include_inactive": "true"},
            headers=superadmin_headers,
        )

        assert response.status_code == 200
        assert {t["slug"] for t in response.json()["items"]} == {"acme", "closed-shop"}
