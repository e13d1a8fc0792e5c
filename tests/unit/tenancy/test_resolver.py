"""Unit tests for session-to-tenant resolution."""

import pytest
import structlog

from mercato.core.tenancy import (
    SHARED_SCHEMA_ONLY,
    InvalidTenantSessionError,
    MalformedTenantIdError,
    MissingTenantContextError,
    SessionContext,
    TenantResolver,
)


pytestmark = pytest.mark.unit


@pytest.fixture
def resolver(directory) -> TenantResolver:
    return TenantResolver(directory)


class TestTenantResolver:
    """Tests for TenantResolver.resolve."""

    async def test_active_tenant_resolves_to_its_id(self, resolver, active_tenant):
        ctx = SessionContext(user_id="u1", tenant_id=active_tenant.id)

        assert await resolver.resolve(ctx) == "abc123"

    async def test_superadmin_gets_shared_marker(self, resolver, directory):
        ctx = SessionContext(user_id="root", is_superadmin=True)

        assert await resolver.resolve(ctx) is SHARED_SCHEMA_ONLY
        assert directory.lookups == []

    async def test_superadmin_flag_wins_over_tenant_claim(self, resolver):
        ctx = SessionContext(user_id="root", tenant_id="abc123", is_superadmin=True)

        assert await resolver.resolve(ctx) is SHARED_SCHEMA_ONLY

    @pytest.mark.parametrize("tenant_id", [None, ""])
    async def test_missing_tenant_requires_relogin(self, resolver, directory, tenant_id):
        ctx = SessionContext(user_id="u1", tenant_id=tenant_id)

        with pytest.raises(MissingTenantContextError) as exc_info:
            await resolver.resolve(ctx)

        assert exc_info.value.status_code == 401
        assert directory.lookups == []

    async def test_malformed_tenant_never_reaches_directory(self, resolver, directory):
        ctx = SessionContext(user_id="u1", tenant_id="abc'; DROP TABLE tenants; --")

        with pytest.raises(MalformedTenantIdError):
            await resolver.resolve(ctx)

        assert directory.lookups == []

    async def test_unknown_and_inactive_tenants_look_the_same(self, resolver, inactive_tenant):
        with pytest.raises(InvalidTenantSessionError) as unknown:
            await resolver.resolve(SessionContext(user_id="u1", tenant_id="nosuch"))
        with pytest.raises(InvalidTenantSessionError) as inactive:
            await resolver.resolve(
                SessionContext(user_id="u1", tenant_id=inactive_tenant.id)
            )

        assert unknown.value.message == inactive.value.message
        assert unknown.value.error_code == inactive.value.error_code == "invalid_session"
        assert "nosuch" not in unknown.value.message


class TestLogContext:
    """The tenant ID joins the log context only once it is known to be safe."""

    @pytest.fixture(autouse=True)
    def clean_context(self):
        structlog.contextvars.clear_contextvars()
        yield
        structlog.contextvars.clear_contextvars()

    async def test_validated_tenant_is_bound(self, resolver, active_tenant):
        await resolver.resolve(SessionContext(user_id="u1", tenant_id=active_tenant.id))

        assert structlog.contextvars.get_contextvars()["tenant_id"] == "abc123"

    async def test_malformed_tenant_is_not_bound(self, resolver):
        ctx = SessionContext(user_id="u1", tenant_id='x"; DROP SCHEMA public; --')

        with pytest.raises(MalformedTenantIdError):
            await resolver.resolve(ctx)

        assert "tenant_id" not in structlog.contextvars.get_contextvars()
