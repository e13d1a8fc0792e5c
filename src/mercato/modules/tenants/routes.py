"""Tenant administration routes for platform superadmins.

These run on the shared-schema path. They never open a tenant scope.
"""

from fastapi import APIRouter

from mercato.api.dependencies import Directory, SharedDB, Superadmin
from mercato.core.errors import NotFoundError
from mercato.core.tenancy.models import Tenant
from mercato.modules.tenants.schemas import (
    TenantDetailResponse,
    TenantListResponse,
    TenantResponse,
)


router = APIRouter(prefix="/admin/tenants", tags=["tenants"])


@router.get(
    "",
    response_model=TenantListResponse,
    summary="List tenants",
    description="List registered tenants. Superadmin only.",
)
async def list_tenants(
    _admin: Superadmin,
    directory: Directory,
    include_inactive: bool = False,
) -> TenantListResponse:
    """List tenants."""
    tenants = await directory.list_tenants(include_inactive=include_inactive)
    return TenantListResponse(
        items=[TenantResponse.model_validate(t) for t in tenants],
        total=len(tenants),
    )


@router.get(
    "/{tenant_id}",
    response_model=TenantDetailResponse,
    summary="Get tenant",
    description="Get one tenant, active or not. Superadmin only.",
)
async def get_tenant(tenant_id: str, session: SharedDB) -> TenantDetailResponse:
    """Get a tenant by ID."""
    tenant = await session.get(Tenant, tenant_id)
    if tenant is None:
        raise NotFoundError("Tenant not found", resource="tenant")
    return TenantDetailResponse.model_validate(tenant)
