"""Authentication API routes.

Provides endpoints for:
- Tenant staff login
- Platform admin login
- Inspecting the current session
"""

from fastapi import APIRouter

from mercato.api.dependencies import CurrentSession
from mercato.core.auth.schemas import (
    AdminLoginRequest,
    LoginRequest,
    SessionResponse,
    TokenResponse,
)
from mercato.core.auth.service import AuthSvc


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login to a tenant",
    description="Authenticate with tenant slug, username and password.",
)
async def login(data: LoginRequest, service: AuthSvc) -> TokenResponse:
    """Login as a tenant user."""
    return await service.login(
        tenant_slug=data.tenant_slug,
        username=data.username,
        password=data.password,
    )


@router.post(
    "/admin/login",
    response_model=TokenResponse,
    summary="Login as platform admin",
    description="Authenticate a platform superadmin. The session has no tenant.",
)
async def admin_login(data: AdminLoginRequest, service: AuthSvc) -> TokenResponse:
    """Login as a platform admin."""
    return await service.admin_login(email=data.email, password=data.password)


@router.get(
    "/me",
    response_model=SessionResponse,
    summary="Current session",
    description="Return the claims of the presented access token.",
)
async def me(ctx: CurrentSession) -> SessionResponse:
    """Return the current session."""
    return SessionResponse(
        user_id=ctx.user_id,
        tenant_id=ctx.tenant_id,
        is_superadmin=ctx.is_superadmin,
    )
