"""Authentication service for tenant staff and platform admins."""

from typing import Annotated

import structlog
from fastapi import Depends

from mercato.api.dependencies import Directory, Executor, SharedExecutor
from mercato.config import settings
from mercato.core.auth.backend import create_access_token, verify_password
from mercato.core.auth.schemas import TokenResponse
from mercato.core.errors import UnauthorizedError
from mercato.core.tenancy import (
    ScopedTransactionExecutor,
    SharedSchemaExecutor,
    TenantDirectory,
)
from mercato.modules.admins.repos import PlatformAdminRepository
from mercato.modules.users.repos import UserRepository


logger = structlog.get_logger()


def _invalid_credentials() -> UnauthorizedError:
    return UnauthorizedError(
        "Invalid credentials",
        error_code="invalid_credentials",
    )


class AuthService:
    """Service for authentication operations.

    Tenant login looks the tenant up by slug, then checks the user inside
    that tenant's scoped transaction. Platform admins are checked against
    the shared schema only.
    """

    def __init__(
        self,
        directory: TenantDirectory,
        executor: ScopedTransactionExecutor,
        shared: SharedSchemaExecutor,
    ) -> None:
        self.directory = directory
        self.executor = executor
        self.shared = shared

    async def login(self, tenant_slug: str, username: str, password: str) -> TokenResponse:
        """Authenticate a tenant user.

        Unknown tenants, inactive tenants, unknown users and wrong passwords
        all produce the same error.

        Raises:
            UnauthorizedError: If credentials are invalid
        """
        tenant = await self.directory.find_by_slug(tenant_slug)
        if tenant is None:
            logger.info("login_failed", reason="unknown_tenant")
            raise _invalid_credentials()

        async with self.executor.scope(tenant.id) as db:
            user = await UserRepository(db).get_by_username(username)

        if user is None or not verify_password(password, user.password_hash):
            logger.info("login_failed", reason="bad_credentials", tenant_id=tenant.id)
            raise _invalid_credentials()

        if not user.is_active:
            raise UnauthorizedError(
                "Account is deactivated",
                error_code="account_inactive",
            )

        logger.info("login_succeeded", tenant_id=tenant.id, user_id=str(user.id))
        return self._token_response(create_access_token(user.id, tenant.id))

    async def admin_login(self, email: str, password: str) -> TokenResponse:
        """Authenticate a platform admin.

        Raises:
            UnauthorizedError: If credentials are invalid
        """
        async with self.shared.scope() as session:
            admin = await PlatformAdminRepository(session).get_by_email(email)

        if admin is None or not verify_password(password, admin.password_hash):
            logger.info("admin_login_failed")
            raise _invalid_credentials()

        if not admin.is_active:
            raise UnauthorizedError(
                "Account is deactivated",
                error_code="account_inactive",
            )

        logger.info("admin_login_succeeded", user_id=str(admin.id))
        return self._token_response(
            create_access_token(admin.id, None, is_superadmin=True)
        )

    @staticmethod
    def _token_response(access_token: str) -> TokenResponse:
        return TokenResponse(
            access_token=access_token,
            expires_in=settings.access_token_expire_minutes * 60,
        )


def get_auth_service(
    directory: Directory,
    executor: Executor,
    shared: SharedExecutor,
) -> AuthService:
    return AuthService(directory, executor, shared)


AuthSvc = Annotated[AuthService, Depends(get_auth_service)]
