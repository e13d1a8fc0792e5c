"""Authentication schemas for token handling and login."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from mercato.core.constants import (
    MAX_PASSWORD_LENGTH,
    MAX_SLUG_LENGTH,
    MAX_USERNAME_LENGTH,
)
from mercato.core.tenancy.resolver import SessionContext


class TokenData(BaseModel):
    """Data extracted from a JWT access token.

    Attributes:
        user_id: The user's ID (tenant user or platform admin)
        tenant_id: The tenant's internal ID; absent for superadmins
        is_superadmin: Whether the token was issued to a platform admin
        exp: Token expiration time
        type: Token type
    """

    user_id: str
    tenant_id: str | None = None
    is_superadmin: bool = False
    exp: datetime
    type: str = "access"

    def to_session_context(self) -> SessionContext:
        return SessionContext(
            user_id=self.user_id,
            tenant_id=self.tenant_id,
            is_superadmin=self.is_superadmin,
        )


class LoginRequest(BaseModel):
    """Tenant staff login."""

    tenant_slug: str = Field(..., min_length=1, max_length=MAX_SLUG_LENGTH)
    username: str = Field(..., min_length=1, max_length=MAX_USERNAME_LENGTH)
    password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_LENGTH)


class AdminLoginRequest(BaseModel):
    """Platform admin login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=MAX_PASSWORD_LENGTH)


class TokenResponse(BaseModel):
    """Access token returned after login.

    Attributes:
        access_token: JWT for API access
        token_type: Always "bearer"
        expires_in: Access token expiration in seconds
    """

    access_token: str
    token_type: str = "bearer"
    expires_in: int


class SessionResponse(BaseModel):
    """The claims of the current session."""

    user_id: str
    tenant_id: str | None
    is_superadmin: bool
