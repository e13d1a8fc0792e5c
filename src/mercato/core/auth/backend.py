"""Password hashing and JWT access tokens.

The access token carries the session claims the tenancy resolver needs:
``sub`` (user ID), ``tenant_id`` and ``is_superadmin``.
"""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from mercato.config import settings
from mercato.core.auth.schemas import TokenData
from mercato.core.constants import ACCESS_TOKEN_JTI_LENGTH, BCRYPT_ROUNDS


pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against a stored bcrypt hash."""
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    user_id: UUID | str,
    tenant_id: str | None,
    *,
    is_superadmin: bool = False,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token.

    Args:
        user_id: The user's ID
        tenant_id: The tenant's internal ID, None for platform admins
        is_superadmin: Mark the session as platform-level
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT access token
    """
    now = datetime.now(UTC)
    expire = now + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )

    to_encode: dict[str, Any] = {
        "sub": str(user_id),
        "exp": expire,
        "iat": now,
        "type": "access",
        "jti": secrets.token_urlsafe(ACCESS_TOKEN_JTI_LENGTH),
    }
    if tenant_id is not None:
        to_encode["tenant_id"] = tenant_id
    if is_superadmin:
        to_encode["is_superadmin"] = True

    return jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_token(token: str) -> TokenData | None:
    """Decode and validate a JWT token.

    A token without ``tenant_id`` still decodes: deciding whether the
    session may proceed without a tenant is the resolver's job.

    Args:
        token: The JWT token to decode

    Returns:
        TokenData if valid, None if invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError:
        return None

    user_id = payload.get("sub")
    exp = payload.get("exp")
    if not user_id or exp is None:
        return None

    tenant_id = payload.get("tenant_id")
    if tenant_id is not None and not isinstance(tenant_id, str):
        return None

    return TokenData(
        user_id=str(user_id),
        tenant_id=tenant_id,
        is_superadmin=payload.get("is_superadmin") is True,
        exp=datetime.fromtimestamp(exp, tz=UTC),
        type=payload.get("type", "access"),
    )
