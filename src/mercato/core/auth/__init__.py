"""Authentication: JWT sessions, password hashing and login."""

from mercato.core.auth.backend import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)
from mercato.core.auth.middleware import (
    RequestIdMiddleware,
    SessionLogContextMiddleware,
)
from mercato.core.auth.schemas import TokenData


__all__ = [
    "RequestIdMiddleware",
    "SessionLogContextMiddleware",
    "TokenData",
    "create_access_token",
    "decode_token",
    "hash_password",
    "verify_password",
]
