"""Permission checking logic.

Roles and permissions are tenant-local, so every lookup runs through the
scoped handle of the current request and sees only that tenant's rows.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from mercato.core.permissions.models import Role, UserRole
from mercato.core.tenancy.session import TenantSession


def parse_permission(name: str) -> tuple[str, str]:
    """Split ``"resource:action"`` into its parts.

    Raises:
        ValueError: If the name is not of the form resource:action
    """
    resource, sep, action = name.partition(":")
    if not sep or not resource or not action:
        raise ValueError(f"Permission must look like 'resource:action', got {name!r}")
    return resource, action


class PermissionChecker:
    """Evaluates a user's permissions from their assigned roles."""

    def __init__(self, db: TenantSession) -> None:
        self.db = db

    async def get_user_roles(self, user_id: UUID) -> list[Role]:
        """Get all roles assigned to a user in the current tenant."""
        stmt = (
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .options(selectinload(Role.permissions))
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def has_permission(self, user_id: UUID, resource: str, action: str) -> bool:
        """Check if a user has a specific permission.

        Args:
            user_id: The user's UUID
            resource: The resource to check (e.g., "products")
            action: The action to check (e.g., "read", "write")
        """
        roles = await self.get_user_roles(user_id)
        return any(role.has_permission(resource, action) for role in roles)

    async def has_all_permissions(
        self,
        user_id: UUID,
        permissions: list[tuple[str, str]],
    ) -> bool:
        """Check if a user has every one of the given (resource, action) pairs."""
        roles = await self.get_user_roles(user_id)
        return all(
            any(role.has_permission(resource, action) for role in roles)
            for resource, action in permissions
        )

    async def get_user_permissions(self, user_id: UUID) -> set[str]:
        """Get all permissions for a user as "resource:action" strings."""
        roles = await self.get_user_roles(user_id)
        return {permission.name for role in roles for permission in role.permissions}
