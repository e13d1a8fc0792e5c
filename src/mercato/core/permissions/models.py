"""Permission system database models.

These are tenant-local tables: they carry no schema and resolve through
the scoped transaction's ``search_path``. Each tenant schema has its own
roles and permissions.

- Role: A named set of permissions
- Permission: An action that can be performed on a resource
- UserRole: Junction table linking users to roles
"""

from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Column, ForeignKey, String, Table, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mercato.core.constants import (
    MAX_DESCRIPTION_LENGTH,
    MAX_PERMISSION_ACTION_LENGTH,
    MAX_PERMISSION_RESOURCE_LENGTH,
    MAX_ROLE_NAME_LENGTH,
)
from mercato.core.database.base import TenantBase, TimestampMixin, UUIDMixin


if TYPE_CHECKING:
    from mercato.modules.users.models import User


WILDCARD = "*"

role_permissions = Table(
    "role_permissions",
    TenantBase.metadata,
    Column(
        "role_id", Uuid, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True
    ),
    Column(
        "permission_id",
        Uuid,
        ForeignKey("permissions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Permission(TenantBase, UUIDMixin, TimestampMixin):
    """An action on a resource, named ``resource:action``.

    Examples:
        - resource="products", action="read" -> Can list products
        - resource="products", action="*" -> Any action on products
        - resource="*", action="*" -> Everything
    """

    __tablename__ = "permissions"
    __table_args__ = (
        UniqueConstraint("resource", "action", name="uq_permission_resource_action"),
    )

    resource: Mapped[str] = mapped_column(
        String(MAX_PERMISSION_RESOURCE_LENGTH),
        nullable=False,
        index=True,
    )
    action: Mapped[str] = mapped_column(
        String(MAX_PERMISSION_ACTION_LENGTH),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(
        String(MAX_DESCRIPTION_LENGTH),
        nullable=True,
    )

    roles: Mapped[list["Role"]] = relationship(
        "Role",
        secondary=role_permissions,
        back_populates="permissions",
    )

    @property
    def name(self) -> str:
        """Return the permission name as 'resource:action'."""
        return f"{self.resource}:{self.action}"

    def grants(self, resource: str, action: str) -> bool:
        """Check whether this permission covers resource:action."""
        return self.resource in (resource, WILDCARD) and self.action in (
            action,
            WILDCARD,
        )

    def __repr__(self) -> str:
        return f"<Permission({self.resource}:{self.action})>"


class Role(TenantBase, UUIDMixin, TimestampMixin):
    """A named set of permissions within one tenant.

    Attributes:
        name: Role name (e.g., "owner", "cashier")
        description: Human-readable description of the role
        is_default: Whether this role is assigned to new users by default
    """

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(
        String(MAX_ROLE_NAME_LENGTH),
        nullable=False,
        unique=True,
    )
    description: Mapped[str | None] = mapped_column(
        String(MAX_DESCRIPTION_LENGTH),
        nullable=True,
    )
    is_default: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
    )

    permissions: Mapped[list["Permission"]] = relationship(
        "Permission",
        secondary=role_permissions,
        back_populates="roles",
        lazy="selectin",
    )
    users: Mapped[list["User"]] = relationship(
        "User",
        secondary="user_roles",
        back_populates="roles",
    )

    def has_permission(self, resource: str, action: str) -> bool:
        """Check if this role has a specific permission, wildcards included."""
        return any(permission.grants(resource, action) for permission in self.permissions)

    def __repr__(self) -> str:
        return f"<Role(id={self.id}, name={self.name})>"


class UserRole(TenantBase, TimestampMixin):
    """Junction table linking users to roles.

    A user's effective permissions are the union of all their roles'.
    """

    __tablename__ = "user_roles"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    role_id: Mapped[UUID] = mapped_column(
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<UserRole(user_id={self.user_id}, role_id={self.role_id})>"
