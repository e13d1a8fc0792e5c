"""Import every model so both registries are complete before mapping.

Relationships refer to each other by name ("User", "Role"); SQLAlchemy
resolves them at mapper configuration, which needs all classes loaded.
"""

from mercato.core.database.base import SharedBase, TenantBase
from mercato.core.permissions.models import Permission, Role, UserRole, role_permissions
from mercato.core.tenancy.models import Tenant
from mercato.modules.admins.models import PlatformAdmin
from mercato.modules.products.models import Product
from mercato.modules.users.models import User


__all__ = [
    "Permission",
    "PlatformAdmin",
    "Product",
    "Role",
    "SharedBase",
    "Tenant",
    "TenantBase",
    "User",
    "UserRole",
    "role_permissions",
]
