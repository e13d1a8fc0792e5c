"""Role-based access control over tenant-local tables."""

from mercato.core.permissions.checker import PermissionChecker, parse_permission


__all__ = [
    "PermissionChecker",
    "parse_permission",
]
