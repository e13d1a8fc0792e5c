"""Tenants module - superadmin tenant administration."""

from mercato.modules.tenants.routes import router


__all__ = ["router"]
