"""Products module - a tenant's catalog."""

from mercato.modules.products.routes import router


__all__ = ["router"]
