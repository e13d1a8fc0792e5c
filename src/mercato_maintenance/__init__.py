"""Operator tooling for the Mercato tenancy layer.

Provisioning, schema verification and repair, and the deprecated
database-per-tenant entry points. Nothing under ``mercato`` imports this
package; request-serving code reaches tenant data only through the scoped
executor.
"""

__version__ = "0.1.0"
