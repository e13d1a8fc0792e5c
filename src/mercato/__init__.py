"""Mercato backend: schema-per-tenant data isolation for the retail and restaurant suite."""

__version__ = "0.1.0"
