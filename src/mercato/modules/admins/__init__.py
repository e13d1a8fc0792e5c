"""Admins module - platform superadmin accounts in the shared schema."""
