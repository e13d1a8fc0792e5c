"""Users module - tenant-local staff accounts."""
