"""Structured logging: process configuration and request access logs."""

from mercato.core.logging.config import configure_logging
from mercato.core.logging.middleware import RequestLoggingMiddleware


__all__ = ["RequestLoggingMiddleware", "configure_logging"]
