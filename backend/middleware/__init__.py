"""Middleware package for response hardening and request logging."""

from .logging import RequestLoggingMiddleware, configure_request_logging
from .security import SecurityHeadersMiddleware

__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "configure_request_logging",
]
