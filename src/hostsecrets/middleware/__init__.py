"""HTTP middleware for the host API."""

from hostsecrets.middleware.system_trace import SystemTraceMiddleware

__all__ = ["SystemTraceMiddleware"]
