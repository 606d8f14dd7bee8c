"""
HTTP middleware applied to every response.
"""
from .security import AccessLogMiddleware, SecurityHeadersMiddleware

__all__ = ["AccessLogMiddleware", "SecurityHeadersMiddleware"]
