"""
Middleware package.

WHY: Cross-cutting request concerns (security headers, request context)
that apply to every route.
"""

from bizledger.middleware.security_headers import SecurityHeadersMiddleware
from bizledger.middleware.request_context import (
    RequestContextMiddleware,
    get_request_context,
    get_client_ip,
    RequestContext,
)

__all__ = [
    "SecurityHeadersMiddleware",
    "RequestContextMiddleware",
    "get_request_context",
    "get_client_ip",
    "RequestContext",
]
