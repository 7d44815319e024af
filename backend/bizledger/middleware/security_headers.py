"""
Security headers middleware.

WHY: The service only ever returns JSON, so responses can forbid framing,
MIME sniffing and every content source outright. Financial data must not
linger in browser or proxy caches either.
"""

from typing import Callable, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

API_SECURITY_HEADERS: Dict[str, str] = {
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    # JSON responses load nothing
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
    "Referrer-Policy": "no-referrer",
}

NO_STORE_HEADERS: Dict[str, str] = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Pragma": "no-cache",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds API_SECURITY_HEADERS to every response and no-store to /api responses."""

    def __init__(self, app, api_prefix: str = "/api"):
        super().__init__(app)
        self.api_prefix = api_prefix

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        for name, value in API_SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)

        if request.url.path.startswith(self.api_prefix):
            response.headers.update(NO_STORE_HEADERS)

        return response
