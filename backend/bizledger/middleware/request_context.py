"""
Request context middleware.

WHAT: Captures request id, client IP, user agent, path and method for
every request and exposes them through a ContextVar.

WHY: Audit entries and log lines are tagged with the request that caused
them. Services and DAOs read the context with ``get_request_context()``
instead of having the Request object passed down to them.

HOW: An inbound X-Request-ID header is reused (so ids survive a proxy hop);
otherwise a UUID4 is generated. The id is echoed in the X-Request-ID
response header.
"""

import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64


@dataclass(frozen=True)
class RequestContext:
    """
    Request-scoped context data.

    Fields:
    - request_id: Correlation id for logs and audit entries
    - ip_address: Client IP (proxy headers considered)
    - user_agent: Client User-Agent header
    - path: Request path
    - method: HTTP method
    """

    request_id: str
    ip_address: str
    user_agent: Optional[str]
    path: str
    method: str


_request_context: ContextVar[Optional[RequestContext]] = ContextVar(
    "request_context", default=None
)


def get_request_context() -> Optional[RequestContext]:
    """
    Get the current request context.

    Returns:
        RequestContext if within a request, None otherwise (scheduler jobs, tests)
    """
    return _request_context.get()


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address, preferring proxy headers.

    Order: X-Real-IP, first entry of X-Forwarded-For, then the socket peer.

    Security Note:
        These headers can be spoofed unless the proxy in front overwrites them.
    """
    x_real_ip = request.headers.get("X-Real-IP")
    if x_real_ip:
        return x_real_ip.strip()

    x_forwarded_for = request.headers.get("X-Forwarded-For")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def _request_id_from(request: Request) -> str:
    incoming = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH:
        return incoming
    return str(uuid.uuid4())


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that captures and stores request context.

    Stored both in ``request.state.context`` and in the ContextVar read by
    ``get_request_context()``.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        context = RequestContext(
            request_id=_request_id_from(request),
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
            path=request.url.path,
            method=request.method,
        )
        request.state.context = context

        token = _request_context.set(context)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = context.request_id
            return response
        finally:
            _request_context.reset(token)
