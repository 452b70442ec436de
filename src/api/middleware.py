"""Request middleware: rate limiting, security headers and HTTPS enforcement"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from .rate_limiter import RateLimiter

log = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

# Paths served as static assets skip the middleware entirely
STATIC_PREFIXES = ("/static/", "/favicon.ico")


def client_identifier(request: Request) -> str:
    """Client IP, or "anonymous" when the transport does not expose one"""
    if request.client and request.client.host:
        return request.client.host
    return "anonymous"


class SecurityMiddleware(BaseHTTPMiddleware):
    """Apply rate limits to API routes, then security headers to every response"""

    def __init__(self, app: ASGIApp, rate_limiter: RateLimiter, enforce_https: bool = False):
        super().__init__(app)
        self.rate_limiter = rate_limiter
        self.enforce_https = enforce_https

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path

        if path.startswith(STATIC_PREFIXES):
            return await call_next(request)

        if path.startswith("/api/"):
            identifier = client_identifier(request)
            if not self.rate_limiter.is_allowed(identifier):
                log.warning("Rate limit exceeded", extra={"data": {"ip": identifier, "path": path}})
                return self._secure(JSONResponse({"error": "Rate limit exceeded"}, status_code=429))

        if self.enforce_https and request.headers.get("x-forwarded-proto") != "https":
            host = request.headers.get("host", request.url.netloc)
            return RedirectResponse(f"https://{host}{path}", status_code=307)

        response = await call_next(request)
        return self._secure(response)

    @staticmethod
    def _secure(response: Response) -> Response:
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        return response
