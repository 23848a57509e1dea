"""Response hardening headers.

Every response gets the baseline headers below. JSON API responses are
additionally marked uncacheable and may not be framed or load anything;
files under ``/storage`` keep their default caching. HSTS is only sent in
production, where the API sits behind TLS.
"""

from typing import Callable, Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

BASELINE_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    # Photos are picked from disk; no device access is ever requested.
    "Permissions-Policy": "camera=(), microphone=(), geolocation=(), payment=(), usb=()",
}

API_HEADERS: Dict[str, str] = {
    "Cache-Control": "no-store",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}

HSTS_VALUE = "max-age=31536000; includeSubDomains"

API_PREFIX = "/api/"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, is_production: bool = False):
        super().__init__(app)
        self.is_production = is_production

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        headers = dict(BASELINE_HEADERS)
        if request.url.path.startswith(API_PREFIX):
            headers.update(API_HEADERS)
        if self.is_production:
            headers["Strict-Transport-Security"] = HSTS_VALUE

        for name, value in headers.items():
            response.headers.setdefault(name, value)
        return response
