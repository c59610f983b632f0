"""
Security middleware for adding security headers to all responses.
"""

from starlette.middleware.base import BaseHTTPMiddleware

from ..config import get_settings


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Headers for a JSON-only API: no framing, no sniffing, no caching of tenant data."""

    async def dispatch(self, request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"
        if get_settings().cookie_secure:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response
