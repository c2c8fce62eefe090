"""
Response hardening for the Movie Recommendation API
"""
import os

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

# Swagger UI at /docs pulls its bundle from jsdelivr
_CSP = "; ".join([
    "default-src 'self'",
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net",
    "img-src 'self' https://fastapi.tiangolo.com data:",
])

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": _CSP,
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp hardening headers on every response; HSTS only when served in production"""

    def __init__(self, app, hsts: bool = None):
        super().__init__(app)
        if hsts is None:
            hsts = os.getenv("ENVIRONMENT") == "production"
        self.headers = dict(BASE_HEADERS)
        if hsts:
            self.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response
