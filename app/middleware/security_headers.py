"""Security and cache-control headers middleware."""

from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from app.config import settings

SERVER_TOKEN: str = "TBBA"
HSTS_MAX_AGE: int = 31536000

CONTENT_SECURITY_POLICY: str = (
    "default-src 'self'; "
    "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
    "img-src 'self' data: https:; "
    "font-src 'self' data:; "
    "connect-src 'self'; "
    "frame-ancestors 'none'"
)
PERMISSIONS_POLICY: str = "geolocation=(), microphone=(), camera=(), payment=(), usb=()"

NO_STORE: str = "no-cache, no-store, must-revalidate"

# GET max-age per resource path segment under /api/v1
_RESOURCE_MAX_AGE: dict[str, int] = {
    "districts": 86400,
    "members": 21600,
    "players": 10800,
    "media": 7200,
    "tournaments": 1800,
    "news": 900,
}

_PRIVATE_SEGMENTS: tuple[str, ...] = ("admin", "audit", "users", "auth")


def cache_control_for(method: str, path: str) -> str | None:
    """Cache-Control value for an /api/ response, or None to leave it alone."""
    if not path.startswith("/api/"):
        return None
    if method != "GET":
        return "no-store"
    if "/public/" in path or path.endswith("/public"):
        return "public, max-age=300"

    segments = [s for s in path.split("/") if s]
    # ["api", "v1", "<resource>", ...]
    resource = segments[2] if len(segments) > 2 else ""
    if resource in _PRIVATE_SEGMENTS:
        return NO_STORE
    max_age = _RESOURCE_MAX_AGE.get(resource)
    if max_age is not None:
        return f"private, max-age={max_age}"
    return None


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to every response and cache headers to API responses.

    Headers:
        - Content-Security-Policy, Permissions-Policy
        - X-Frame-Options: DENY
        - X-Content-Type-Options: nosniff
        - X-XSS-Protection: 1; mode=block
        - Referrer-Policy: strict-origin-when-cross-origin
        - Strict-Transport-Security (production only)
        - Server replaced by a fixed product token
    """

    def __init__(self, app: ASGIApp, *, hsts_enabled: bool | None = None) -> None:
        super().__init__(app)
        self.hsts_enabled = settings.is_production if hsts_enabled is None else hsts_enabled

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        response = await call_next(request)

        response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = PERMISSIONS_POLICY
        response.headers["Server"] = SERVER_TOKEN
        if self.hsts_enabled:
            response.headers["Strict-Transport-Security"] = f"max-age={HSTS_MAX_AGE}; includeSubDomains"

        cache_control = cache_control_for(request.method, request.url.path)
        if cache_control is not None:
            response.headers["Cache-Control"] = cache_control
            if cache_control == NO_STORE:
                response.headers["Pragma"] = "no-cache"
                response.headers["Expires"] = "0"

        return response
