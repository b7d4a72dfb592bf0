"""
Security Headers Middleware - Add security headers to all responses.

Proxy responses are JSON consumed by the storefront theme, so the policy is
restrictive: nothing may be framed, sniffed or loaded from these responses.

Usage:
    from app.middleware.security_headers import SecurityHeadersMiddleware

    app.add_middleware(SecurityHeadersMiddleware, enforce_https=True)
"""

from starlette.middleware.base import BaseHTTPMiddleware

from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add standard security headers to every HTTP response."""

    def __init__(self, app, enforce_https: bool = False):
        """
        Args:
            app: FastAPI application
            enforce_https: Whether to add HSTS header (production only)
        """
        super().__init__(app)
        self.enforce_https = enforce_https

        logger.info("Security headers middleware initialized", enforce_https=self.enforce_https)

    async def dispatch(self, request, call_next):
        response = await call_next(request)

        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none'; base-uri 'none'; form-action 'none'"
        )
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cross-Origin-Resource-Policy"] = "cross-origin"

        # HSTS only once HTTPS is guaranteed in front of the app
        if self.enforce_https:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
