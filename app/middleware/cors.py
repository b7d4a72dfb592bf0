"""
CORS Middleware - Cross-Origin Resource Sharing for the storefront.

Browsers on the shop's storefront call the proxy directly during theme
development, so the configured app URL is the only allowed origin.

Usage:
    from app.middleware.cors import CORSMiddleware

    app.add_middleware(
        CORSMiddleware,
        allowed_origins=settings.allowed_origins(),
        allow_credentials=True,
    )
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class CORSMiddleware(BaseHTTPMiddleware):
    """Handles preflight OPTIONS requests and adds CORS headers to responses."""

    def __init__(
        self,
        app,
        allowed_origins: list[str] | None = None,
        allow_credentials: bool = True,
        allow_methods: list[str] | None = None,
        allow_headers: list[str] | None = None,
        max_age: int = 600,
    ):
        """
        Args:
            app: FastAPI application
            allowed_origins: Exact origins allowed, ``"*"`` allows any origin
            allow_credentials: Whether to allow credentials (cookies, auth headers)
            allow_methods: Allowed HTTP methods
            allow_headers: Allowed request headers
            max_age: How long (seconds) to cache preflight responses
        """
        super().__init__(app)
        self.allowed_origins = allowed_origins or []
        self.allow_credentials = allow_credentials
        self.allow_methods = allow_methods or ["GET", "OPTIONS", "HEAD"]
        self.allow_headers = allow_headers or [
            "Accept",
            "Content-Type",
            "X-Request-ID",
            "X-Requested-With",
        ]
        self.max_age = max_age

        logger.info(
            "CORS middleware initialized",
            allowed_origins=self.allowed_origins,
            allow_credentials=self.allow_credentials,
        )

    def is_allowed(self, origin: str | None) -> bool:
        if not origin:
            return False
        return "*" in self.allowed_origins or origin in self.allowed_origins

    async def dispatch(self, request, call_next):
        origin = request.headers.get("origin")
        is_allowed_origin = self.is_allowed(origin)

        if request.method == "OPTIONS" and request.headers.get("access-control-request-method"):
            if is_allowed_origin:
                return self._preflight_response(origin)
            logger.warning("CORS preflight rejected - origin not allowed", origin=origin)
            return Response(status_code=403, content="Origin not allowed")

        response = await call_next(request)

        if is_allowed_origin:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            if self.allow_credentials:
                response.headers["Access-Control-Allow-Credentials"] = "true"
        elif origin:
            logger.warning(
                "CORS request from disallowed origin", origin=origin, path=request.url.path
            )

        return response

    def _preflight_response(self, origin: str) -> Response:
        headers = {
            "Access-Control-Allow-Origin": origin,
            "Access-Control-Allow-Methods": ", ".join(self.allow_methods),
            "Access-Control-Allow-Headers": ", ".join(self.allow_headers),
            "Access-Control-Max-Age": str(self.max_age),
            "Vary": "Origin",
        }
        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"

        return Response(status_code=204, headers=headers)
