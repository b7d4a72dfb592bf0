"""
Personalization proxy application.

The Shopify API client is built once at startup from settings and threaded
into the services; nothing upstream-related is created at import time.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import Settings, settings
from app.infrastructure.observability.logging import get_logger, setup_logging
from app.middleware import CORSMiddleware, RequestContextMiddleware, SecurityHeadersMiddleware
from app.routes import health, proxy
from app.services.customer_service import CustomerService
from app.services.product_service import ProductService
from app.services.proxy_handler import GENERIC_ERROR_MESSAGE, ProxyHandler
from app.services.shopify.api_client import ShopifyApiClient
from app.services.shopify.errors import ConfigurationError

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


def build_proxy_handler(app_settings: Settings, api_client: ShopifyApiClient) -> ProxyHandler:
    """Wire the services around one API client."""
    product_service = ProductService(api_client)
    customer_service = CustomerService(api_client, product_service)
    return ProxyHandler(
        customer_service=customer_service,
        product_service=product_service,
        session_factory=api_client.create_session,
        default_profile_image_url=app_settings.DEFAULT_PROFILE_IMAGE_URL,
        expose_errors=not app_settings.is_production(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the upstream client on startup and close it on shutdown."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    try:
        api_client = ShopifyApiClient(
            settings.api_config(),
            settings.retry_policy(),
            timeout=settings.SHOPIFY_REQUEST_TIMEOUT,
        )
    except ConfigurationError as e:
        logger.error("Invalid Shopify configuration", error=str(e), missing=e.missing_fields)
        raise

    app.state.api_client = api_client
    app.state.proxy_handler = build_proxy_handler(settings, api_client)
    logger.info(
        "Shopify API client initialized",
        shop=api_client.config.shop,
        api_version=api_client.config.api_version,
        max_retries=api_client.retry_policy.max_retries,
    )

    yield

    logger.info("Application shutting down")
    try:
        await api_client.close()
    except Exception as e:
        logger.error("Error closing Shopify API client", error=str(e))


app = FastAPI(
    title="Personalization Proxy",
    description="Shopify app proxy serving personalized customer landing data",
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware runs in reverse order of registration
app.add_middleware(SecurityHeadersMiddleware, enforce_https=settings.is_production())
app.add_middleware(CORSMiddleware, allowed_origins=settings.allowed_origins())
app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(proxy.router)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Keep the {success, error} envelope for framework-level errors."""
    error = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": error})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error", path=request.url.path, error=str(exc))
    error = GENERIC_ERROR_MESSAGE if settings.is_production() else str(exc)
    return JSONResponse(status_code=500, content={"success": False, "error": error})


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
