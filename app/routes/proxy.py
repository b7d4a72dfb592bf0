"""
App Proxy Routes
Storefront-facing endpoints served through the Shopify app proxy.
"""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from app.infrastructure.observability.logging import get_logger
from app.services.proxy_handler import ProxyHandler

logger = get_logger(__name__)

router = APIRouter(prefix="/proxy", tags=["proxy"])


def get_proxy_handler(request: Request) -> ProxyHandler:
    """Handler built during application startup."""
    return request.app.state.proxy_handler


@router.get("/user-landing")
async def user_landing(
    user_id: str | None = Query(None, description="Numeric customer ID"),
    handler: ProxyHandler = Depends(get_proxy_handler),
):
    """Personalized profile and product for one customer."""
    outcome = await handler.handle_user_landing(user_id)
    return JSONResponse(
        status_code=outcome.status_code,
        content=outcome.body.model_dump(mode="json", exclude_none=True),
    )
