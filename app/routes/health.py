# app/routes/health.py
"""
Health check endpoints for the API and the app proxy mount.
"""

from datetime import UTC, datetime

from fastapi import APIRouter

from app.models.api.proxy_response import HealthResponse

router = APIRouter()


@router.get("/api/health", response_model=HealthResponse)
async def api_health():
    """Basic health check - always returns 200 if app is running."""
    return HealthResponse(message="Server is running", timestamp=datetime.now(UTC))


@router.get("/proxy/health", response_model=HealthResponse)
async def proxy_health():
    """Health check reachable through the Shopify app proxy."""
    return HealthResponse(message="Proxy endpoint is working", timestamp=datetime.now(UTC))
