"""
RequestContext Middleware - Request ID and timing for every request.

Adds to request.state:
- request_id: UUID for tracing this request (reuses an incoming X-Request-ID)

Also echoes X-Request-ID on the response and logs method, path, status and
duration once the request completes.
"""

import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.infrastructure.observability.logging import log_request


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a request ID and log the completed request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

        response.headers["X-Request-ID"] = request_id
        log_request(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
            request_id=request_id,
        )
        return response
