"""
Shopify Admin API client with retry, backoff and error normalization.
Low-level transport shared by the customer and product services.

REST calls return the decoded body of a validated UpstreamResponse envelope,
GraphQL calls return the unwrapped ``data`` object. Every outbound call goes
through ``call`` which owns the retry policy.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx

from app.infrastructure.observability.logging import get_logger
from app.models.domain.shopify_domain import ApiConfig, RetryPolicy, Session, UpstreamResponse
from app.services.shopify.errors import (
    ClientError,
    EmptyResponseError,
    UpstreamCallError,
    UpstreamQueryError,
    UpstreamResponseError,
)

logger = get_logger(__name__)

T = TypeVar("T")

REQUEST_TIMEOUT = 30  # seconds
REST_METHODS = {"GET", "POST", "PUT", "DELETE"}


class ShopifyApiClient:
    """
    Client for one Shopify store's Admin API.

    Built once at process start from an ApiConfig and passed to every
    service. Holds no per-request state; Sessions are supplied per call.
    """

    def __init__(
        self,
        config: ApiConfig,
        retry_policy: RetryPolicy | None = None,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy()
        self._client = http_client or self._create_client(timeout)
        self._sleep = sleep or asyncio.sleep

    def _create_client(self, timeout: float) -> httpx.AsyncClient:
        """Create async HTTP client for the Admin API."""
        limits = httpx.Limits(max_keepalive_connections=20, max_connections=50)
        return httpx.AsyncClient(timeout=httpx.Timeout(timeout), limits=limits)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "ShopifyApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def create_session(self, shop: str | None = None, access_token: str | None = None) -> Session:
        """Build a Session, falling back to the configured store and token."""
        return Session(
            shop=shop or self.config.shop,
            access_token=access_token or self.config.access_token,
        )

    def backoff_delay_ms(self, attempt: int) -> int:
        """Delay before retry number ``attempt + 1``, capped at max_delay_ms."""
        policy = self.retry_policy
        return min(policy.base_delay_ms * (2**attempt), policy.max_delay_ms)

    # =================================================================
    # RETRY LOOP
    # =================================================================

    async def call(self, operation: str, thunk: Callable[[], Awaitable[T]]) -> T:
        """
        Run ``thunk`` under the retry policy.

        The thunk may be invoked up to ``max_retries + 1`` times, so it must be
        safe to repeat. 4xx failures are never retried.

        Args:
            operation: Human readable operation name used in errors and logs
            thunk: Zero-argument coroutine factory performing the call

        Returns:
            The thunk's result, unchanged

        Raises:
            ClientError: Upstream answered with a 4xx status
            UpstreamCallError: Retry budget exhausted
            EmptyResponseError: Envelope without a body
            UpstreamResponseError: Envelope carrying an ``errors`` field
        """
        max_retries = self.retry_policy.max_retries
        attempt = 0

        while True:
            try:
                result = await thunk()
            except ClientError:
                raise
            except Exception as e:
                status_code = _extract_status(e)
                message = str(e) or type(e).__name__
                response_data = _extract_body(e)

                if status_code is not None and 400 <= status_code < 500:
                    logger.warning(
                        "Shopify API client error",
                        operation=operation,
                        status_code=status_code,
                        error=message,
                    )
                    raise ClientError(operation, message, status_code, response_data) from e

                if attempt >= max_retries:
                    logger.error(
                        "Shopify API call failed after retries",
                        operation=operation,
                        attempts=attempt + 1,
                        status_code=status_code,
                        error=message,
                    )
                    raise UpstreamCallError(operation, message, status_code, response_data) from e

                delay_ms = self.backoff_delay_ms(attempt)
                logger.warning(
                    "Shopify API call failed, retrying",
                    operation=operation,
                    attempt=attempt + 1,
                    total_attempts=max_retries + 1,
                    delay_ms=delay_ms,
                    status_code=status_code,
                    error=message,
                )
                await self._sleep(delay_ms / 1000)
                attempt += 1
                continue

            if isinstance(result, UpstreamResponse):
                self.validate_response(result, operation)
            return result

    def validate_response(self, response: UpstreamResponse, operation: str) -> None:
        """
        Reject envelopes that are empty or carry application-level errors.

        Raises:
            EmptyResponseError: If the body is empty or missing
            UpstreamResponseError: If the body has an ``errors`` field
        """
        body = response.body
        if body is None or body == {} or body == "" or body == []:
            raise EmptyResponseError(
                f"No response received for {operation}", status_code=response.status_code
            )

        if isinstance(body, dict) and body.get("errors"):
            error_message = _format_errors(body["errors"])
            raise UpstreamResponseError(
                f"Shopify API error for {operation}: {error_message}",
                status_code=response.status_code,
                response_data=body,
            )

    # =================================================================
    # TRANSPORTS
    # =================================================================

    def _base_url(self, session: Session) -> str:
        shop = session.shop.strip().removeprefix("https://").removeprefix("http://").rstrip("/")
        return f"https://{shop}/admin/api/{self.config.api_version}"

    def _decode(self, response: httpx.Response, operation: str) -> Any:
        """Decode a JSON body; empty bodies decode to None."""
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(
                "Failed to parse Shopify API response",
                operation=operation,
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            raise UpstreamResponseError(
                f"Invalid response format for {operation}: {e}",
                status_code=response.status_code,
            ) from e

    async def graphql_call(
        self,
        session: Session,
        query: str,
        variables: dict[str, Any] | None = None,
        operation: str = "graphql query",
    ) -> dict[str, Any]:
        """
        Execute a GraphQL query and unwrap its ``data`` object.

        Raises:
            UpstreamQueryError: If the response carries GraphQL errors
            EmptyResponseError: If the response has no ``data``
        """
        url = f"{self._base_url(session)}/graphql.json"
        payload = {"query": query, "variables": variables or {}}
        headers = session.auth_headers()

        async def _send() -> Any:
            response = await self._client.post(url, json=payload, headers=headers)
            response.raise_for_status()
            return self._decode(response, operation)

        logger.debug("Shopify GraphQL call", operation=operation)
        result = await self.call(operation, _send)

        if not isinstance(result, dict):
            raise EmptyResponseError(f"No response received for {operation}")

        errors = result.get("errors")
        if errors:
            messages = [
                error.get("message", str(error)) if isinstance(error, dict) else str(error)
                for error in (errors if isinstance(errors, list) else [errors])
            ]
            logger.warning("Shopify GraphQL errors", operation=operation, errors=messages)
            raise UpstreamQueryError(f"GraphQL Error: {', '.join(messages)}", errors=errors)

        data = result.get("data")
        if data is None:
            raise EmptyResponseError(f"No data returned for {operation}")
        return data

    async def rest_call(
        self,
        session: Session,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        operation: str | None = None,
    ) -> Any:
        """
        Execute a REST call and return the decoded body.

        Args:
            session: Store credentials
            method: GET, POST, PUT or DELETE
            path: Resource path without version prefix or suffix, e.g. ``customers``
            body: JSON body, or query parameters for GET
            operation: Operation name for errors and logs
        """
        verb = method.upper()
        if verb not in REST_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        operation = operation or f"{verb} {path}"
        url = f"{self._base_url(session)}/{path.strip('/')}.json"
        headers = session.auth_headers()

        async def _send() -> UpstreamResponse:
            if verb == "GET":
                response = await self._client.get(url, headers=headers, params=body)
            elif verb == "DELETE":
                response = await self._client.delete(url, headers=headers)
            elif verb == "PUT":
                response = await self._client.put(url, headers=headers, json=body)
            else:
                response = await self._client.post(url, headers=headers, json=body)
            response.raise_for_status()
            return UpstreamResponse(
                status_code=response.status_code, body=self._decode(response, operation)
            )

        logger.debug("Shopify REST call", operation=operation, method=verb, path=path)
        envelope = await self.call(operation, _send)
        return envelope.body


def _extract_status(error: Exception) -> int | None:
    """HTTP status attached to an exception, directly or via its response."""
    status_code = getattr(error, "status_code", None)
    if status_code is None:
        response = getattr(error, "response", None)
        status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int) and not isinstance(status_code, bool):
        return status_code
    return None


def _extract_body(error: Exception) -> Any:
    """Raw response body attached to an exception, if any."""
    response = getattr(error, "response", None)
    if isinstance(response, httpx.Response):
        try:
            return response.json()
        except ValueError:
            return response.text
    return getattr(error, "response_data", None)


def _format_errors(errors: Any) -> str:
    if isinstance(errors, list):
        return ", ".join(str(error) for error in errors)
    if isinstance(errors, dict):
        parts = []
        for field_name, messages in errors.items():
            if isinstance(messages, list):
                messages = ", ".join(str(message) for message in messages)
            parts.append(f"{field_name}: {messages}")
        return ", ".join(parts)
    return str(errors)
