"""
Exception types raised by the Shopify access layer.

Every upstream failure surfaces as a ShopifyApiError subclass so routes and
jobs can branch on the failure kind instead of parsing messages.
"""

from typing import Any


class ShopifyApiError(Exception):
    """Base exception for Shopify API failures."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response_data = response_data


class ConfigurationError(ShopifyApiError):
    """Required client configuration is missing or inconsistent."""

    def __init__(self, message: str, missing_fields: list[str] | None = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []


class UpstreamCallError(ShopifyApiError):
    """An upstream call failed and the retry budget is exhausted."""

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: int | None = None,
        response_data: Any = None,
    ):
        super().__init__(f"{operation} failed: {message}", status_code, response_data)
        self.operation = operation


class ClientError(UpstreamCallError):
    """Upstream rejected the request with a 4xx status. Never retried."""


class UpstreamResponseError(ShopifyApiError):
    """A successful transport response carried application-level errors."""


class EmptyResponseError(UpstreamResponseError):
    """Upstream answered without a body."""


class UpstreamQueryError(ShopifyApiError):
    """A GraphQL response carried a non-empty errors list."""

    def __init__(self, message: str, errors: list[Any] | None = None):
        super().__init__(message, response_data=errors)
        self.errors = errors or []


class CreationFailedError(ShopifyApiError):
    """A create call succeeded but the response lacks the created id."""


class MalformedIdError(ShopifyApiError, ValueError):
    """A global id could not be translated to a numeric id."""
