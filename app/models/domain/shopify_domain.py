# app/models/domain/shopify_domain.py
"""
Shopify Domain Models
Configuration, session and record types shared by the API client,
the customer/product services and the proxy route.
"""

from dataclasses import dataclass
from typing import Any

from app.services.shopify.errors import ConfigurationError

# Pinned Admin API release used when no version is configured
DEFAULT_API_VERSION = "2024-10"

# Metafield contract shared with the storefront theme
METAFIELD_NAMESPACE = "personalization"
METAFIELD_TYPE = "single_line_text_field"
PROFILE_IMAGE_URL_KEY = "profile_image_url"
ASSIGNED_PRODUCT_ID_KEY = "assigned_product_id"
PERSONALIZATION_KEYS = (PROFILE_IMAGE_URL_KEY, ASSIGNED_PRODUCT_ID_KEY)

DEFAULT_FIRST_NAME = "Valued Customer"


@dataclass(frozen=True)
class ApiConfig:
    """Upstream app credentials. Required fields are checked on construction."""

    api_key: str
    api_secret: str
    scopes: tuple[str, ...]
    host: str
    api_version: str = DEFAULT_API_VERSION
    access_token: str = ""
    shop: str = ""

    def __post_init__(self):
        missing = []
        if not self.api_key:
            missing.append("api_key (SHOPIFY_API_KEY)")
        if not self.api_secret:
            missing.append("api_secret (SHOPIFY_API_SECRET)")
        if not self.scopes:
            missing.append("scopes (SHOPIFY_SCOPES)")
        if not self.host:
            missing.append("host (SHOPIFY_APP_URL)")

        if missing:
            raise ConfigurationError(
                f"Missing required Shopify configuration: {', '.join(missing)}",
                missing_fields=missing,
            )

        # Accept lists from callers but keep the instance hashable
        if not isinstance(self.scopes, tuple):
            object.__setattr__(self, "scopes", tuple(self.scopes))
        if not self.api_version:
            object.__setattr__(self, "api_version", DEFAULT_API_VERSION)


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff settings for upstream calls."""

    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 10000

    def __post_init__(self):
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must be non-negative")
        if self.base_delay_ms < 0:
            raise ConfigurationError("base_delay_ms must be non-negative")
        if self.base_delay_ms > self.max_delay_ms:
            raise ConfigurationError("base_delay_ms must not exceed max_delay_ms")


@dataclass(frozen=True)
class Session:
    """Read-only credentials for one request or one batch operation."""

    shop: str
    access_token: str

    def auth_headers(self) -> dict[str, str]:
        return {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }


@dataclass(slots=True)
class UpstreamResponse:
    """Decoded HTTP envelope returned by REST transport calls."""

    status_code: int
    body: Any


@dataclass(slots=True)
class ProductRecord:
    id: int
    title: str
    handle: str
    price: str
    image_url: str | None = None
    available: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "handle": self.handle,
            "price": self.price,
            "image_url": self.image_url or "",
            "available": self.available,
        }


@dataclass(slots=True)
class CustomerMetafields:
    profile_image_url: str | None = None
    assigned_product_id: str | None = None

    @classmethod
    def from_pairs(cls, pairs: dict[str, Any]) -> "CustomerMetafields":
        """Keep the recognised personalization keys, ignore everything else."""
        values = {}
        for key in PERSONALIZATION_KEYS:
            value = pairs.get(key)
            if value is not None and str(value).strip():
                values[key] = str(value).strip()
        return cls(**values)

    def items(self) -> list[tuple[str, str]]:
        """Present (non-empty) metafields as key/value pairs."""
        pairs = []
        for key in PERSONALIZATION_KEYS:
            value = getattr(self, key)
            if value:
                pairs.append((key, value))
        return pairs


@dataclass(slots=True)
class CustomerRecord:
    id: str
    first_name: str
    email: str
    profile_image_url: str | None = None
    assigned_product_id: int | None = None
    assigned_product: ProductRecord | None = None


@dataclass(slots=True)
class CreateCustomerRequest:
    first_name: str
    last_name: str
    email: str
    profile_image_url: str | None = None
    assigned_product_id: str | None = None

    def metafields(self) -> CustomerMetafields:
        return CustomerMetafields.from_pairs(
            {
                PROFILE_IMAGE_URL_KEY: self.profile_image_url,
                ASSIGNED_PRODUCT_ID_KEY: self.assigned_product_id,
            }
        )


@dataclass(slots=True)
class CreateProductRequest:
    title: str
    handle: str
    description: str
    price: str
    image_url: str | None = None


@dataclass(slots=True)
class PersonalizationResult:
    """The payload returned to the storefront for one user."""

    user_id: str
    first_name: str
    profile_image_url: str
    assigned_product: ProductRecord | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "first_name": self.first_name,
            "profile_image_url": self.profile_image_url,
            "assigned_product": (
                self.assigned_product.to_dict() if self.assigned_product else None
            ),
        }
