"""
Product Service
Reads products over GraphQL, creates them over REST, and owns the
default-product fallback chain used by the proxy route.
"""

from typing import Any

from app.infrastructure.observability.logging import get_logger, log_soft_failure
from app.models.domain.shopify_domain import CreateProductRequest, ProductRecord, Session
from app.services.shopify.api_client import ShopifyApiClient
from app.services.shopify.errors import ClientError, CreationFailedError
from app.services.shopify.queries import GET_DEFAULT_PRODUCT, GET_PRODUCT_BY_ID
from app.utils.id_conversion import to_global_id, to_numeric_id

logger = get_logger(__name__)

DEFAULT_INVENTORY_QUANTITY = 100

FALLBACK_PRODUCT_ID = 0
FALLBACK_PRODUCT_TITLE = "Featured Product"
FALLBACK_PRODUCT_HANDLE = "featured-product"
FALLBACK_PRODUCT_PRICE = "0.00"


class ProductService:
    """Product lookups and creation against the Shopify Admin API."""

    def __init__(self, api_client: ShopifyApiClient):
        self.api_client = api_client

    async def get_by_id(self, session: Session, product_id: int) -> ProductRecord | None:
        """
        Fetch a product by its numeric id.

        Returns:
            ProductRecord, or None when the product does not exist

        Raises:
            ShopifyApiError: On any failure other than not-found
        """
        try:
            data = await self.api_client.graphql_call(
                session,
                GET_PRODUCT_BY_ID,
                {"id": to_global_id(product_id, "Product")},
                f"get product {product_id}",
            )
        except ClientError as e:
            if e.status_code == 404:
                logger.info("Product not found", product_id=product_id)
                return None
            raise

        product = data.get("product")
        if not product:
            logger.info("Product not found", product_id=product_id)
            return None

        return self._to_record(product)

    async def get_default(self, session: Session) -> ProductRecord | None:
        """
        First active product in the store.

        Fail-open: returns None when no active product exists or the lookup
        itself fails.
        """
        try:
            data = await self.api_client.graphql_call(
                session, GET_DEFAULT_PRODUCT, {}, "get default product"
            )
            edges = (data.get("products") or {}).get("edges") or []
            if not edges:
                logger.info("No active products available for default")
                return None
            return self._to_record(edges[0]["node"])
        except Exception as e:
            log_soft_failure("get default product", e)
            return None

    async def get_by_ids(self, session: Session, product_ids: list[int]) -> list[ProductRecord]:
        """Fetch several products, skipping ids that fail or do not exist."""
        products = []
        for product_id in product_ids:
            try:
                product = await self.get_by_id(session, product_id)
            except Exception as e:
                log_soft_failure("get product", e, product_id=product_id)
                continue
            if product:
                products.append(product)
        return products

    async def is_available(self, session: Session, product_id: int) -> bool:
        """Whether the product exists and can be sold. False on any failure."""
        try:
            product = await self.get_by_id(session, product_id)
        except Exception as e:
            log_soft_failure("check product availability", e, product_id=product_id)
            return False
        return bool(product and product.available)

    async def create(self, session: Session, request: CreateProductRequest) -> int:
        """
        Create a product with one priced variant and an optional image.

        Returns:
            int: Numeric id of the created product

        Raises:
            CreationFailedError: If the response does not contain the product id
        """
        payload = {
            "product": {
                "title": request.title,
                "handle": request.handle,
                "body_html": request.description,
                "variants": [
                    {
                        "price": request.price,
                        "inventory_management": "shopify",
                        "inventory_quantity": DEFAULT_INVENTORY_QUANTITY,
                    }
                ],
                "images": (
                    [{"src": request.image_url, "alt": request.title}] if request.image_url else []
                ),
            }
        }

        response = await self.api_client.rest_call(
            session, "POST", "products", payload, "create product"
        )

        product_id = ((response or {}).get("product") or {}).get("id")
        if not product_id:
            raise CreationFailedError("Failed to create product: Invalid response")

        logger.info("Product created", product_id=product_id, handle=request.handle)
        return product_id

    @staticmethod
    def validate_product_id(value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool) and value > 0

    @staticmethod
    def get_default_fallback() -> ProductRecord:
        """Hardcoded placeholder used once every lookup has come back empty."""
        return ProductRecord(
            id=FALLBACK_PRODUCT_ID,
            title=FALLBACK_PRODUCT_TITLE,
            handle=FALLBACK_PRODUCT_HANDLE,
            price=FALLBACK_PRODUCT_PRICE,
            image_url="",
            available=False,
        )

    def _to_record(self, product: dict) -> ProductRecord:
        """Map a GraphQL product node to a ProductRecord."""
        variant = _first_node(product.get("variants"))
        image = _first_node(product.get("images"))

        return ProductRecord(
            id=to_numeric_id(product["id"]),
            title=product.get("title") or "Untitled Product",
            handle=product.get("handle") or "",
            price=str(variant["price"]) if variant and variant.get("price") else "0.00",
            image_url=image.get("url") if image else None,
            available=product.get("status") == "ACTIVE"
            and bool(variant and variant.get("availableForSale")),
        )


def _first_node(connection: dict | None) -> dict | None:
    edges = (connection or {}).get("edges") or []
    if not edges:
        return None
    return edges[0].get("node")
