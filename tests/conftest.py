import pytest

from app.models.domain.shopify_domain import ApiConfig, RetryPolicy, Session
from app.services.shopify.api_client import ShopifyApiClient

SHOP = "test-shop.myshopify.com"
GRAPHQL_URL = f"https://{SHOP}/admin/api/2024-10/graphql.json"
REST_BASE_URL = f"https://{SHOP}/admin/api/2024-10"


class SleepRecorder:
    """Stands in for asyncio.sleep and records requested delays (seconds)."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def api_config():
    return ApiConfig(
        api_key="test-key",
        api_secret="test-secret",
        scopes=("read_customers", "read_products"),
        host="localhost:3000",
        access_token="test-token",
        shop=SHOP,
    )


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def make_client(api_config, sleep_recorder):
    """Factory for clients that never really sleep between retries."""

    def _make(retry_policy: RetryPolicy | None = None, **kwargs) -> ShopifyApiClient:
        return ShopifyApiClient(
            api_config,
            retry_policy or RetryPolicy(max_retries=3, base_delay_ms=1000, max_delay_ms=10000),
            sleep=sleep_recorder,
            **kwargs,
        )

    return _make


@pytest.fixture
def session():
    return Session(shop=SHOP, access_token="test-token")


def graphql_product(
    product_id: int = 456,
    title: str = "Blue Mug",
    handle: str = "blue-mug",
    status: str = "ACTIVE",
    price: str | None = "19.99",
    available_for_sale: bool = True,
    image_url: str | None = "https://cdn.example.com/mug.jpg",
) -> dict:
    """GraphQL product node as returned by the Admin API."""
    variants = []
    if price is not None:
        variants.append(
            {
                "node": {
                    "id": f"gid://shopify/ProductVariant/{product_id}1",
                    "price": price,
                    "availableForSale": available_for_sale,
                }
            }
        )
    images = []
    if image_url is not None:
        images.append({"node": {"id": "gid://shopify/ProductImage/1", "url": image_url}})

    return {
        "id": f"gid://shopify/Product/{product_id}",
        "title": title,
        "handle": handle,
        "status": status,
        "variants": {"edges": variants},
        "images": {"edges": images},
    }


def graphql_customer(customer_id: int = 123, first_name: str | None = "John") -> dict:
    """GraphQL customer node as returned by the Admin API."""
    return {
        "id": f"gid://shopify/Customer/{customer_id}",
        "firstName": first_name,
        "lastName": "Doe",
        "email": "john@example.com",
    }


def rest_metafields(values: dict[str, str] | None = None, namespace: str = "personalization") -> dict:
    """Body of ``GET customers/{id}/metafields.json``."""
    return {
        "metafields": [
            {
                "id": index,
                "namespace": namespace,
                "key": key,
                "value": value,
                "type": "single_line_text_field",
            }
            for index, (key, value) in enumerate((values or {}).items(), start=1)
        ]
    }


@pytest.fixture
def make_product_node():
    return graphql_product


@pytest.fixture
def make_customer_node():
    return graphql_customer


@pytest.fixture
def graphql_url():
    return GRAPHQL_URL


@pytest.fixture
def rest_base_url():
    return REST_BASE_URL


@pytest.fixture
def make_metafields_body():
    return rest_metafields
