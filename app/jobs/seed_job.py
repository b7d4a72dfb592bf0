"""
Sample data seeding job.

Creates demo products and customers in a development store so the proxy has
something to personalize. Records that already exist upstream are reported
with the EXISTING_RECORD_ID sentinel and the batch carries on.
"""

import re
from collections.abc import Awaitable, Callable
from dataclasses import replace
from urllib.parse import urlparse

from app.config import settings
from app.infrastructure.observability.logging import get_logger
from app.models.domain.shopify_domain import CreateCustomerRequest, CreateProductRequest, Session
from app.services.customer_service import CustomerService
from app.services.product_service import ProductService
from app.services.shopify.api_client import ShopifyApiClient
from app.services.shopify.errors import ClientError

logger = get_logger(__name__)

EXISTING_RECORD_ID = -1

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_CONFLICT_MARKERS = ("already", "taken")

DEFAULT_CUSTOMERS = [
    CreateCustomerRequest(
        first_name="Alice",
        last_name="Johnson",
        email="alice.johnson@example.com",
        profile_image_url="https://images.unsplash.com/photo-1494790108755-2616b612b786?w=150&h=150&fit=crop&crop=face",
        assigned_product_id="1",
    ),
    CreateCustomerRequest(
        first_name="Bob",
        last_name="Smith",
        email="bob.smith@example.com",
        profile_image_url="https://images.unsplash.com/photo-1507003211169-0a1dd7228f2d?w=150&h=150&fit=crop&crop=face",
        assigned_product_id="2",
    ),
]

DEFAULT_PRODUCTS = [
    CreateProductRequest(
        title="Premium Wireless Headphones",
        handle="premium-wireless-headphones",
        description="High-quality wireless headphones with noise cancellation",
        price="199.99",
        image_url="https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=400&h=400&fit=crop",
    ),
    CreateProductRequest(
        title="Smart Fitness Watch",
        handle="smart-fitness-watch",
        description="Advanced fitness tracking with heart rate monitor",
        price="299.99",
        image_url="https://images.unsplash.com/photo-1523275335684-37898b6baf30?w=400&h=400&fit=crop",
    ),
]


class SeedDataError(ValueError):
    """Seed input failed validation before any upstream call."""


def _is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme in ("http", "https") and parsed.netloc)


def _is_number(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


def validate_customer_data(data: CreateCustomerRequest) -> None:
    if not (data.first_name or "").strip():
        raise SeedDataError("Customer first_name is required")
    if not (data.last_name or "").strip():
        raise SeedDataError("Customer last_name is required")
    if not (data.email or "").strip():
        raise SeedDataError("Customer email is required")
    if not _EMAIL_PATTERN.match(data.email):
        raise SeedDataError("Customer email must be valid")
    if not (data.profile_image_url or "").strip():
        raise SeedDataError("Customer profile_image_url is required")
    if not _is_valid_url(data.profile_image_url):
        raise SeedDataError("Customer profile_image_url must be a valid URL")
    if not (data.assigned_product_id or "").strip():
        raise SeedDataError("Customer assigned_product_id is required")
    if not data.assigned_product_id.strip().isdigit():
        raise SeedDataError("Customer assigned_product_id must be a valid number")


def validate_product_data(data: CreateProductRequest) -> None:
    if not (data.title or "").strip():
        raise SeedDataError("Product title is required")
    if not (data.handle or "").strip():
        raise SeedDataError("Product handle is required")
    if not (data.description or "").strip():
        raise SeedDataError("Product description is required")
    if not (data.price or "").strip():
        raise SeedDataError("Product price is required")
    if not _is_number(data.price):
        raise SeedDataError("Product price must be a valid number")
    if not (data.image_url or "").strip():
        raise SeedDataError("Product image_url is required")
    if not _is_valid_url(data.image_url):
        raise SeedDataError("Product image_url must be a valid URL")


def _is_uniqueness_conflict(error: ClientError) -> bool:
    if error.status_code != 422:
        return False
    details = f"{error.message} {error.response_data}".lower()
    return any(marker in details for marker in _CONFLICT_MARKERS)


class DataSeeder:
    """Creates sample records through the domain services, one at a time."""

    def __init__(
        self,
        customer_service: CustomerService,
        product_service: ProductService,
        session: Session,
    ):
        self.customer_service = customer_service
        self.product_service = product_service
        self.session = session

    async def seed_customers(self, customers: list[CreateCustomerRequest]) -> list[int]:
        return [await self.create_customer(data) for data in customers]

    async def seed_products(self, products: list[CreateProductRequest]) -> list[int]:
        return [await self.create_product(data) for data in products]

    async def create_customer(self, data: CreateCustomerRequest) -> int:
        """Create the customer, then attach its personalization metafields."""
        validate_customer_data(data)
        base = replace(data, profile_image_url=None, assigned_product_id=None)
        customer_id = await self._create_or_existing(
            "customer", data.email, lambda: self.customer_service.create(self.session, base)
        )
        if customer_id != EXISTING_RECORD_ID:
            await self.customer_service.update_metafields(
                self.session, customer_id, data.metafields()
            )
        return customer_id

    async def create_product(self, data: CreateProductRequest) -> int:
        validate_product_data(data)
        return await self._create_or_existing(
            "product", data.handle, lambda: self.product_service.create(self.session, data)
        )

    async def _create_or_existing(
        self, kind: str, unique_key: str, create: Callable[[], Awaitable[int]]
    ) -> int:
        try:
            record_id = await create()
        except ClientError as e:
            if not _is_uniqueness_conflict(e):
                raise
            logger.info(f"Seed {kind} already exists, skipping", unique_key=unique_key)
            return EXISTING_RECORD_ID

        logger.info(f"Seed {kind} created", unique_key=unique_key, record_id=record_id)
        return record_id


async def run_seed_job() -> dict[str, list[int]]:
    """Seed the default customers and products into the configured store."""
    async with ShopifyApiClient(
        settings.api_config(),
        settings.retry_policy(),
        timeout=settings.SHOPIFY_REQUEST_TIMEOUT,
    ) as api_client:
        product_service = ProductService(api_client)
        customer_service = CustomerService(api_client, product_service)
        seeder = DataSeeder(customer_service, product_service, api_client.create_session())

        logger.info("Seeding sample data", shop=api_client.config.shop)
        customer_ids = await seeder.seed_customers(DEFAULT_CUSTOMERS)
        product_ids = await seeder.seed_products(DEFAULT_PRODUCTS)

    logger.info("Seeding finished", customer_ids=customer_ids, product_ids=product_ids)
    return {"customer_ids": customer_ids, "product_ids": product_ids}
