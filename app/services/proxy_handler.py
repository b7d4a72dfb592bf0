"""
Proxy Handler
Turns one user-landing request into a personalization payload.

Resolution order for the product: the customer's assigned product, then the
store's default active product, then the hardcoded placeholder product.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from app.infrastructure.observability.logging import get_logger
from app.models.api.proxy_response import ProxyResponse, UserProfileResponse
from app.models.domain.shopify_domain import (
    DEFAULT_FIRST_NAME,
    CustomerRecord,
    PersonalizationResult,
    ProductRecord,
    Session,
)
from app.services.customer_service import CustomerService
from app.services.product_service import ProductService

logger = get_logger(__name__)

INVALID_USER_ID_MESSAGE = "Invalid or missing user_id parameter"
CUSTOMER_NOT_FOUND_MESSAGE = "Customer not found"
GENERIC_ERROR_MESSAGE = "Internal server error"

_USER_ID_PATTERN = re.compile(r"[0-9]+")


@dataclass(slots=True)
class ProxyOutcome:
    status_code: int
    body: ProxyResponse


def validate_user_id(user_id: str | None) -> bool:
    """A user id must be a positive base-10 integer string."""
    if not isinstance(user_id, str):
        return False
    candidate = user_id.strip()
    return bool(_USER_ID_PATTERN.fullmatch(candidate)) and int(candidate) > 0


class ProxyHandler:
    """Composition root of the personalization fallback chain."""

    def __init__(
        self,
        customer_service: CustomerService,
        product_service: ProductService,
        session_factory: Callable[[], Session],
        default_profile_image_url: str,
        expose_errors: bool = False,
    ):
        self.customer_service = customer_service
        self.product_service = product_service
        self.session_factory = session_factory
        self.default_profile_image_url = default_profile_image_url
        self.expose_errors = expose_errors

    async def handle_user_landing(self, user_id: str | None) -> ProxyOutcome:
        """
        Build the response for ``GET /proxy/user-landing``.

        Returns:
            ProxyOutcome: 200 with data, 400 for a bad id, 404 for an unknown
            customer, 500 for anything unexpected
        """
        if not validate_user_id(user_id):
            logger.info("Rejected user landing request", user_id=user_id)
            return ProxyOutcome(400, ProxyResponse(success=False, error=INVALID_USER_ID_MESSAGE))

        user_id = str(int(user_id.strip()))

        try:
            session = self.session_factory()
            customer = await self.customer_service.get_by_id(session, user_id)
            if customer is None:
                return ProxyOutcome(
                    404, ProxyResponse(success=False, error=CUSTOMER_NOT_FOUND_MESSAGE)
                )

            product = await self.resolve_product(session, customer)
            result = self.build_result(user_id, customer, product)

            logger.info(
                "User landing resolved",
                user_id=user_id,
                product_id=product.id,
                has_profile_image=bool(customer.profile_image_url),
            )
            return ProxyOutcome(
                200, ProxyResponse(success=True, data=UserProfileResponse.from_result(result))
            )

        except Exception as e:
            logger.error("Error handling user landing", user_id=user_id, error=str(e))
            message = str(e) if self.expose_errors else GENERIC_ERROR_MESSAGE
            return ProxyOutcome(500, ProxyResponse(success=False, error=message))

    async def resolve_product(self, session: Session, customer: CustomerRecord) -> ProductRecord:
        """Assigned product, else the store default, else the placeholder."""
        if customer.assigned_product:
            return customer.assigned_product

        if customer.assigned_product_id:
            logger.info(
                "Assigned product unavailable, using default",
                user_id=customer.id,
                assigned_product_id=customer.assigned_product_id,
            )

        default_product = await self.product_service.get_default(session)
        if default_product:
            return default_product

        return self.product_service.get_default_fallback()

    def build_result(
        self, user_id: str, customer: CustomerRecord, product: ProductRecord
    ) -> PersonalizationResult:
        return PersonalizationResult(
            user_id=user_id,
            first_name=customer.first_name or DEFAULT_FIRST_NAME,
            profile_image_url=customer.profile_image_url or self.default_profile_image_url,
            assigned_product=product,
        )
