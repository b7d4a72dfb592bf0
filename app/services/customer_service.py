"""
Customer Service
Loads customers with their personalization metafields and resolves the
product assigned to them.

Metafields are an enhancement: any failure while reading them degrades to an
empty set instead of failing the customer lookup.
"""

from typing import Any

from app.infrastructure.observability.logging import get_logger, log_soft_failure
from app.models.domain.shopify_domain import (
    DEFAULT_FIRST_NAME,
    METAFIELD_NAMESPACE,
    METAFIELD_TYPE,
    CreateCustomerRequest,
    CustomerMetafields,
    CustomerRecord,
    Session,
)
from app.services.product_service import ProductService
from app.services.shopify.api_client import ShopifyApiClient
from app.services.shopify.errors import ClientError, CreationFailedError
from app.services.shopify.queries import GET_CUSTOMER_BY_ID
from app.utils.id_conversion import to_global_id

logger = get_logger(__name__)


class CustomerService:
    """Customer lookups, creation and metafield management."""

    def __init__(self, api_client: ShopifyApiClient, product_service: ProductService):
        self.api_client = api_client
        self.product_service = product_service

    async def get_by_id(self, session: Session, customer_id: int | str) -> CustomerRecord | None:
        """
        Fetch a customer together with the product assigned to them.

        Personalization metafields are read in a second, fail-open call.

        Args:
            session: Store credentials
            customer_id: Numeric REST id of the customer

        Returns:
            CustomerRecord, or None when the customer does not exist

        Raises:
            ShopifyApiError: On transport, auth or query failures
        """
        try:
            data = await self.api_client.graphql_call(
                session,
                GET_CUSTOMER_BY_ID,
                {"id": to_global_id(customer_id, "Customer")},
                f"get customer {customer_id}",
            )
        except ClientError as e:
            if e.status_code == 404:
                logger.info("Customer not found", customer_id=str(customer_id))
                return None
            raise

        customer = data.get("customer")
        if not customer:
            logger.info("Customer not found", customer_id=str(customer_id))
            return None

        metafields = await self.get_metafields(session, customer_id)
        assigned_product_id = self._parse_product_id(metafields.assigned_product_id, customer_id)

        assigned_product = None
        if assigned_product_id:
            assigned_product = await self.product_service.get_by_id(session, assigned_product_id)

        return CustomerRecord(
            id=str(customer_id),
            first_name=customer.get("firstName") or "",
            email=customer.get("email") or "",
            profile_image_url=metafields.profile_image_url,
            assigned_product_id=assigned_product_id,
            assigned_product=assigned_product,
        )

    async def get_metafields(self, session: Session, customer_id: int | str) -> CustomerMetafields:
        """
        Read the personalization metafields of a customer over REST.

        Fail-open: any error yields an empty CustomerMetafields.
        """
        try:
            response = await self.api_client.rest_call(
                session,
                "GET",
                f"customers/{customer_id}/metafields",
                {"namespace": METAFIELD_NAMESPACE},
                f"get customer {customer_id} metafields",
            )
            pairs = {
                item["key"]: item.get("value")
                for item in response.get("metafields", [])
                if item.get("namespace", METAFIELD_NAMESPACE) == METAFIELD_NAMESPACE
            }
            return CustomerMetafields.from_pairs(pairs)
        except Exception as e:
            log_soft_failure("get customer metafields", e, customer_id=str(customer_id))
            return CustomerMetafields()

    async def update_metafields(
        self, session: Session, customer_id: int | str, metafields: CustomerMetafields
    ) -> None:
        """Write each present personalization metafield; absent values are skipped."""
        for key, value in metafields.items():
            await self.api_client.rest_call(
                session,
                "POST",
                f"customers/{customer_id}/metafields",
                {"metafield": _metafield_payload(key, value)},
                f"update {key} metafield",
            )
            logger.info("Customer metafield updated", customer_id=str(customer_id), key=key)

    async def create(self, session: Session, request: CreateCustomerRequest) -> int:
        """
        Create a customer with personalization metafields attached.

        Returns:
            int: Numeric id of the created customer

        Raises:
            CreationFailedError: If the response does not contain the customer id
        """
        payload = {
            "customer": {
                "first_name": request.first_name,
                "last_name": request.last_name,
                "email": request.email,
                "metafields": [
                    _metafield_payload(key, value) for key, value in request.metafields().items()
                ],
            }
        }

        response = await self.api_client.rest_call(
            session, "POST", "customers", payload, "create customer"
        )

        customer_id = ((response or {}).get("customer") or {}).get("id")
        if not customer_id:
            raise CreationFailedError("Failed to create customer: Invalid response")

        logger.info("Customer created", customer_id=customer_id)
        return customer_id

    @staticmethod
    def validate_customer_id(value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool) and value > 0

    @staticmethod
    def get_default_customer(customer_id: int | str) -> CustomerRecord:
        """Placeholder customer used when only the id is known."""
        return CustomerRecord(id=str(customer_id), first_name=DEFAULT_FIRST_NAME, email="")

    def _parse_product_id(self, raw: str | None, customer_id: int | str) -> int | None:
        if not raw:
            return None
        try:
            product_id = int(raw, 10)
        except ValueError as e:
            log_soft_failure("parse assigned product id", e, customer_id=str(customer_id))
            return None
        if not ProductService.validate_product_id(product_id):
            log_soft_failure(
                "parse assigned product id", f"not a positive id: {raw}", customer_id=str(customer_id)
            )
            return None
        return product_id


def _metafield_payload(key: str, value: str) -> dict[str, str]:
    return {
        "namespace": METAFIELD_NAMESPACE,
        "key": key,
        "value": value,
        "type": METAFIELD_TYPE,
    }
