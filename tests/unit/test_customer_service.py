from unittest.mock import AsyncMock, MagicMock

import pytest

from app.models.domain.shopify_domain import (
    CreateCustomerRequest,
    CustomerMetafields,
    ProductRecord,
)
from app.services.customer_service import CustomerService
from app.services.shopify.errors import (
    ClientError,
    CreationFailedError,
    UpstreamCallError,
)

ASSIGNED_PRODUCT = ProductRecord(
    id=456, title="Blue Mug", handle="blue-mug", price="19.99", available=True
)


@pytest.fixture
def api_client():
    client = MagicMock()
    client.graphql_call = AsyncMock()
    client.rest_call = AsyncMock()
    return client


@pytest.fixture
def product_service():
    service = MagicMock()
    service.get_by_id = AsyncMock(return_value=ASSIGNED_PRODUCT)
    return service


@pytest.fixture
def customer_service(api_client, product_service):
    return CustomerService(api_client, product_service)


@pytest.mark.asyncio
async def test_get_by_id_assembles_customer_with_assigned_product(
    customer_service, api_client, product_service, session, make_customer_node, make_metafields_body
):
    api_client.graphql_call.return_value = {"customer": make_customer_node()}
    api_client.rest_call.return_value = make_metafields_body(
        {"profile_image_url": "https://x/img.jpg", "assigned_product_id": "456"}
    )

    customer = await customer_service.get_by_id(session, "123")

    assert customer.id == "123"
    assert customer.first_name == "John"
    assert customer.email == "john@example.com"
    assert customer.profile_image_url == "https://x/img.jpg"
    assert customer.assigned_product_id == 456
    assert customer.assigned_product == ASSIGNED_PRODUCT
    product_service.get_by_id.assert_awaited_once_with(session, 456)
    assert api_client.graphql_call.await_args.args[2] == {"id": "gid://shopify/Customer/123"}
    assert api_client.rest_call.await_args.args[1:3] == ("GET", "customers/123/metafields")


@pytest.mark.asyncio
async def test_get_by_id_returns_none_when_customer_missing(customer_service, api_client, session):
    api_client.graphql_call.return_value = {"customer": None}

    assert await customer_service.get_by_id(session, "404") is None
    api_client.rest_call.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_by_id_returns_none_on_404(customer_service, api_client, session):
    api_client.graphql_call.side_effect = ClientError("get customer 999", "Not Found", 404)

    assert await customer_service.get_by_id(session, "999") is None
    api_client.rest_call.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_by_id_without_assignment_skips_product_lookup(
    customer_service, api_client, product_service, session, make_customer_node, make_metafields_body
):
    api_client.graphql_call.return_value = {"customer": make_customer_node(first_name=None)}
    api_client.rest_call.return_value = make_metafields_body()

    customer = await customer_service.get_by_id(session, "123")

    assert customer.first_name == ""
    assert customer.assigned_product_id is None
    assert customer.assigned_product is None
    product_service.get_by_id.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_by_id_ignores_other_namespaces_and_keys(
    customer_service, api_client, session, make_customer_node, make_metafields_body
):
    body = make_metafields_body({"profile_image_url": "https://x/a.jpg", "shoe_size": "44"})
    body["metafields"].extend(
        make_metafields_body({"assigned_product_id": "999"}, namespace="loyalty")["metafields"]
    )
    api_client.graphql_call.return_value = {"customer": make_customer_node()}
    api_client.rest_call.return_value = body

    customer = await customer_service.get_by_id(session, "123")

    assert customer.profile_image_url == "https://x/a.jpg"
    assert customer.assigned_product_id is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        ClientError("get customer 123 metafields", "Forbidden", 403),
        UpstreamCallError("get customer 123 metafields", "timeout", 503),
    ],
)
async def test_get_by_id_returns_customer_when_metafield_read_fails(
    customer_service, api_client, product_service, session, make_customer_node, error
):
    api_client.graphql_call.return_value = {"customer": make_customer_node()}
    api_client.rest_call.side_effect = error

    customer = await customer_service.get_by_id(session, "123")

    assert customer.first_name == "John"
    assert customer.profile_image_url is None
    assert customer.assigned_product_id is None
    product_service.get_by_id.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_by_id_is_fail_open_on_malformed_metafields(
    customer_service, api_client, product_service, session, make_customer_node
):
    api_client.graphql_call.return_value = {"customer": make_customer_node()}
    api_client.rest_call.return_value = {"metafields": [{"unexpected": "shape"}]}

    customer = await customer_service.get_by_id(session, "123")

    assert customer is not None
    assert customer.profile_image_url is None
    assert customer.assigned_product_id is None
    product_service.get_by_id.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["not-a-number", "-5", "0"])
async def test_get_by_id_ignores_invalid_assigned_product_id(
    customer_service, api_client, product_service, session, make_customer_node, make_metafields_body, raw
):
    api_client.graphql_call.return_value = {"customer": make_customer_node()}
    api_client.rest_call.return_value = make_metafields_body({"assigned_product_id": raw})

    customer = await customer_service.get_by_id(session, "123")

    assert customer.assigned_product_id is None
    product_service.get_by_id.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_by_id_propagates_upstream_failures(customer_service, api_client, session):
    api_client.graphql_call.side_effect = ClientError("get customer 123", "Unauthorized", 401)

    with pytest.raises(ClientError):
        await customer_service.get_by_id(session, "123")


@pytest.mark.asyncio
async def test_get_metafields_reads_personalization_namespace(customer_service, api_client, session):
    api_client.rest_call.return_value = {
        "metafields": [
            {"namespace": "personalization", "key": "profile_image_url", "value": "https://x/i.jpg"},
            {"namespace": "personalization", "key": "assigned_product_id", "value": "456"},
            {"namespace": "other", "key": "profile_image_url", "value": "https://x/other.jpg"},
        ]
    }

    metafields = await customer_service.get_metafields(session, 123)

    assert metafields == CustomerMetafields(
        profile_image_url="https://x/i.jpg", assigned_product_id="456"
    )
    _, method, path, params, _ = api_client.rest_call.await_args.args
    assert (method, path, params) == ("GET", "customers/123/metafields", {"namespace": "personalization"})


@pytest.mark.asyncio
async def test_get_metafields_is_fail_open(customer_service, api_client, session):
    api_client.rest_call.side_effect = UpstreamCallError("get customer 123 metafields", "boom")

    metafields = await customer_service.get_metafields(session, 123)

    assert metafields == CustomerMetafields()
    assert metafields.profile_image_url is None
    assert metafields.assigned_product_id is None


@pytest.mark.asyncio
async def test_update_metafields_writes_only_present_values(customer_service, api_client, session):
    api_client.rest_call.return_value = {"metafield": {"id": 1}}

    await customer_service.update_metafields(
        session, 123, CustomerMetafields(profile_image_url="https://x/new.jpg")
    )

    api_client.rest_call.assert_awaited_once()
    payload = api_client.rest_call.await_args.args[3]
    assert payload == {
        "metafield": {
            "namespace": "personalization",
            "key": "profile_image_url",
            "value": "https://x/new.jpg",
            "type": "single_line_text_field",
        }
    }


@pytest.mark.asyncio
async def test_update_metafields_writes_both_keys(customer_service, api_client, session):
    api_client.rest_call.return_value = {"metafield": {"id": 1}}

    await customer_service.update_metafields(
        session,
        123,
        CustomerMetafields(profile_image_url="https://x/new.jpg", assigned_product_id="789"),
    )

    assert api_client.rest_call.await_count == 2


@pytest.mark.asyncio
async def test_create_attaches_metafields_conditionally(customer_service, api_client, session):
    api_client.rest_call.return_value = {"customer": {"id": 555}}
    request = CreateCustomerRequest(
        first_name="Ada", last_name="Lovelace", email="ada@example.com", assigned_product_id="456"
    )

    customer_id = await customer_service.create(session, request)

    assert customer_id == 555
    _, method, path, payload, _ = api_client.rest_call.await_args.args
    assert (method, path) == ("POST", "customers")
    assert payload["customer"]["metafields"] == [
        {
            "namespace": "personalization",
            "key": "assigned_product_id",
            "value": "456",
            "type": "single_line_text_field",
        }
    ]


@pytest.mark.asyncio
async def test_create_without_personalization_sends_no_metafields(
    customer_service, api_client, session
):
    api_client.rest_call.return_value = {"customer": {"id": 556}}
    request = CreateCustomerRequest(
        first_name="Ada", last_name="Lovelace", email="ada@example.com", profile_image_url=""
    )

    await customer_service.create(session, request)

    assert api_client.rest_call.await_args.args[3]["customer"]["metafields"] == []


@pytest.mark.asyncio
async def test_create_requires_customer_id_in_response(customer_service, api_client, session):
    api_client.rest_call.return_value = {"customer": {"email": "ada@example.com"}}
    request = CreateCustomerRequest(first_name="Ada", last_name="L", email="ada@example.com")

    with pytest.raises(CreationFailedError):
        await customer_service.create(session, request)


@pytest.mark.parametrize("value,expected", [(123, True), (1, True), (0, False), (-1, False), (1.5, False), ("123", False), (None, False)])
def test_validate_customer_id(value, expected):
    assert CustomerService.validate_customer_id(value) is expected


def test_get_default_customer():
    customer = CustomerService.get_default_customer(123)

    assert customer.id == "123"
    assert customer.first_name == "Valued Customer"
    assert customer.email == ""
    assert customer.profile_image_url is None
    assert customer.assigned_product_id is None
