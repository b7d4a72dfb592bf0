"""
Conversions between REST numeric ids and GraphQL global ids.

REST endpoints address resources by integer id while the GraphQL Admin API
uses ``gid://shopify/<ResourceType>/<id>``. Both directions live here so a
format change only has to happen in one place.
"""

from app.services.shopify.errors import MalformedIdError

GLOBAL_ID_PREFIX = "gid://shopify"


def to_global_id(numeric_id: int | str, resource_type: str) -> str:
    """Format a REST id as a GraphQL global id, e.g. ``gid://shopify/Product/456``."""
    return f"{GLOBAL_ID_PREFIX}/{resource_type}/{numeric_id}"


def to_numeric_id(global_id: str) -> int:
    """
    Extract the numeric REST id from a GraphQL global id.

    Raises:
        MalformedIdError: If the id has no path segments or the trailing
            segment is not a base-10 integer
    """
    if not isinstance(global_id, str) or "/" not in global_id:
        raise MalformedIdError(f"Invalid GraphQL ID format: {global_id}")

    trailing = global_id.rsplit("/", 1)[-1].strip()
    if not trailing:
        raise MalformedIdError(f"Invalid GraphQL ID format: {global_id}")

    try:
        return int(trailing, 10)
    except ValueError:
        raise MalformedIdError(f"Invalid GraphQL ID format: {global_id}") from None
