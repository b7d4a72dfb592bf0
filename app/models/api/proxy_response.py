# app/models/api/proxy_response.py
"""
Proxy API response models.
Used by the app proxy routes for output formatting.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.domain.shopify_domain import PersonalizationResult, ProductRecord


class AssignedProductResponse(BaseModel):
    """Product shown on the personalized landing page."""

    id: int = Field(..., description="Numeric product ID (0 for the placeholder product)")
    title: str = Field(..., description="Product title")
    handle: str = Field(..., description="URL-safe product handle")
    price: str = Field(..., description="Price of the first variant as a decimal string")
    image_url: str = Field(default="", description="First product image URL")
    available: bool = Field(default=False, description="Active and first variant sellable")

    @classmethod
    def from_record(cls, product: ProductRecord) -> "AssignedProductResponse":
        return cls(**product.to_dict())


class UserProfileResponse(BaseModel):
    """Personalized data for one storefront user."""

    user_id: str = Field(..., description="Customer ID from the request")
    first_name: str = Field(..., description="Display name")
    profile_image_url: str = Field(..., description="Avatar URL")
    assigned_product: AssignedProductResponse | None = Field(
        None, description="Assigned, default or placeholder product"
    )

    @classmethod
    def from_result(cls, result: PersonalizationResult) -> "UserProfileResponse":
        return cls(
            user_id=result.user_id,
            first_name=result.first_name,
            profile_image_url=result.profile_image_url,
            assigned_product=(
                AssignedProductResponse.from_record(result.assigned_product)
                if result.assigned_product
                else None
            ),
        )


class ProxyResponse(BaseModel):
    """Envelope returned by every proxy endpoint."""

    success: bool = Field(..., description="Whether the request succeeded")
    data: UserProfileResponse | None = Field(None, description="Payload on success")
    error: str | None = Field(None, description="Error message on failure")


class HealthResponse(BaseModel):
    """Liveness payload for the API and proxy health endpoints."""

    success: bool = Field(default=True, description="Always true when the app is running")
    message: str = Field(..., description="Human readable status")
    timestamp: datetime = Field(..., description="Server time of the check")
