"""
Request models for the wholesale HTTP adapters.

Payloads use camelCase keys; snake_case names are accepted too.
"""
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..engine.models import CartItemInput, Request


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CartItemModel(_CamelModel):
    """A single requested cart line."""
    product_id: Optional[str] = None
    quantity: Optional[float] = None


class PricingRequestModel(_CamelModel):
    """Request model for cart pricing."""
    items: list[CartItemModel] = Field(default_factory=list)
    vendor_id: Optional[str] = None
    vendor_email: Optional[str] = None
    pricing_tier: Optional[str] = None
    shipping: Optional[float] = None
    tax_rate: Optional[float] = None

    def to_request(self, authorization: Optional[str] = None) -> Request:
        return Request(
            items=[CartItemInput(product_id=i.product_id or '', quantity=i.quantity) for i in self.items],
            vendor_id=self.vendor_id,
            vendor_email=self.vendor_email,
            authorization=authorization,
            pricing_tier=self.pricing_tier,
            shipping=self.shipping,
            tax_rate=self.tax_rate,
        )


class OrderRequestModel(PricingRequestModel):
    """Request model for order placement. The cart may also be sent as ``cart``."""
    items: list[CartItemModel] = Field(
        default_factory=list,
        validation_alias=AliasChoices('items', 'cart'),
    )
