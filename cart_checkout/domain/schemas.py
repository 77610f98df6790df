# cart_checkout/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from datetime import datetime

from cart_checkout.domain.enums import BuyerKind, OrderStatus, PaymentStatus, ProductCategory


class ItemIn(BaseModel):
    """Add-to-cart request body."""

    product_id: str = Field(..., min_length=1, description="Catalog product id")
    quantity: int = Field(..., gt=0, description="Quantity, must be > 0")
    actor_id: str | None = Field(None, description="User performing the action")


class CartItemOut(BaseModel):
    """Staged cart line (response)."""

    item_id: str
    order_id: str
    product_id: str
    product_name: str
    category: ProductCategory
    insurance_type: str | None = None
    insurance_limit: float | None = None
    additional_info: str | None = None
    quantity: int
    unit_price: float
    tax_rate: float
    subtotal: float
    tax_amount: float
    total: float

    model_config = ConfigDict(from_attributes=True)


class CartOut(BaseModel):
    order_id: str
    items: List[CartItemOut]
    total: float
    item_count: int


class CheckoutOut(BaseModel):
    order_id: str
    items_created: int
    total: float
    status: str


class DraftOrderIn(BaseModel):
    buyer_id: str = Field(..., min_length=1)
    organization_id: str = Field(..., min_length=1)
    buyer_kind: BuyerKind = BuyerKind.ACCOUNT


class DraftOrderOut(BaseModel):
    order_id: str


class OrderOut(BaseModel):
    id: str
    buyer_id: str
    buyer_kind: BuyerKind
    organization_id: str
    order_status: OrderStatus
    payment_status: PaymentStatus
    subtotal: float
    tax_amount: float
    total: float
    created_on: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
