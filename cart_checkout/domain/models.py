# cart_checkout/domain/models.py
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from cart_checkout.domain.enums import (
    BuyerKind,
    OrderStatus,
    PaymentStatus,
    ProductCategory,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProductRecord(BaseModel):
    """Product as returned by the product lookup, category already resolved."""

    id: str
    name: str
    price: float
    tax_rate: float = 0.0
    category: ProductCategory = ProductCategory.SERVICE
    inventory: int | None = None
    insurance_type: str | None = None
    insurance_limit: float | None = None
    additional_info: str | None = None
    can_purchase: bool = True
    available_from: datetime | None = None
    available_until: datetime | None = None


class CartItem(BaseModel):
    """One staged line; lives in the session store as JSON."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    item_id: str
    order_id: str
    product_id: str
    product_name: str
    category: ProductCategory
    insurance_type: str | None = None
    insurance_limit: float | None = None
    additional_info: str | None = None
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)
    tax_rate: float = Field(..., ge=0, le=100)
    subtotal: float
    tax_amount: float
    total: float
    added_by: str | None = None
    added_at: datetime = Field(default_factory=_utcnow)


class PersistedOrderLine(BaseModel):
    id: str
    order_id: str
    product_id: str
    product_name: str
    category: ProductCategory | None = None
    insurance_type: str | None = None
    insurance_limit: float | None = None
    additional_info: str | None = None
    quantity: int
    unit_price: float
    tax_rate: float
    subtotal: float
    tax_amount: float
    total: float
    created_on: datetime | None = None


class Order(BaseModel):
    id: str
    buyer_id: str
    buyer_kind: BuyerKind = BuyerKind.ACCOUNT
    organization_id: str
    order_status: OrderStatus = OrderStatus.DRAFT
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    subtotal: float = 0.0
    tax_amount: float = 0.0
    total: float = 0.0
    created_on: datetime | None = None


class CheckoutResult(BaseModel):
    order_id: str
    lines: list[PersistedOrderLine]
    subtotal: float
    tax_amount: float
    total: float

    @property
    def items_created(self) -> int:
        return len(self.lines)
