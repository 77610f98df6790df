# cart_checkout/domain/enums.py
from enum import Enum


class ProductCategory(str, Enum):
    PHYSICAL = "PHYSICAL"  # inventoried, stock checked live
    SERVICE = "SERVICE"  # unlimited quantity

    @classmethod
    def from_catalog(cls, raw: str | None) -> "ProductCategory":
        # catalog marks inventoried goods with the "general" category
        if raw is not None and str(raw).strip().lower() == "general":
            return cls.PHYSICAL
        return cls.SERVICE


class BuyerKind(str, Enum):
    ACCOUNT = "ACCOUNT"
    AFFILIATE = "AFFILIATE"


class OrderStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(str, Enum):
    UNPAID = "UNPAID"
    PENDING = "PENDING"
    PAID = "PAID"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"
    FULLY_REFUNDED = "FULLY_REFUNDED"


ORDER_STATUS_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.DRAFT: frozenset({OrderStatus.SUBMITTED, OrderStatus.CANCELLED}),
    OrderStatus.SUBMITTED: frozenset(
        {OrderStatus.PENDING_APPROVAL, OrderStatus.PROCESSING, OrderStatus.CANCELLED}
    ),
    OrderStatus.PENDING_APPROVAL: frozenset({OrderStatus.APPROVED, OrderStatus.CANCELLED}),
    OrderStatus.APPROVED: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ORDER_STATUS_TRANSITIONS.get(current, frozenset())
