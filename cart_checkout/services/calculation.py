"""
Amount calculation and cart business rules.

    subtotal   = unit_price * quantity
    tax_amount = subtotal * tax_rate / 100
    total      = subtotal + tax_amount

Example: 79.00 x 2 at 13% -> 158.00 + 20.54 = 178.54

The forward computation is plain float arithmetic with no rounding. Stored
values are compared against a fresh recomputation with AMOUNT_TOLERANCE,
which absorbs float drift but catches a tampered or corrupted session.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import NamedTuple, Protocol

from cart_checkout.domain.enums import ProductCategory
from cart_checkout.domain.models import PersistedOrderLine, ProductRecord
from cart_checkout.repos.mappers import IMMUTABLE_LINE_FIELDS
from cart_checkout.utils.logging import get_logger

logger = get_logger(__name__)

AMOUNT_TOLERANCE = 0.01


class Amounts(NamedTuple):
    subtotal: float
    tax_amount: float
    total: float


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: list[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=errors)


def compute_amounts(quantity: int, unit_price: float, tax_rate: float) -> Amounts:
    subtotal = unit_price * quantity
    tax_amount = subtotal * (tax_rate / 100)
    return Amounts(subtotal, tax_amount, subtotal + tax_amount)


def validate_amounts(
    quantity: int,
    unit_price: float,
    tax_rate: float,
    subtotal: float,
    tax_amount: float,
    total: float,
) -> ValidationResult:
    expected = compute_amounts(quantity, unit_price, tax_rate)
    errors = []

    for name, actual, wanted in (
        ("subtotal", subtotal, expected.subtotal),
        ("tax_amount", tax_amount, expected.tax_amount),
        ("total", total, expected.total),
    ):
        # written as "not <=" so a NaN on either side fails
        if not abs(actual - wanted) <= AMOUNT_TOLERANCE:
            errors.append(f"Incorrect {name}: expected {wanted}, got {actual}")

    return ValidationResult.from_errors(errors)


def validate_line_update(current: PersistedOrderLine, changes: dict) -> ValidationResult:
    """Snapshot and calculated fields of a persisted line never change."""
    errors = []
    for name in IMMUTABLE_LINE_FIELDS:
        if name in changes and changes[name] != getattr(current, name):
            errors.append(f"Field '{name}' is immutable and cannot be changed")
    return ValidationResult.from_errors(errors)


class ProductLookup(Protocol):
    def find_by_id(self, product_id: str) -> ProductRecord | None: ...


class CartRuleService:
    """Add-to-cart rules, evaluated against live product data."""

    def __init__(self, product_lookup: ProductLookup):
        self.product_lookup = product_lookup

    def validate_for_creation(self, product_id: str, quantity: int) -> ValidationResult:
        product = self.product_lookup.find_by_id(product_id)
        if product is None:
            return ValidationResult.from_errors([f"Product '{product_id}' not found"])

        errors = []
        errors.extend(self._availability_errors(product))

        if product.price < 0:
            errors.append(f"Product '{product.name}' has a negative price")
        if not 0 <= product.tax_rate <= 100:
            errors.append(f"Product '{product.name}' has tax rate {product.tax_rate} outside 0-100")

        # inventory is read live, stock is expected to move between add and checkout
        if product.category == ProductCategory.PHYSICAL:
            if quantity is None or quantity <= 0:
                errors.append("Quantity must be greater than zero")
            elif isinstance(product.inventory, int) and product.inventory >= 0 and quantity > product.inventory:
                errors.append(
                    f"Insufficient inventory: {product.inventory} available, {quantity} requested"
                )
        else:
            if quantity is None or quantity < 1:
                errors.append("Services require a minimum quantity of 1")

        if errors:
            logger.info(f"Product {product_id} rejected for quantity {quantity}: {errors}")
        return ValidationResult.from_errors(errors)

    @staticmethod
    def _availability_errors(product: ProductRecord) -> list[str]:
        errors = []
        now = datetime.now(timezone.utc)

        if product.can_purchase is False:
            errors.append(f"Product '{product.name}' is not available for purchase")
        if product.available_from and _aware(product.available_from) > now:
            errors.append(f"Product available from {product.available_from.isoformat()}")
        if product.available_until and _aware(product.available_until) < now:
            errors.append(f"Product expired on {product.available_until.isoformat()}")
        return errors


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
