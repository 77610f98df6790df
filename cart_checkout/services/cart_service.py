"""
Cart staging service.

Every cart mutation lands in the session store only; the record store is not
touched until checkout. Items are snapshots: product name, price and tax rate
are read once at add time and never re-read from the catalog.
"""
import uuid

from cart_checkout.domain.errors import AmountValidationError, BusinessRuleViolation, NotFound
from cart_checkout.domain.models import CartItem
from cart_checkout.repos.cart_session_repo import CartSessionRepo
from cart_checkout.services.calculation import (
    CartRuleService,
    ProductLookup,
    compute_amounts,
    validate_amounts,
)
from cart_checkout.services.events_service import CartEventsService
from cart_checkout.utils.logging import get_logger, new_operation_id

logger = get_logger(__name__)


class CartService:
    def __init__(
        self,
        session_repo: CartSessionRepo,
        product_lookup: ProductLookup,
        rules: CartRuleService | None = None,
        events: CartEventsService | None = None,
    ):
        self.repo = session_repo
        self.product_lookup = product_lookup
        self.rules = rules or CartRuleService(product_lookup)
        self.events = events or CartEventsService()

    # commands
    def add_to_cart(
        self,
        order_id: str,
        product_id: str,
        quantity: int,
        actor_id: str | None = None,
    ) -> CartItem:
        operation_id = new_operation_id("add_to_cart")
        logger.info(
            f"Adding product {product_id} x{quantity} to order {order_id} - Operation: {operation_id}"
        )

        validation = self.rules.validate_for_creation(product_id, quantity)
        if not validation.is_valid:
            raise BusinessRuleViolation("Cart item validation failed", validation.errors)

        # fresh read, this is the snapshot source
        product = self.product_lookup.find_by_id(product_id)
        if product is None:
            raise NotFound(f"Product '{product_id}' not found")

        amounts = compute_amounts(quantity, product.price, product.tax_rate)
        check = validate_amounts(quantity, product.price, product.tax_rate, *amounts)
        if not check.is_valid:
            raise AmountValidationError("Inconsistent item amounts", check.errors)

        item = CartItem(
            item_id=str(uuid.uuid4()),
            order_id=order_id,
            product_id=product.id,
            product_name=product.name,
            category=product.category,
            insurance_type=product.insurance_type,
            insurance_limit=product.insurance_limit,
            additional_info=product.additional_info,
            quantity=quantity,
            unit_price=product.price,
            tax_rate=product.tax_rate,
            subtotal=amounts.subtotal,
            tax_amount=amounts.tax_amount,
            total=amounts.total,
            added_by=actor_id,
        )

        item_ids = self.repo.get_item_ids(order_id)
        self.repo.put_item(item)
        self.repo.save_item_ids(order_id, item_ids + [item.item_id])
        self.repo.touch_items(order_id, item_ids)
        total = self.get_cart_total(order_id)

        logger.info(
            f"Item {item.item_id} staged for order {order_id}, cart total {total} - Operation: {operation_id}"
        )

        self.events.publish_snapshot_captured(item, actor_id)
        self.events.publish_product_added(item, actor_id)
        return item

    def remove_from_cart(self, order_id: str, item_id: str) -> bool:
        operation_id = new_operation_id("remove_from_cart")
        logger.info(f"Removing item {item_id} from order {order_id} - Operation: {operation_id}")

        corrupt = False
        try:
            item = self.repo.get_item(order_id, item_id)
        except AmountValidationError:
            # removing is how a caller gets rid of an unreadable blob
            logger.warning(f"Removing unreadable item {item_id} from order {order_id} - Operation: {operation_id}")
            item, corrupt = None, True

        item_ids = self.repo.get_item_ids(order_id)
        if item is None and not corrupt and item_id not in item_ids:
            logger.info(f"Item {item_id} already gone from order {order_id} - Operation: {operation_id}")
            return False

        deleted = self.repo.delete_item(order_id, item_id)
        remaining = [i for i in item_ids if i != item_id]
        self.repo.save_item_ids(order_id, remaining)
        self.repo.touch_items(order_id, remaining)
        total = self.get_cart_total(order_id)

        if item is None:
            # stale id (blob expired) or unreadable blob, nothing to announce
            logger.info(f"Dropped {item_id} from order {order_id}, new total {total} - Operation: {operation_id}")
            return deleted

        logger.info(f"Item {item_id} removed, new total {total} - Operation: {operation_id}")
        self.events.publish_product_removed(item)
        return True

    def clear_cart(self, order_id: str) -> int:
        operation_id = new_operation_id("clear_cart")
        item_ids = self.repo.get_item_ids(order_id)
        self.repo.delete_session(order_id, item_ids)

        logger.info(f"Cleared {len(item_ids)} items from order {order_id} - Operation: {operation_id}")
        self.events.publish_cart_cleared(order_id, len(item_ids))
        return len(item_ids)

    # queries
    def get_cart_items(self, order_id: str) -> list[CartItem]:
        items = []
        for item_id in self.repo.get_item_ids(order_id):
            item = self.repo.get_item(order_id, item_id)
            # expired under a stale id
            if item is not None:
                items.append(item)
        return items

    def get_cart_item(self, order_id: str, item_id: str) -> CartItem | None:
        return self.repo.get_item(order_id, item_id)

    def get_cart(self, order_id: str) -> tuple[list[CartItem], float]:
        """Staged items and their sum; the cached total is refreshed, never trusted."""
        items = self.get_cart_items(order_id)
        total = sum((i.total for i in items), 0.0)
        self.repo.save_total(order_id, total)
        return items, total

    def get_cart_total(self, order_id: str) -> float:
        return self.get_cart(order_id)[1]
