"""
Checkout: the commit point between the cart session and the record store.

    0. take the per-order checkout lock
    1. read the staged items and re-validate every amount
    2. create all order lines concurrently, then close the draft order
    3. clear the cart session (success only)
    4. publish checkout-completed / checkout-failed

Nothing is written to the record store until every item has passed phase 1.
The record store has no multi-record transaction, so a partial failure in
phase 2 is undone by deleting the lines that did get created. The cart
session survives any failure so the checkout can simply be retried.
"""
from concurrent.futures import ThreadPoolExecutor

from redis.exceptions import RedisError

from cart_checkout.domain.enums import OrderStatus
from cart_checkout.domain.errors import (
    AmountValidationError,
    BusinessRuleViolation,
    DurableWriteFailure,
    EmptyCart,
    NotFound,
)
from cart_checkout.domain.models import CartItem, CheckoutResult, Order, PersistedOrderLine
from cart_checkout.repos.order_line_repo import OrderLineRepo
from cart_checkout.repos.order_repo import OrderRepo
from cart_checkout.services.calculation import validate_amounts
from cart_checkout.services.cart_service import CartService
from cart_checkout.services.events_service import CartEventsService
from cart_checkout.services.lock_service import LockService
from cart_checkout.utils.settings import CHECKOUT_COMPENSATE_ON_FAILURE, CHECKOUT_MAX_WORKERS
from cart_checkout.utils.logging import get_logger, new_operation_id

logger = get_logger(__name__)


class CheckoutService:
    def __init__(
        self,
        cart_service: CartService,
        line_repo: OrderLineRepo,
        lock_service: LockService,
        order_repo: OrderRepo | None = None,
        events: CartEventsService | None = None,
        max_workers: int = CHECKOUT_MAX_WORKERS,
        compensate: bool = CHECKOUT_COMPENSATE_ON_FAILURE,
    ):
        self.cart_service = cart_service
        self.line_repo = line_repo
        self.lock_service = lock_service
        self.order_repo = order_repo
        self.events = events or CartEventsService()
        self.max_workers = max_workers
        self.compensate = compensate

    def checkout(self, order_id: str, actor_id: str | None = None) -> CheckoutResult:
        operation_id = new_operation_id("checkout")

        with self.lock_service.checkout_lock(order_id):
            logger.info(f"Checkout started - Order: {order_id} - Operation: {operation_id}")
            try:
                items, order = self._read_and_validate(order_id)
                logger.info(f"Checkout: {len(items)} items to persist - Operation: {operation_id}")

                lines = self._persist_lines(order_id, items)
                result = CheckoutResult(
                    order_id=order_id,
                    lines=lines,
                    subtotal=sum((i.subtotal for i in items), 0.0),
                    tax_amount=sum((i.tax_amount for i in items), 0.0),
                    total=sum((i.total for i in items), 0.0),
                )
                if order is not None:
                    self._finalize_order(order, result)
            except Exception as e:
                reason = getattr(e, "message", None) or str(e)
                logger.error(f"Checkout failed - Order: {order_id} - Operation: {operation_id}: {reason}")
                self.events.publish_checkout_failed(order_id, reason, actor_id)
                raise

            self._clear_session(order_id, operation_id)

        logger.info(
            f"Checkout completed - Order: {order_id}, {result.items_created} lines, "
            f"total {result.total} - Operation: {operation_id}"
        )
        self.events.publish_checkout_completed(
            order_id,
            result.items_created,
            result.subtotal,
            result.tax_amount,
            result.total,
            actor_id,
        )
        return result

    # phase 1
    def _read_and_validate(self, order_id: str) -> tuple[list[CartItem], Order | None]:
        items = self.cart_service.get_cart_items(order_id)
        if not items:
            raise EmptyCart(order_id)

        order = None
        if self.order_repo is not None:
            order = self.order_repo.find_by_id(order_id)
            if order is None:
                raise NotFound(f"Order {order_id} not found")
            if order.order_status != OrderStatus.DRAFT:
                raise BusinessRuleViolation(
                    f"Order {order_id} is not a draft",
                    [f"Order status is {order.order_status.value}, checkout requires DRAFT"],
                )

        errors = []
        for item in items:
            check = validate_amounts(
                item.quantity,
                item.unit_price,
                item.tax_rate,
                item.subtotal,
                item.tax_amount,
                item.total,
            )
            errors.extend(f"item {item.item_id} ({item.product_id}): {err}" for err in check.errors)

        if errors:
            raise AmountValidationError("Inconsistent amounts detected at checkout", errors)
        return items, order

    # phase 2
    def _persist_lines(self, order_id: str, items: list[CartItem]) -> list[PersistedOrderLine]:
        workers = max(1, min(self.max_workers, len(items)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"checkout-{order_id}") as pool:
            futures = [(item, pool.submit(self.line_repo.create, item)) for item in items]

            created: list[PersistedOrderLine] = []
            failures: list[tuple[CartItem, Exception]] = []
            for item, future in futures:
                try:
                    created.append(future.result())
                except Exception as e:
                    logger.error(f"Creating line for item {item.item_id} of order {order_id} failed: {e}")
                    failures.append((item, e))

        if failures:
            first_item, first_error = failures[0]
            reason = (
                f"{len(failures)} of {len(items)} order lines failed to persist "
                f"(first: item {first_item.item_id}: {first_error})"
            )
            self._fail_with_rollback(order_id, reason, created)
        return created

    def _finalize_order(self, order: Order, result: CheckoutResult) -> None:
        try:
            self.order_repo.finalize_checkout(order, result.subtotal, result.tax_amount, result.total)
        except Exception as e:
            self._fail_with_rollback(order.id, f"Order {order.id} could not be finalized: {e}", result.lines)

    def _fail_with_rollback(self, order_id: str, reason: str, created: list[PersistedOrderLine]) -> None:
        created_ids = [line.id for line in created]
        compensated_ids = self._compensate(order_id, created) if self.compensate else []
        raise DurableWriteFailure(reason, created_ids, compensated_ids)

    def _compensate(self, order_id: str, created: list[PersistedOrderLine]) -> list[str]:
        compensated = []
        for line in created:
            try:
                self.line_repo.delete(line.id)
                compensated.append(line.id)
            except Exception as e:
                # reported back through DurableWriteFailure.orphaned_ids
                logger.error(f"Compensating delete of line {line.id} (order {order_id}) failed: {e}")
        if created:
            logger.warning(
                f"Rolled back {len(compensated)} of {len(created)} created lines for order {order_id}"
            )
        return compensated

    # phase 3
    def _clear_session(self, order_id: str, operation_id: str) -> None:
        try:
            self.cart_service.clear_cart(order_id)
        except RedisError as e:
            # lines are already durable, the stale session expires with its TTL
            logger.error(
                f"Checkout persisted but session cleanup failed - Order: {order_id} - "
                f"Operation: {operation_id}: {e}"
            )
