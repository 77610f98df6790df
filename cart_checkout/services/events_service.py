# cart_checkout/services/events_service.py
from datetime import datetime, timezone
from typing import Callable

from cart_checkout.celery_worker import celery_app
from cart_checkout.domain.models import CartItem
from cart_checkout.utils.logging import get_logger

logger = get_logger(__name__)

Dispatch = Callable[[str, dict], None]


def _dispatch_via_celery(event_name: str, payload: dict) -> None:
    publish_cart_event_task.delay(event_name, payload)


class CartEventsService:
    """
    Publishes cart/checkout domain events for audit.
    Fire-and-forget: a failing publish is logged and never reaches the caller.
    """

    def __init__(self, dispatch: Dispatch | None = None):
        self._dispatch = dispatch or _dispatch_via_celery

    def publish(self, event_name: str, payload: dict) -> None:
        payload = {**payload, "timestamp": datetime.now(timezone.utc).isoformat()}
        logger.info(f"[EVENT] {event_name} {payload}")
        try:
            self._dispatch(event_name, payload)
        except Exception as e:
            logger.warning(f"Publishing {event_name} failed: {e}")

    def publish_snapshot_captured(self, item: CartItem, actor_id: str | None) -> None:
        self.publish(
            "order-product.snapshot-captured",
            {
                "order_id": item.order_id,
                "product_id": item.product_id,
                "product_name": item.product_name,
                "insurance_type": item.insurance_type,
                "insurance_limit": item.insurance_limit,
                "additional_info": item.additional_info,
                "unit_price": item.unit_price,
                "tax_rate": item.tax_rate,
                "actor_id": actor_id,
            },
        )

    def publish_product_added(self, item: CartItem, actor_id: str | None) -> None:
        self.publish(
            "order-product.added",
            {
                "order_id": item.order_id,
                "item_id": item.item_id,
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "tax_rate": item.tax_rate,
                "actor_id": actor_id,
            },
        )

    def publish_product_removed(self, item: CartItem) -> None:
        self.publish(
            "order-product.removed",
            {
                "order_id": item.order_id,
                "item_id": item.item_id,
                "product_id": item.product_id,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
            },
        )

    def publish_cart_cleared(self, order_id: str, items_cleared: int) -> None:
        self.publish("order-product.cart-cleared", {"order_id": order_id, "items_cleared": items_cleared})

    def publish_checkout_completed(
        self,
        order_id: str,
        total_items: int,
        subtotal: float,
        tax_amount: float,
        total: float,
        actor_id: str | None,
    ) -> None:
        self.publish(
            "order-product.checkout-completed",
            {
                "order_id": order_id,
                "total_items": total_items,
                "subtotal": subtotal,
                "tax_amount": tax_amount,
                "total": total,
                "actor_id": actor_id,
            },
        )

    def publish_checkout_failed(self, order_id: str, reason: str, actor_id: str | None) -> None:
        self.publish(
            "order-product.checkout-failed",
            {"order_id": order_id, "reason": reason, "actor_id": actor_id},
        )


@celery_app.task(name="cart_checkout.services.events_service.publish_cart_event_task")
def publish_cart_event_task(event_name: str, payload: dict):
    """
    Audit sink. Only logs for now; subscribers (email, webhooks) hang off here.
    """
    logger.info(f"[AUDIT] {event_name}: {payload}")
    return {"event": event_name, "status": "recorded"}
