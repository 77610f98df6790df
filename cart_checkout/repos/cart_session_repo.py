# cart_checkout/repos/cart_session_repo.py
import json

from pydantic import ValidationError

from cart_checkout.data.session_store import SessionStore
from cart_checkout.domain.errors import AmountValidationError
from cart_checkout.domain.models import CartItem
from cart_checkout.utils.settings import CART_TTL_SECONDS
from cart_checkout.utils.logging import get_logger

logger = get_logger(__name__)


class CartSessionRepo:
    """
    Key schema of a cart session in the session store:

        order:{orderId}:items:{itemId}  -> CartItem JSON
        order:{orderId}:itemIds         -> JSON list of item ids, insertion order
        order:{orderId}:total           -> JSON number, cached running total

    Each key carries its own TTL; every write resets it to the full window.
    """

    def __init__(self, store: SessionStore, ttl: int = CART_TTL_SECONDS):
        self.store = store
        self.ttl = ttl

    @staticmethod
    def session_key(order_id: str) -> str:
        return f"order:{order_id}"

    def item_key(self, order_id: str, item_id: str) -> str:
        return f"{self.session_key(order_id)}:items:{item_id}"

    def item_ids_key(self, order_id: str) -> str:
        return f"{self.session_key(order_id)}:itemIds"

    def total_key(self, order_id: str) -> str:
        return f"{self.session_key(order_id)}:total"

    # reads
    def get_item_ids(self, order_id: str) -> list[str]:
        raw = self.store.get(self.item_ids_key(order_id))
        return json.loads(raw) if raw else []

    def get_item(self, order_id: str, item_id: str) -> CartItem | None:
        raw = self.store.get(self.item_key(order_id, item_id))
        if raw is None:
            return None
        try:
            return CartItem.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Cart item {item_id} of order {order_id} is corrupt: {e}")
            raise AmountValidationError(
                f"Cart item {item_id} could not be read",
                [err["msg"] for err in e.errors()],
            ) from e

    def get_cached_total(self, order_id: str) -> float | None:
        raw = self.store.get(self.total_key(order_id))
        return float(json.loads(raw)) if raw else None

    # writes
    def put_item(self, item: CartItem) -> None:
        self.store.set(self.item_key(item.order_id, item.item_id), item.model_dump_json(), ex=self.ttl)

    def save_item_ids(self, order_id: str, item_ids: list[str]) -> None:
        self.store.set(self.item_ids_key(order_id), json.dumps(item_ids), ex=self.ttl)

    def save_total(self, order_id: str, total: float) -> None:
        self.store.set(self.total_key(order_id), json.dumps(total), ex=self.ttl)

    def delete_item(self, order_id: str, item_id: str) -> bool:
        return self.store.delete(self.item_key(order_id, item_id)) > 0

    def touch_items(self, order_id: str, item_ids: list[str]) -> None:
        """Reset the TTL of already staged items so the session expires as one."""
        for item_id in item_ids:
            self.store.expire(self.item_key(order_id, item_id), self.ttl)

    def delete_session(self, order_id: str, item_ids: list[str]) -> None:
        for item_id in item_ids:
            self.store.delete(self.item_key(order_id, item_id))
        self.store.delete(self.item_ids_key(order_id))
        self.store.delete(self.total_key(order_id))
