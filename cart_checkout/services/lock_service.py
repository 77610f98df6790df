# cart_checkout/services/lock_service.py
import uuid
from contextlib import contextmanager

from cart_checkout.data.session_store import SessionStore
from cart_checkout.domain.errors import CheckoutInProgress
from cart_checkout.utils.settings import CHECKOUT_LOCK_TTL_SECONDS
from cart_checkout.utils.logging import get_logger

logger = get_logger(__name__)

# compare-and-delete in one Lua call: only the holder's token may release,
# and nothing can slip in between GET and DEL
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Single-flight checkout per order.
    The lock has its own TTL so a crashed holder cannot block the order forever.
    """

    def __init__(self, store: SessionStore, ttl: int = CHECKOUT_LOCK_TTL_SECONDS):
        self.store = store
        self.ttl = ttl

    @staticmethod
    def checkout_lock_key(order_id: str) -> str:
        return f"order:{order_id}:checkout:lock"

    def acquire_checkout_lock(self, order_id: str) -> str | None:
        key = self.checkout_lock_key(order_id)
        token = uuid.uuid4().hex
        logger.info(f"Acquire lock {key}")
        # SET order:1:checkout:lock <token> NX EX 30
        if self.store.set_if_absent(key, token, ex=self.ttl):
            return token
        return None

    def release_checkout_lock(self, order_id: str, token: str) -> bool:
        key = self.checkout_lock_key(order_id)
        logger.info(f"Release lock {key}")
        res = self.store.eval(_RELEASE_LUA, [key], [token])
        return bool(res)

    @contextmanager
    def checkout_lock(self, order_id: str):
        token = self.acquire_checkout_lock(order_id)
        if token is None:
            raise CheckoutInProgress(order_id)
        try:
            yield token
        finally:
            if not self.release_checkout_lock(order_id, token):
                logger.warning(f"Checkout lock for order {order_id} expired before release")
