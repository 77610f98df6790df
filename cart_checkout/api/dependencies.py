# cart_checkout/api/dependencies.py
from functools import lru_cache

from cart_checkout.data.record_store import RecordStoreClient
from cart_checkout.data.session_store import SessionStore
from cart_checkout.repos.cart_session_repo import CartSessionRepo
from cart_checkout.repos.order_line_repo import OrderLineRepo
from cart_checkout.repos.order_repo import OrderRepo
from cart_checkout.services.cart_service import CartService
from cart_checkout.services.checkout_service import CheckoutService
from cart_checkout.services.draft_order_service import DraftOrderService
from cart_checkout.services.lock_service import LockService
from cart_checkout.services.product_client import ProductClient


# clients hold connection pools, build them once per process
@lru_cache
def get_session_store() -> SessionStore:
    return SessionStore()


@lru_cache
def get_record_store() -> RecordStoreClient:
    return RecordStoreClient()


@lru_cache
def get_product_client() -> ProductClient:
    return ProductClient()


def get_cart_service() -> CartService:
    return CartService(
        session_repo=CartSessionRepo(get_session_store()),
        product_lookup=get_product_client(),
    )


def get_checkout_service() -> CheckoutService:
    record_store = get_record_store()
    return CheckoutService(
        cart_service=get_cart_service(),
        line_repo=OrderLineRepo(record_store),
        lock_service=LockService(get_session_store()),
        order_repo=OrderRepo(record_store),
    )


def get_draft_order_service() -> DraftOrderService:
    return DraftOrderService(
        order_repo=OrderRepo(get_record_store()),
        cart_service=get_cart_service(),
    )
