import re
import threading
import uuid
from datetime import datetime, timezone

import pytest
import requests

from cart_checkout.data.session_store import SessionStore
from cart_checkout.domain.enums import ProductCategory
from cart_checkout.domain.models import ProductRecord
from cart_checkout.repos.cart_session_repo import CartSessionRepo
from cart_checkout.repos.order_line_repo import OrderLineRepo
from cart_checkout.repos.order_repo import OrderRepo
from cart_checkout.services.cart_service import CartService
from cart_checkout.services.checkout_service import CheckoutService
from cart_checkout.services.draft_order_service import DraftOrderService
from cart_checkout.services.events_service import CartEventsService
from cart_checkout.services.lock_service import LockService


class FakeRedis:
    """In-memory stand-in for the handful of redis-py calls the services make."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    def get(self, name):
        return self.data.get(name)

    def set(self, name, value, ex=None, nx=False):
        if nx and name in self.data:
            return None
        self.data[name] = value
        self.ttls[name] = ex
        return True

    def delete(self, *names):
        removed = 0
        for name in names:
            if name in self.data:
                del self.data[name]
                self.ttls.pop(name, None)
                removed += 1
        return removed

    def expire(self, name, seconds):
        if name not in self.data:
            return False
        self.ttls[name] = seconds
        return True

    def eval(self, script, numkeys, *args):
        # only the compare-and-delete release script is used
        key, token = args[0], args[1]
        if self.data.get(key) == token:
            return self.delete(key)
        return 0

    def ping(self):
        return True

    # test helpers
    def expire_now(self, name):
        self.delete(name)

    def keys_with_prefix(self, prefix):
        return sorted(k for k in self.data if k.startswith(prefix))


class FakeProductLookup:
    def __init__(self, *products):
        self.products = {p.id: p for p in products}
        self.calls = 0

    def find_by_id(self, product_id):
        self.calls += 1
        return self.products.get(product_id)

    def put(self, product):
        self.products[product.id] = product


_BIND_RE = re.compile(r"^/(\w+)\(([^()]+)\)$")
_PRIMARY_KEYS = {"orders": "orderid", "order_lines": "order_lineid"}


class FakeRecordStore:
    """
    In-memory record store speaking the same calls as RecordStoreClient.
    Understands `@odata.bind` on write and simple `eq`/`lt` filters joined by `and`.
    """

    def __init__(self):
        self.tables = {"orders": {}, "order_lines": {}}
        self.fail_create = None  # callable(entity_set, payload) -> bool
        self.fail_update = None
        self.fail_delete = None
        self.create_calls = 0
        self.deleted = []
        self._lock = threading.Lock()

    def _row_from_payload(self, payload):
        row = {}
        for key, value in payload.items():
            if key.endswith("@odata.bind"):
                lookup = key[: -len("@odata.bind")]
                row[f"_{lookup}_value"] = _BIND_RE.match(value).group(2)
            else:
                row[key] = value
        return row

    def create(self, entity_set, payload):
        with self._lock:
            self.create_calls += 1
        if self.fail_create and self.fail_create(entity_set, payload):
            raise requests.HTTPError(f"500 Server Error creating {entity_set}")
        record_id = str(uuid.uuid4())
        row = self._row_from_payload(payload)
        row[_PRIMARY_KEYS[entity_set]] = record_id
        row.setdefault("createdon", datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"))
        self.tables[entity_set][record_id] = row
        return record_id

    def get(self, entity_set, record_id):
        row = self.tables[entity_set].get(record_id)
        return dict(row) if row else None

    def query(self, entity_set, where=None, top=None, orderby=None):
        rows = [dict(r) for r in self.tables[entity_set].values() if self._matches(r, where)]
        if orderby:
            field, _, direction = orderby.partition(" ")
            rows.sort(key=lambda r: r.get(field) or "", reverse=direction == "desc")
        return rows[:top] if top else rows

    def update(self, entity_set, record_id, changes):
        if self.fail_update and self.fail_update(entity_set, record_id):
            raise requests.HTTPError(f"500 Server Error updating {entity_set}")
        self.tables[entity_set][record_id].update(changes)

    def delete(self, entity_set, record_id):
        if self.fail_delete and self.fail_delete(entity_set, record_id):
            raise requests.HTTPError(f"500 Server Error deleting {entity_set}")
        self.deleted.append(record_id)
        return self.tables[entity_set].pop(record_id, None) is not None

    @staticmethod
    def _matches(row, where):
        if not where:
            return True
        for clause in where.split(" and "):
            field, op, raw = clause.strip().split(" ", 2)
            value = raw[1:-1].replace("''", "'") if raw.startswith("'") else raw
            actual = row.get(field)
            if op == "eq" and actual != value:
                return False
            if op == "lt" and not (actual is not None and actual < value):
                return False
        return True


class RecordingEvents(CartEventsService):
    def __init__(self, fail=False):
        self.published = []
        self.fail = fail
        super().__init__(dispatch=self._record)

    def _record(self, event_name, payload):
        if self.fail:
            raise ConnectionError("broker down")
        self.published.append((event_name, payload))

    def names(self):
        return [name for name, _ in self.published]


def make_product(product_id="prod-1", **overrides):
    data = dict(
        id=product_id,
        name="Professional Liability",
        price=79.0,
        tax_rate=13.0,
        category=ProductCategory.SERVICE,
    )
    data.update(overrides)
    return ProductRecord(**data)


@pytest.fixture()
def fake_redis():
    return FakeRedis()


@pytest.fixture()
def session_store(fake_redis):
    return SessionStore(client=fake_redis)


@pytest.fixture()
def products():
    return FakeProductLookup(
        make_product("ins-1", name="Professional Liability", price=79.0, tax_rate=13.0),
        make_product(
            "book-1",
            name="Practice Guide",
            price=25.0,
            tax_rate=5.0,
            category=ProductCategory.PHYSICAL,
            inventory=5,
        ),
        make_product("mem-1", name="Annual Membership", price=250.0, tax_rate=0.0),
    )


@pytest.fixture()
def events():
    return RecordingEvents()


@pytest.fixture()
def record_store():
    return FakeRecordStore()


@pytest.fixture()
def order_repo(record_store):
    return OrderRepo(record_store)


@pytest.fixture()
def line_repo(record_store):
    return OrderLineRepo(record_store)


@pytest.fixture()
def cart_service(session_store, products, events):
    return CartService(CartSessionRepo(session_store), products, events=events)


@pytest.fixture()
def draft_service(order_repo, cart_service):
    return DraftOrderService(order_repo, cart_service)


@pytest.fixture()
def checkout_service(cart_service, line_repo, session_store, order_repo, events):
    return CheckoutService(
        cart_service=cart_service,
        line_repo=line_repo,
        lock_service=LockService(session_store),
        order_repo=order_repo,
        events=events,
        max_workers=4,
    )


@pytest.fixture()
def draft_order_id(draft_service):
    return draft_service.get_or_create_draft("acct-1", "org-1")
