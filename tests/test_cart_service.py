import json

import pytest

from cart_checkout.domain.errors import AmountValidationError, BusinessRuleViolation
from cart_checkout.domain.enums import ProductCategory
from cart_checkout.repos.cart_session_repo import CartSessionRepo
from cart_checkout.services.cart_service import CartService
from conftest import RecordingEvents, make_product

ORDER_ID = "order-1"


class TestAddToCart:
    def test_item_is_snapshotted_with_computed_amounts(self, cart_service):
        item = cart_service.add_to_cart(ORDER_ID, "ins-1", 2, actor_id="user-7")

        assert item.order_id == ORDER_ID
        assert item.product_name == "Professional Liability"
        assert item.category == ProductCategory.SERVICE
        assert item.unit_price == 79.0
        assert item.subtotal == pytest.approx(158.0)
        assert item.tax_amount == pytest.approx(20.54)
        assert item.total == pytest.approx(178.54)
        assert item.added_by == "user-7"

    def test_item_is_readable_back(self, cart_service):
        item = cart_service.add_to_cart(ORDER_ID, "ins-1", 2)

        assert cart_service.get_cart_items(ORDER_ID) == [item]
        assert cart_service.get_cart_item(ORDER_ID, item.item_id) == item

    def test_items_keep_insertion_order(self, cart_service):
        first = cart_service.add_to_cart(ORDER_ID, "ins-1", 1)
        second = cart_service.add_to_cart(ORDER_ID, "book-1", 2)
        third = cart_service.add_to_cart(ORDER_ID, "mem-1", 1)

        ids = [i.item_id for i in cart_service.get_cart_items(ORDER_ID)]
        assert ids == [first.item_id, second.item_id, third.item_id]

    def test_same_product_twice_gives_two_items(self, cart_service):
        cart_service.add_to_cart(ORDER_ID, "ins-1", 1)
        cart_service.add_to_cart(ORDER_ID, "ins-1", 1)

        assert len(cart_service.get_cart_items(ORDER_ID)) == 2

    def test_snapshot_ignores_later_catalog_changes(self, cart_service, products):
        item = cart_service.add_to_cart(ORDER_ID, "ins-1", 2)

        products.put(make_product("ins-1", name="Renamed", price=999.0, tax_rate=50.0))

        stored = cart_service.get_cart_item(ORDER_ID, item.item_id)
        assert stored.product_name == "Professional Liability"
        assert stored.unit_price == 79.0
        assert stored.tax_rate == 13.0

    def test_rule_violation_writes_nothing(self, cart_service, fake_redis, events):
        with pytest.raises(BusinessRuleViolation) as exc:
            cart_service.add_to_cart(ORDER_ID, "book-1", 6)

        assert "5 available, 6 requested" in exc.value.errors[0]
        assert fake_redis.keys_with_prefix(f"order:{ORDER_ID}") == []
        assert events.published == []

    def test_unknown_product_is_rejected(self, cart_service):
        with pytest.raises(BusinessRuleViolation) as exc:
            cart_service.add_to_cart(ORDER_ID, "nope", 1)

        assert exc.value.errors == ["Product 'nope' not found"]

    def test_publishes_snapshot_then_added(self, cart_service, events):
        item = cart_service.add_to_cart(ORDER_ID, "ins-1", 2, actor_id="user-7")

        assert events.names() == ["order-product.snapshot-captured", "order-product.added"]
        added = events.published[1][1]
        assert added["item_id"] == item.item_id
        assert added["actor_id"] == "user-7"
        assert "timestamp" in added

    def test_failing_event_dispatch_does_not_fail_the_add(self, session_store, products):
        svc = CartService(CartSessionRepo(session_store), products, events=RecordingEvents(fail=True))

        item = svc.add_to_cart(ORDER_ID, "ins-1", 1)

        assert svc.get_cart_items(ORDER_ID) == [item]


class TestSessionTtl:
    def test_every_key_gets_the_full_window(self, cart_service, fake_redis):
        cart_service.add_to_cart(ORDER_ID, "ins-1", 1)

        keys = fake_redis.keys_with_prefix(f"order:{ORDER_ID}")
        assert len(keys) == 3
        assert {fake_redis.ttls[k] for k in keys} == {7200}

    def test_mutation_refreshes_existing_items(self, cart_service, fake_redis):
        first = cart_service.add_to_cart(ORDER_ID, "ins-1", 1)
        first_key = f"order:{ORDER_ID}:items:{first.item_id}"
        fake_redis.ttls[first_key] = 12

        cart_service.add_to_cart(ORDER_ID, "mem-1", 1)

        assert fake_redis.ttls[first_key] == 7200


class TestRemoveAndClear:
    def test_remove_drops_item_and_updates_total(self, cart_service, session_store):
        keep = cart_service.add_to_cart(ORDER_ID, "ins-1", 2)
        drop = cart_service.add_to_cart(ORDER_ID, "mem-1", 1)

        assert cart_service.remove_from_cart(ORDER_ID, drop.item_id) is True

        assert cart_service.get_cart_items(ORDER_ID) == [keep]
        assert json.loads(session_store.get(f"order:{ORDER_ID}:total")) == pytest.approx(178.54)

    def test_remove_missing_item_is_a_no_op(self, cart_service, fake_redis, events):
        cart_service.add_to_cart(ORDER_ID, "ins-1", 1)
        before = dict(fake_redis.data)
        events.published.clear()

        assert cart_service.remove_from_cart(ORDER_ID, "ghost") is False

        assert fake_redis.data == before
        assert events.published == []

    def test_remove_publishes_removed_event(self, cart_service, events):
        item = cart_service.add_to_cart(ORDER_ID, "ins-1", 1)

        cart_service.remove_from_cart(ORDER_ID, item.item_id)

        assert events.names()[-1] == "order-product.removed"

    def test_stale_id_is_pruned(self, cart_service, fake_redis, session_store):
        item = cart_service.add_to_cart(ORDER_ID, "ins-1", 1)
        fake_redis.expire_now(f"order:{ORDER_ID}:items:{item.item_id}")

        assert cart_service.remove_from_cart(ORDER_ID, item.item_id) is False
        assert json.loads(session_store.get(f"order:{ORDER_ID}:itemIds")) == []

    def test_unreadable_item_can_be_removed(self, cart_service, session_store):
        broken = cart_service.add_to_cart(ORDER_ID, "ins-1", 1)
        kept = cart_service.add_to_cart(ORDER_ID, "mem-1", 1)
        session_store.set(f"order:{ORDER_ID}:items:{broken.item_id}", '{"garbage": 1}', ex=7200)

        assert cart_service.remove_from_cart(ORDER_ID, broken.item_id) is True

        assert session_store.get(f"order:{ORDER_ID}:items:{broken.item_id}") is None
        assert cart_service.get_cart_items(ORDER_ID) == [kept]
        assert cart_service.get_cart_total(ORDER_ID) == pytest.approx(250.0)

    def test_clear_removes_every_key(self, cart_service, fake_redis, events):
        cart_service.add_to_cart(ORDER_ID, "ins-1", 1)
        cart_service.add_to_cart(ORDER_ID, "mem-1", 1)

        assert cart_service.clear_cart(ORDER_ID) == 2

        assert fake_redis.keys_with_prefix(f"order:{ORDER_ID}") == []
        assert cart_service.get_cart_items(ORDER_ID) == []
        name, payload = events.published[-1]
        assert name == "order-product.cart-cleared"
        assert payload["items_cleared"] == 2

    def test_clear_leaves_other_orders_alone(self, cart_service):
        other = cart_service.add_to_cart("order-2", "ins-1", 1)
        cart_service.add_to_cart(ORDER_ID, "ins-1", 1)

        cart_service.clear_cart(ORDER_ID)

        assert cart_service.get_cart_items("order-2") == [other]


class TestReads:
    def test_expired_item_is_skipped(self, cart_service, fake_redis):
        gone = cart_service.add_to_cart(ORDER_ID, "ins-1", 1)
        kept = cart_service.add_to_cart(ORDER_ID, "mem-1", 1)
        fake_redis.expire_now(f"order:{ORDER_ID}:items:{gone.item_id}")

        assert cart_service.get_cart_items(ORDER_ID) == [kept]

    def test_total_is_recomputed_not_trusted(self, cart_service, session_store):
        cart_service.add_to_cart(ORDER_ID, "ins-1", 2)
        cart_service.add_to_cart(ORDER_ID, "mem-1", 1)
        session_store.set(f"order:{ORDER_ID}:total", json.dumps(1.0), ex=7200)

        assert cart_service.get_cart_total(ORDER_ID) == pytest.approx(428.54)
        assert cart_service.repo.get_cached_total(ORDER_ID) == pytest.approx(428.54)

    def test_empty_cart(self, cart_service):
        assert cart_service.get_cart_items("nothing-here") == []
        assert cart_service.get_cart_total("nothing-here") == 0.0

    def test_corrupt_item_blob_is_reported(self, cart_service, session_store):
        item = cart_service.add_to_cart(ORDER_ID, "ins-1", 1)
        session_store.set(f"order:{ORDER_ID}:items:{item.item_id}", '{"item_id": "x"}', ex=7200)

        with pytest.raises(AmountValidationError):
            cart_service.get_cart_items(ORDER_ID)

    def test_get_cart_returns_items_and_refreshes_total(self, cart_service, session_store):
        item = cart_service.add_to_cart(ORDER_ID, "ins-1", 2)
        session_store.set(f"order:{ORDER_ID}:total", json.dumps(1.0), ex=7200)

        items, total = cart_service.get_cart(ORDER_ID)

        assert items == [item]
        assert total == pytest.approx(178.54)
        assert cart_service.repo.get_cached_total(ORDER_ID) == pytest.approx(178.54)
