import pytest

from cart_checkout.domain.enums import ProductCategory
from cart_checkout.services import product_client
from cart_checkout.services.product_client import ProductClient, to_product_record


class FakeResponse:
    def __init__(self, status_code, body=None):
        self.status_code = status_code
        self._body = body

    def json(self):
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise product_client.requests.HTTPError(f"{self.status_code} error")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("general", ProductCategory.PHYSICAL),
        ("General ", ProductCategory.PHYSICAL),
        ("insurance", ProductCategory.SERVICE),
        ("membership", ProductCategory.SERVICE),
        (None, ProductCategory.SERVICE),
    ],
)
def test_category_is_resolved_at_the_boundary(raw, expected):
    record = to_product_record("p-1", {"name": "x", "price": 1, "category": raw})

    assert record.category == expected


def test_payload_is_normalized():
    record = to_product_record(
        "p-1",
        {
            "name": "Practice Guide",
            "price": "25.00",
            "tax_rate": 5,
            "category": "general",
            "inventory": 12,
            "can_purchase": False,
        },
    )

    assert record.id == "p-1"
    assert record.price == 25.0
    assert record.tax_rate == 5.0
    assert record.inventory == 12
    assert record.can_purchase is False


def test_find_by_id(monkeypatch):
    seen = []

    def fake_get(url, timeout):
        seen.append(url)
        return FakeResponse(200, {"id": "p-1", "name": "Guide", "price": 25.0, "category": "general"})

    monkeypatch.setattr(product_client.requests, "get", fake_get)

    record = ProductClient(base_url="http://catalog.test/").find_by_id("p-1")

    assert seen == ["http://catalog.test/products/p-1"]
    assert record.name == "Guide"
    assert record.category == ProductCategory.PHYSICAL


def test_unknown_product(monkeypatch):
    monkeypatch.setattr(product_client.requests, "get", lambda url, timeout: FakeResponse(404))

    assert ProductClient(base_url="http://catalog.test").find_by_id("missing") is None
