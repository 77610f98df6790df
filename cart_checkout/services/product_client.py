# cart_checkout/services/product_client.py
import requests

from cart_checkout.domain.enums import ProductCategory
from cart_checkout.domain.models import ProductRecord
from cart_checkout.utils.retry import http_retry
from cart_checkout.utils.settings import HTTP_TIMEOUT_SECONDS, PRODUCT_SERVICE_URL
from cart_checkout.utils.logging import get_logger

logger = get_logger(__name__)


def to_product_record(product_id: str, data: dict) -> ProductRecord:
    """Normalize a catalog payload; the category string is resolved here and nowhere else."""
    return ProductRecord(
        id=str(data.get("id") or product_id),
        name=data.get("name") or "",
        price=float(data.get("price") or 0),
        tax_rate=float(data.get("tax_rate") or 0),
        category=ProductCategory.from_catalog(data.get("category")),
        inventory=data.get("inventory"),
        insurance_type=data.get("insurance_type"),
        insurance_limit=data.get("insurance_limit"),
        additional_info=data.get("additional_info"),
        can_purchase=data.get("can_purchase", True),
        available_from=data.get("available_from"),
        available_until=data.get("available_until"),
    )


class ProductClient:
    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout or HTTP_TIMEOUT_SECONDS

    @http_retry()
    def fetch_product(self, product_id: str) -> dict | None:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    def find_by_id(self, product_id: str) -> ProductRecord | None:
        data = self.fetch_product(product_id)
        if data is None:
            return None
        return to_product_record(product_id, data)
