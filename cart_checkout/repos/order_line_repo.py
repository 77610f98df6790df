# cart_checkout/repos/order_line_repo.py
from cart_checkout.data.record_store import RecordStoreClient, RecordStoreError, odata_quote
from cart_checkout.domain.models import CartItem, PersistedOrderLine
from cart_checkout.repos.mappers import (
    ORDER_LINE_ENTITY,
    ORDER_LINE_FIELDS,
    cart_item_to_record,
    line_changes_to_record,
    record_to_order_line,
)
from cart_checkout.services.calculation import validate_line_update
from cart_checkout.domain.errors import BusinessRuleViolation, NotFound
from cart_checkout.utils.logging import get_logger

logger = get_logger(__name__)


class OrderLineRepo:
    def __init__(self, client: RecordStoreClient):
        self.client = client

    def create(self, item: CartItem) -> PersistedOrderLine:
        line_id = self.client.create(ORDER_LINE_ENTITY, cart_item_to_record(item))

        # read back to get server-side fields (createdon)
        created = self.find_by_id(line_id)
        if created is None:
            raise RecordStoreError(f"Order line {line_id} created but could not be retrieved")

        logger.info(f"Order line {line_id} created for order {item.order_id}")
        return created

    def find_by_id(self, line_id: str) -> PersistedOrderLine | None:
        row = self.client.get(ORDER_LINE_ENTITY, line_id)
        return record_to_order_line(row) if row else None

    def find_by_order_id(self, order_id: str) -> list[PersistedOrderLine]:
        rows = self.client.query(
            ORDER_LINE_ENTITY,
            where=f"{ORDER_LINE_FIELDS['order']} eq {odata_quote(order_id)}",
            orderby=f"{ORDER_LINE_FIELDS['created_on']} asc",
        )
        return [record_to_order_line(r) for r in rows]

    def update(self, line_id: str, changes: dict) -> PersistedOrderLine:
        current = self.find_by_id(line_id)
        if current is None:
            raise NotFound(f"Order line {line_id} not found")

        result = validate_line_update(current, changes)
        if not result.is_valid:
            raise BusinessRuleViolation(f"Order line {line_id} cannot be updated", result.errors)

        self.client.update(ORDER_LINE_ENTITY, line_id, line_changes_to_record(changes))
        return self.find_by_id(line_id) or current

    def delete(self, line_id: str) -> bool:
        deleted = self.client.delete(ORDER_LINE_ENTITY, line_id)
        if deleted:
            logger.info(f"Order line {line_id} deleted")
        return deleted
