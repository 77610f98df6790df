# cart_checkout/repos/order_repo.py
from datetime import datetime, timezone

from cart_checkout.data.record_store import RecordStoreClient, RecordStoreError, odata_quote
from cart_checkout.domain.enums import BuyerKind, OrderStatus, can_transition
from cart_checkout.domain.errors import InvalidStatusTransition, NotFound
from cart_checkout.domain.models import Order
from cart_checkout.repos.mappers import (
    ORDER_ENTITY,
    buyer_filter,
    new_draft_record,
    record_to_order,
)
from cart_checkout.utils.logging import get_logger

logger = get_logger(__name__)

_DRAFT_FILTER = f"order_status eq {odata_quote(OrderStatus.DRAFT.value)}"


class OrderRepo:
    def __init__(self, client: RecordStoreClient):
        self.client = client

    def find_by_id(self, order_id: str) -> Order | None:
        row = self.client.get(ORDER_ENTITY, order_id)
        return record_to_order(row) if row else None

    def find_draft(
        self,
        buyer_id: str,
        organization_id: str,
        buyer_kind: BuyerKind = BuyerKind.ACCOUNT,
    ) -> Order | None:
        where = (
            f"{_DRAFT_FILTER}"
            f" and {buyer_filter(buyer_id, buyer_kind)}"
            f" and _organization_value eq {odata_quote(organization_id)}"
        )
        rows = self.client.query(ORDER_ENTITY, where=where, top=1, orderby="createdon desc")
        return record_to_order(rows[0]) if rows else None

    def create_draft(
        self,
        buyer_id: str,
        organization_id: str,
        buyer_kind: BuyerKind = BuyerKind.ACCOUNT,
    ) -> Order:
        order_id = self.client.create(ORDER_ENTITY, new_draft_record(buyer_id, buyer_kind, organization_id))
        created = self.find_by_id(order_id)
        if created is None:
            raise RecordStoreError(f"Order {order_id} created but could not be retrieved")
        logger.info(f"Draft order {order_id} created for {buyer_kind.value.lower()} {buyer_id}")
        return created

    def update_status(self, order_id: str, target: OrderStatus) -> Order:
        order = self.find_by_id(order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found")
        self._check_transition(order, target)

        self.client.update(ORDER_ENTITY, order_id, {"order_status": target.value})
        return order.model_copy(update={"order_status": target})

    def finalize_checkout(self, order: Order, subtotal: float, tax_amount: float, total: float) -> Order:
        """Write checkout totals and move the order out of DRAFT."""
        self._check_transition(order, OrderStatus.SUBMITTED)

        changes = {
            "order_status": OrderStatus.SUBMITTED.value,
            "subtotal": subtotal,
            "tax_amount": tax_amount,
            "total": total,
        }
        self.client.update(ORDER_ENTITY, order.id, changes)
        return order.model_copy(
            update={
                "order_status": OrderStatus.SUBMITTED,
                "subtotal": subtotal,
                "tax_amount": tax_amount,
                "total": total,
            }
        )

    def find_drafts_created_before(self, cutoff: datetime) -> list[Order]:
        stamp = cutoff.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        rows = self.client.query(ORDER_ENTITY, where=f"{_DRAFT_FILTER} and createdon lt {stamp}")
        return [record_to_order(r) for r in rows]

    @staticmethod
    def _check_transition(order: Order, target: OrderStatus) -> None:
        if not can_transition(order.order_status, target):
            raise InvalidStatusTransition(
                f"Order {order.id} cannot move from {order.order_status.value} to {target.value}",
                [f"Invalid status transition {order.order_status.value} -> {target.value}"],
            )
