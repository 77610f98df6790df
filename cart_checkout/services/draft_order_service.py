# cart_checkout/services/draft_order_service.py
from datetime import datetime, timedelta, timezone

from cart_checkout.domain.enums import BuyerKind, OrderStatus
from cart_checkout.domain.errors import InvalidStatusTransition, NotFound
from cart_checkout.domain.models import Order
from cart_checkout.repos.order_repo import OrderRepo
from cart_checkout.services.cart_service import CartService
from cart_checkout.utils.settings import DRAFT_MAX_AGE_HOURS
from cart_checkout.utils.logging import get_logger, new_operation_id

logger = get_logger(__name__)


class DraftOrderService:
    """
    Keeps exactly one open DRAFT order per buyer, the anchor cart items attach to.
    Uniqueness comes from get-or-create, the record store has no constraint for it.
    """

    def __init__(self, order_repo: OrderRepo, cart_service: CartService | None = None):
        self.order_repo = order_repo
        self.cart_service = cart_service

    def get_or_create_draft(
        self,
        buyer_id: str,
        organization_id: str,
        buyer_kind: BuyerKind = BuyerKind.ACCOUNT,
    ) -> str:
        existing = self.order_repo.find_draft(buyer_id, organization_id, buyer_kind)
        if existing:
            logger.info(f"Buyer {buyer_id} already has draft order {existing.id}")
            return existing.id

        created = self.order_repo.create_draft(buyer_id, organization_id, buyer_kind)
        logger.info(f"Created draft order {created.id} for buyer {buyer_id} in {organization_id}")
        return created.id

    def get_order(self, order_id: str) -> Order | None:
        return self.order_repo.find_by_id(order_id)

    def clear_expired_drafts(self, max_age_hours: int = DRAFT_MAX_AGE_HOURS) -> int:
        """
        Cancel DRAFT orders older than max_age_hours and drop their cart sessions.

        Meant to be called by an external scheduler; returns how many drafts
        were cancelled.
        """
        operation_id = new_operation_id("clear_expired_drafts")
        cutoff = datetime.now(timezone.utc) - timedelta(hours=max_age_hours)
        drafts = self.order_repo.find_drafts_created_before(cutoff)
        logger.info(f"Found {len(drafts)} drafts older than {cutoff.isoformat()} - Operation: {operation_id}")

        cancelled = 0
        for draft in drafts:
            try:
                self.order_repo.update_status(draft.id, OrderStatus.CANCELLED)
            except (InvalidStatusTransition, NotFound) as e:
                # checked out or deleted between query and update
                logger.info(f"Skipping order {draft.id}: {e.message}")
                continue

            if self.cart_service is not None:
                self.cart_service.clear_cart(draft.id)
            cancelled += 1

        logger.info(f"Cancelled {cancelled} expired drafts - Operation: {operation_id}")
        return cancelled
