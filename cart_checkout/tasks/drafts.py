# cart_checkout/tasks/drafts.py
from cart_checkout.api.dependencies import get_draft_order_service
from cart_checkout.celery_worker import celery_app
from cart_checkout.utils.settings import DRAFT_MAX_AGE_HOURS
from cart_checkout.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="cart_checkout.tasks.drafts.clear_expired_drafts_task")
def clear_expired_drafts_task(max_age_hours: int = DRAFT_MAX_AGE_HOURS):
    logger.info("Clear expired drafts task started")
    cancelled = get_draft_order_service().clear_expired_drafts(max_age_hours)
    return {"cancelled": cancelled, "max_age_hours": max_age_hours}
