# cart_checkout/celery_worker.py
from celery import Celery
from celery.signals import setup_logging

from cart_checkout.utils.logging import configure_logging
from cart_checkout.utils.settings import (
    CELERY_BROKER_URL,
    CELERY_RESULT_BACKEND,
    DRAFT_SWEEP_INTERVAL_SECONDS,
)

celery_app = Celery(
    "cart_checkout",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# register tasks explicitly
celery_app.conf.imports = (
    "cart_checkout.tasks.drafts",
    "cart_checkout.services.events_service",
)

celery_app.conf.timezone = "UTC"

# the draft sweep only gets a schedule when one is configured
if DRAFT_SWEEP_INTERVAL_SECONDS > 0:
    celery_app.conf.beat_schedule = {
        "clear-expired-drafts": {
            "task": "cart_checkout.tasks.drafts.clear_expired_drafts_task",
            "schedule": float(DRAFT_SWEEP_INTERVAL_SECONDS),
        },
    }


@setup_logging.connect
def _configure_worker_logging(**kwargs):
    configure_logging()
