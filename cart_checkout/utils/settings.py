# cart_checkout/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/1")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/2")
PRODUCT_SERVICE_URL = os.getenv("PRODUCT_SERVICE_URL", "http://product-service:8000")
RECORD_STORE_URL = os.getenv("RECORD_STORE_URL", "http://record-store:8080/api/data/v9.2")
RECORD_STORE_TOKEN = os.getenv("RECORD_STORE_TOKEN", "")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", 5))

# cart session window, 2h to check out
CART_TTL_SECONDS = int(os.getenv("CART_TTL_SECONDS", 2*60*60))
CHECKOUT_LOCK_TTL_SECONDS = int(os.getenv("CHECKOUT_LOCK_TTL_SECONDS", 30))
CHECKOUT_MAX_WORKERS = int(os.getenv("CHECKOUT_MAX_WORKERS", 8))
CHECKOUT_COMPENSATE_ON_FAILURE = _flag("CHECKOUT_COMPENSATE_ON_FAILURE", "true")

DRAFT_MAX_AGE_HOURS = int(os.getenv("DRAFT_MAX_AGE_HOURS", 7*24))
# 0 = no beat schedule, the sweep only runs when something calls it
DRAFT_SWEEP_INTERVAL_SECONDS = int(os.getenv("DRAFT_SWEEP_INTERVAL_SECONDS", 0))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
