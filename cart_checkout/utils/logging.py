"""
Logging setup shared by the API process and the Celery worker.

Every cart/checkout operation stamps an operation id into its log lines so
a single request can be followed across the session store, the product
lookup and the record store.
"""
import logging
import uuid

from cart_checkout.utils.settings import LOG_LEVEL

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure the root logger with a single console handler."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO))
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    root_logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def new_operation_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:12]}"
