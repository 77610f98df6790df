# cart_checkout/main.py
from fastapi import FastAPI
import uvicorn

from cart_checkout.api.routers import cart_items, health, orders
from cart_checkout.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(
        title="Order Cart Service",
        version="1.0.0",
    )

    # Include routers
    app.include_router(health.router)
    app.include_router(orders.router)
    app.include_router(cart_items.router)

    logger.info("Order Cart Service ready")
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
