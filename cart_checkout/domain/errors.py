"""
Domain errors raised by the cart staging and checkout services.

Routers translate these into HTTP responses; everything else
(RedisError, RequestException) is infrastructure and propagates as is.
"""


class CartError(Exception):
    """Base class for every cart/checkout domain error."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    def to_detail(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class NotFound(CartError):
    pass


class BusinessRuleViolation(CartError):
    pass


class InvalidStatusTransition(BusinessRuleViolation):
    pass


class AmountValidationError(CartError):
    """Stored or computed amounts disagree with recomputation."""


class EmptyCart(CartError):
    def __init__(self, order_id: str):
        super().__init__(f"Cart for order {order_id} is empty")
        self.order_id = order_id


class CheckoutInProgress(CartError):
    def __init__(self, order_id: str):
        super().__init__(f"Checkout already in progress for order {order_id}")
        self.order_id = order_id


class DurableWriteFailure(CartError):
    """
    A record-store write failed during checkout.

    created_ids are the lines that reached the record store before the
    failure, compensated_ids the subset that was deleted again. Anything in
    created_ids but not in compensated_ids is still in the record store.
    """

    def __init__(
        self,
        reason: str,
        created_ids: list[str] | None = None,
        compensated_ids: list[str] | None = None,
    ):
        super().__init__(reason)
        self.reason = reason
        self.created_ids = list(created_ids or [])
        self.compensated_ids = list(compensated_ids or [])

    @property
    def orphaned_ids(self) -> list[str]:
        return [i for i in self.created_ids if i not in self.compensated_ids]

    def to_detail(self) -> dict:
        detail = super().to_detail()
        detail["orphaned_line_ids"] = self.orphaned_ids
        return detail
