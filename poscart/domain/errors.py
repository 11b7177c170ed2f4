# poscart/domain/errors.py
"""
Domain errors of the cart store.

Every error the cart store raises derives from CartError, so a caller
(router, task, UI bridge) can catch one type and map the subclass to a
message or status code.
"""


class CartError(Exception):
    pass


class NotFoundError(CartError):
    pass


class CartNotFound(NotFoundError):
    def __init__(self, cart_id: int):
        super().__init__(f"Cart {cart_id} not found")
        self.cart_id = cart_id


class ProductNotFound(NotFoundError):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class PreconditionFailed(CartError):
    """The cart is in the wrong status for the requested transition."""

    message = "Cart is in the wrong status"

    def __init__(self, cart_id: int, status: str | None = None):
        detail = self.message if status is None else f"{self.message} (status: {status})"
        super().__init__(detail)
        self.cart_id = cart_id
        self.status = status


class CartNotActive(PreconditionFailed):
    message = "Cart is not active"


class NotActive(PreconditionFailed):
    message = "No active cart found with that ID"


class NotParked(PreconditionFailed):
    message = "No parked cart found with that ID"


class NotCheckoutable(PreconditionFailed):
    message = "Cart cannot be checked out"


class NotPendingCheckout(PreconditionFailed):
    message = "Cart is not pending checkout"


class PersistenceError(CartError):
    """Storage fault; the original driver message is kept in ``str(err)``."""
