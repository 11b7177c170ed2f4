# poscart/services/cart_store.py
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict

from sqlalchemy.orm import Session

from poscart.data.models.cart import CartModel
from poscart.data.models.cart_item import CartItemModel
from poscart.domain.enums import CartStatus, PurchasingType
from poscart.domain.errors import (
    CartNotFound,
    CartNotActive,
    NotActive,
    NotParked,
    NotCheckoutable,
    NotPendingCheckout,
)
from poscart.repos.cart_repo import CartRepo
from poscart.utils.logging import get_logger
from poscart.utils.timeutil import utc_now, format_timestamp, format_day

logger = get_logger(__name__)


@dataclass(frozen=True)
class Checkout:
    cart_id: int
    invoice_id: str


def format_invoice_id(store_id: str, storeman_id: str, day: str, seq: int) -> str:
    return f"{store_id}_{storeman_id}_{day}_{seq:03d}"


class CartStore:
    """
    Cart lifecycle for the point-of-sale terminal.

    Commands (create, add, park, activate, checkout, payment, cancel, cleanup)
    each run in their own unit of work on the session passed in; queries only
    read. Storage faults surface as PersistenceError after rollback, wrong-status
    transitions as PreconditionFailed subclasses. Nothing is retried here.

    At most one cart is active: storage has a partial unique index on it, and
    create/activate demote the current active cart inside the same transaction.
    """

    def __init__(self, db: Session, clock: Callable[[], datetime] = utc_now):
        self.repo = CartRepo(db)
        self.clock = clock

    def _now(self) -> str:
        return format_timestamp(self.clock())

    def _status_failure(self, cart_id: int, error_cls):
        # called inside a unit of work after a conditional UPDATE hit 0 rows
        status = self.repo.get_cart_status(cart_id)
        if status is None:
            return CartNotFound(cart_id)
        return error_cls(cart_id, status)

    # =====================================================
    # QUERY
    # =====================================================
    def get_cart(self, cart_id: int) -> CartModel:
        with self.repo.unit_of_work():
            cart = self.repo.get_cart(cart_id)
        if not cart:
            raise CartNotFound(cart_id)
        return cart

    def get_cart_detail(self, cart_id: int) -> Dict[str, Any]:
        """
        Use Case: Cart with its lines and total (Query).
        Line total is (price - discount) * quantity; discount is per unit.
        """
        with self.repo.unit_of_work():
            cart = self.repo.get_cart(cart_id)
            if not cart:
                raise CartNotFound(cart_id)
            items = self.repo.get_cart_items(cart_id)

        total = sum(((i.price - i.discount) * i.quantity for i in items), 0.0)

        return {
            "cart_id": cart.cart_id,
            "cart_name": cart.cart_name,
            "status": cart.status,
            "created_at": cart.created_at,
            "items": items,
            "total": round(total, 2),
        }

    def list_active(self) -> CartModel | None:
        with self.repo.unit_of_work():
            carts = self.repo.get_carts_by_status(CartStatus.ACTIVE)
        return carts[0] if carts else None

    def list_parked(self) -> list[CartModel]:
        with self.repo.unit_of_work():
            return self.repo.get_carts_by_status(CartStatus.PARKED)

    def list_items(self, cart_id: int) -> list[CartItemModel]:
        with self.repo.unit_of_work():
            return self.repo.get_cart_items(cart_id)

    # =====================================================
    # COMMANDS
    # =====================================================
    def create(self, cart_name: str = "") -> CartModel:
        """
        Use Case: Create a cart (Command).
        The previously active cart, if any, is parked in the same transaction.
        """
        with self.repo.unit_of_work():
            demoted = self.repo.demote_active_carts()
            cart = self.repo.create_cart(
                CartModel(
                    cart_name=cart_name,
                    status=CartStatus.ACTIVE.value,
                    created_at=self._now(),
                )
            )

        if demoted:
            logger.info(f"Parked {demoted} active cart(s) before creating cart {cart.cart_id}")
        logger.info(f"Created cart {cart.cart_id} '{cart_name}'")
        return cart

    def rename(self, cart_id: int, cart_name: str) -> CartModel:
        with self.repo.unit_of_work():
            if self.repo.rename_cart(cart_id, cart_name) == 0:
                raise CartNotFound(cart_id)
            cart = self.repo.get_cart(cart_id)

        logger.info(f"Renamed cart {cart_id} to '{cart_name}'")
        return cart

    def add_item(
        self,
        cart_id: int,
        product_id: int,
        quantity: int,
        price: float,
        purchasing_type: PurchasingType | str,
        scanned_barcode: str | None = None,
        discount: float = 0.0,
    ) -> CartItemModel:
        """
        Use Case: Add a line to the cart (Command).

        Validation:
        - quantity >= 0, purchasing_type single/bulk
        - the cart exists
        - the cart is active, checked by the INSERT itself

        Price and discount come from the caller (already resolved from the
        catalog) and are frozen on the line. Re-adding the same
        (product_id, purchasing_type) inserts another line, lines are not merged.
        """
        purchasing_type = PurchasingType(purchasing_type)
        if quantity < 0:
            raise ValueError("Quantity must not be negative")

        with self.repo.unit_of_work():
            item = self.repo.add_item_to_active_cart(
                cart_id=cart_id,
                product_id=product_id,
                scanned_barcode=scanned_barcode,
                quantity=quantity,
                price=price,
                purchasing_type=purchasing_type.value,
                discount=discount,
            )
            if item is None:
                raise self._status_failure(cart_id, CartNotActive)

        logger.info(
            f"Added product {product_id} x{quantity} ({purchasing_type.value}) "
            f"at {price} to cart {cart_id}"
        )
        return item

    def remove_item(self, cart_id: int, product_id: int, purchasing_type: PurchasingType | str) -> int:
        """Idempotent: removing a line that is not there is not an error."""
        purchasing_type = PurchasingType(purchasing_type)
        with self.repo.unit_of_work():
            removed = self.repo.delete_cart_item(cart_id, product_id, purchasing_type.value)

        logger.info(f"Removed {removed} line(s) of product {product_id} ({purchasing_type.value}) from cart {cart_id}")
        return removed

    def set_item_quantity(
        self,
        cart_id: int,
        product_id: int,
        purchasing_type: PurchasingType | str,
        quantity: int,
    ) -> int:
        """
        Use Case: Change line quantity (Command).
        Quantity 0 removes the line; update and delete never both happen, so the
        operation is a single statement in a single transaction.
        """
        purchasing_type = PurchasingType(purchasing_type)
        if quantity < 0:
            raise ValueError("Quantity must not be negative")

        with self.repo.unit_of_work():
            if quantity == 0:
                affected = self.repo.delete_cart_item(cart_id, product_id, purchasing_type.value)
            else:
                affected = self.repo.update_item_quantity(cart_id, product_id, purchasing_type.value, quantity)

        logger.info(
            f"Set quantity of product {product_id} ({purchasing_type.value}) in cart {cart_id} "
            f"to {quantity}, {affected} line(s) affected"
        )
        return affected

    def park(self, cart_id: int, cart_name: str = "") -> CartModel:
        with self.repo.unit_of_work():
            rows = self.repo.set_status(
                cart_id,
                CartStatus.PARKED,
                from_statuses=(CartStatus.ACTIVE,),
                cart_name=cart_name,
            )
            if rows == 0:
                raise self._status_failure(cart_id, NotActive)
            cart = self.repo.get_cart(cart_id)

        logger.info(f"Parked cart {cart_id} as '{cart_name}'")
        return cart

    def activate(self, cart_id: int) -> CartModel:
        """
        Use Case: Resume a parked cart (Command).

        1. Park every active cart (all of them, not only one)
        2. Promote the target from parked to active

        Both steps share a transaction: if the target is not parked the
        demotion is rolled back and the current active cart stays active.
        """
        with self.repo.unit_of_work():
            demoted = self.repo.demote_active_carts()
            rows = self.repo.set_status(cart_id, CartStatus.ACTIVE, from_statuses=(CartStatus.PARKED,))
            if rows == 0:
                raise self._status_failure(cart_id, NotParked)
            cart = self.repo.get_cart(cart_id)

        logger.info(f"Activated cart {cart_id}, parked {demoted} other cart(s)")
        return cart

    def checkout(self, cart_id: int, store_id: str, storeman_id: str) -> Checkout:
        """
        Use Case: Checkout (Command).

        Moves the cart to pending_checkout and draws the next invoice sequence
        for today (UTC) from the per-day counter, all in one transaction, so two
        checkouts can never get the same number. The invoice id is returned,
        not stored on the cart.
        """
        day = format_day(self.clock())

        with self.repo.unit_of_work():
            rows = self.repo.set_status(
                cart_id,
                CartStatus.PENDING_CHECKOUT,
                from_statuses=(CartStatus.ACTIVE, CartStatus.PARKED),
            )
            if rows == 0:
                raise self._status_failure(cart_id, NotCheckoutable)
            seq = self.repo.next_invoice_seq(day)

        invoice_id = format_invoice_id(store_id, storeman_id, day, seq)
        logger.info(f"Cart {cart_id} pending checkout, invoice {invoice_id}")
        return Checkout(cart_id=cart_id, invoice_id=invoice_id)

    def confirm_payment(self, cart_id: int) -> None:
        """
        Use Case: Confirm payment (Command).
        processed is terminal: the lines and the cart row are deleted together
        with the status change, or nothing happens.
        """
        with self.repo.unit_of_work():
            rows = self.repo.set_status(
                cart_id,
                CartStatus.PROCESSED,
                from_statuses=(CartStatus.PENDING_CHECKOUT,),
            )
            if rows == 0:
                raise self._status_failure(cart_id, NotPendingCheckout)
            lines = self.repo.delete_cart_items(cart_id)
            self.repo.delete_cart(cart_id)

        logger.info(f"Payment confirmed for cart {cart_id}, removed cart and {lines} line(s)")

    def cancel(self, cart_id: int) -> None:
        """Use Case: Cancel a cart in any status (Command)."""
        with self.repo.unit_of_work():
            lines = self.repo.delete_cart_items(cart_id)
            if self.repo.delete_cart(cart_id) == 0:
                raise CartNotFound(cart_id)

        logger.info(f"Cancelled cart {cart_id}, removed {lines} line(s)")

    def cleanup_expired(self, ttl_minutes: int) -> int:
        """
        Delete active carts created more than ``ttl_minutes`` ago, with their
        lines. Parked and pending_checkout carts never expire.
        """
        if ttl_minutes < 0:
            raise ValueError("ttl_minutes must not be negative")

        cutoff = format_timestamp(self.clock() - timedelta(minutes=ttl_minutes))

        with self.repo.unit_of_work():
            lines = self.repo.delete_expired_items(cutoff)
            removed = self.repo.delete_expired_carts(cutoff)

        if removed:
            logger.info(f"Expired {removed} active cart(s) created before {cutoff} ({lines} line(s))")
        return removed
