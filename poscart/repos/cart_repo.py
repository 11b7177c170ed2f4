# poscart/repos/cart_repo.py
from contextlib import contextmanager
from typing import Iterable

from sqlalchemy import select, update, delete, insert, literal
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from poscart.data.models.cart import CartModel
from poscart.data.models.cart_item import CartItemModel
from poscart.data.models.invoice_sequence import InvoiceSequenceModel
from poscart.domain.enums import CartStatus
from poscart.domain.errors import PersistenceError
from poscart.utils.logging import get_logger

logger = get_logger(__name__)


class CartRepo:
    """
    Persistence port for carts.
    Nothing here commits on its own, unit_of_work() draws the transaction bounds.
    Reads use populate_existing so rows changed by bulk UPDATE/DELETE are never
    served stale from the identity map.
    """

    def __init__(self, db: Session):
        self.db = db

    # =====================================================
    # TRANSACTIONS
    # =====================================================
    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    @contextmanager
    def unit_of_work(self):
        """Commit when the block finishes, roll back everything if it raises."""
        try:
            yield self
            self.commit()
        except SQLAlchemyError as e:
            logger.error(f"Storage error, rolling back: {e}")
            self.rollback()
            raise PersistenceError(str(e)) from e
        except Exception:
            self.rollback()
            raise

    # =====================================================
    # GENERIC PORT
    # =====================================================
    def execute(self, stmt) -> int:
        return self.db.execute(stmt.execution_options(synchronize_session=False)).rowcount

    def query_one(self, stmt):
        return self.db.execute(stmt.execution_options(populate_existing=True)).scalars().first()

    def query_all(self, stmt) -> list:
        return list(self.db.execute(stmt.execution_options(populate_existing=True)).scalars().all())

    # =====================================================
    # CARTS
    # =====================================================
    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.query_one(select(CartModel).where(CartModel.cart_id == cart_id))

    def get_cart_status(self, cart_id: int) -> str | None:
        return self.query_one(select(CartModel.status).where(CartModel.cart_id == cart_id))

    def get_carts_by_status(self, status: CartStatus) -> list[CartModel]:
        return self.query_all(
            select(CartModel).where(CartModel.status == status.value).order_by(CartModel.cart_id)
        )

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.flush()
        return cart

    def rename_cart(self, cart_id: int, cart_name: str) -> int:
        return self.execute(
            update(CartModel).where(CartModel.cart_id == cart_id).values(cart_name=cart_name)
        )

    def set_status(
        self,
        cart_id: int,
        status: CartStatus,
        from_statuses: Iterable[CartStatus],
        **values,
    ) -> int:
        # status condition in WHERE: precondition and change in one statement
        allowed = [s.value for s in from_statuses]
        return self.execute(
            update(CartModel)
            .where(CartModel.cart_id == cart_id, CartModel.status.in_(allowed))
            .values(status=status.value, **values)
        )

    def demote_active_carts(self) -> int:
        return self.execute(
            update(CartModel)
            .where(CartModel.status == CartStatus.ACTIVE.value)
            .values(status=CartStatus.PARKED.value)
        )

    def delete_cart(self, cart_id: int) -> int:
        return self.execute(delete(CartModel).where(CartModel.cart_id == cart_id))

    def _expired_cart_ids(self, cutoff: str):
        return select(CartModel.cart_id).where(
            CartModel.status == CartStatus.ACTIVE.value,
            CartModel.created_at < cutoff,
        )

    def delete_expired_items(self, cutoff: str) -> int:
        return self.execute(
            delete(CartItemModel).where(CartItemModel.cart_id.in_(self._expired_cart_ids(cutoff)))
        )

    def delete_expired_carts(self, cutoff: str) -> int:
        return self.execute(
            delete(CartModel).where(CartModel.cart_id.in_(self._expired_cart_ids(cutoff)))
        )

    # =====================================================
    # CART ITEMS
    # =====================================================
    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        return self.query_all(
            select(CartItemModel).where(CartItemModel.cart_id == cart_id).order_by(CartItemModel.line_id)
        )

    def add_item_to_active_cart(self, cart_id: int, **values) -> CartItemModel | None:
        """
        INSERT ... SELECT guarded by the cart status, so the check and the insert
        are one statement. Returns None when the cart is missing or not active.
        """
        table = CartItemModel.__table__
        values = {"cart_id": cart_id, **values}
        source = select(
            *[literal(v, type_=table.c[k].type).label(k) for k, v in values.items()]
        ).where(CartModel.cart_id == cart_id, CartModel.status == CartStatus.ACTIVE.value)

        result = self.db.execute(insert(table).from_select(list(values), source))
        if result.rowcount == 0:
            return None
        return self.query_one(select(CartItemModel).where(CartItemModel.line_id == result.lastrowid))

    def _line_filter(self, cart_id: int, product_id: int, purchasing_type: str):
        return (
            CartItemModel.cart_id == cart_id,
            CartItemModel.product_id == product_id,
            CartItemModel.purchasing_type == purchasing_type,
        )

    def update_item_quantity(self, cart_id: int, product_id: int, purchasing_type: str, quantity: int) -> int:
        return self.execute(
            update(CartItemModel)
            .where(*self._line_filter(cart_id, product_id, purchasing_type))
            .values(quantity=quantity)
        )

    def delete_cart_item(self, cart_id: int, product_id: int, purchasing_type: str) -> int:
        return self.execute(delete(CartItemModel).where(*self._line_filter(cart_id, product_id, purchasing_type)))

    def delete_cart_items(self, cart_id: int) -> int:
        return self.execute(delete(CartItemModel).where(CartItemModel.cart_id == cart_id))

    # =====================================================
    # INVOICE SEQUENCE
    # =====================================================
    def next_invoice_seq(self, day: str) -> int:
        """Atomic increment of the per-day counter; the first call for a day returns 1."""
        rows = self.execute(
            update(InvoiceSequenceModel)
            .where(InvoiceSequenceModel.day == day)
            .values(last_seq=InvoiceSequenceModel.last_seq + 1)
        )
        if rows == 0:
            self.db.execute(insert(InvoiceSequenceModel).values(day=day, last_seq=1))
        return self.query_one(select(InvoiceSequenceModel.last_seq).where(InvoiceSequenceModel.day == day))
