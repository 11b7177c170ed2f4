# poscart/data/models/cart.py
from sqlalchemy import Column, Integer, String, Index, text
from sqlalchemy.orm import relationship

from poscart.data.database import Base
from poscart.domain.enums import CartStatus
from poscart.utils.timeutil import utc_now, format_timestamp


class CartModel(Base):
    __tablename__ = "carts"
    __table_args__ = (
        # at most one active cart, enforced by storage
        Index(
            "ux_carts_single_active",
            "status",
            unique=True,
            sqlite_where=text("status = 'active'"),
            postgresql_where=text("status = 'active'"),
        ),
        {"sqlite_autoincrement": True},
    )

    cart_id = Column(Integer, primary_key=True)
    cart_name = Column(String(100), nullable=False, default="")
    status = Column(String(20), nullable=False, default=CartStatus.ACTIVE.value)
    created_at = Column(String(19), nullable=False, default=lambda: format_timestamp(utc_now()))

    # no cascade: termination paths delete items explicitly before the cart row
    items = relationship("CartItemModel", back_populates="cart", passive_deletes="all")
