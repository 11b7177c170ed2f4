# poscart/data/models/cart_item.py
from sqlalchemy import Column, Integer, ForeignKey, String, Float, Index
from sqlalchemy.orm import relationship

from poscart.data.database import Base


class CartItemModel(Base):
    """
    Pozycja koszyka. Identyfikowana przez (cart_id, product_id, purchasing_type);
    line_id istnieje tylko dlatego, ze ORM wymaga klucza glownego.
    """

    __tablename__ = "cart_items"
    __table_args__ = (Index("ix_cart_items_line_key", "cart_id", "product_id", "purchasing_type"),)

    line_id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.cart_id"), nullable=False)
    product_id = Column(Integer, nullable=False)
    scanned_barcode = Column(String(255), nullable=True)
    quantity = Column(Integer, nullable=False)
    # frozen at insertion, never re-read from the catalog
    price = Column(Float, nullable=False)
    purchasing_type = Column(String(10), nullable=False)
    discount = Column(Float, nullable=False, default=0.0)

    cart = relationship("CartModel", back_populates="items")
