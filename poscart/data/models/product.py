# poscart/data/models/product.py
from sqlalchemy import Column, Integer, String, Float

from poscart.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"
    __table_args__ = {"sqlite_autoincrement": True}

    product_id = Column(Integer, primary_key=True)
    barcode = Column(String(255), index=True)
    item_name = Column(String(255), index=True)
    category = Column(String(100), index=True)
    unit = Column(String(50))
    bulk_unit = Column(String(50))
    bulk_code = Column(String(255))
    bulk_single_conversion = Column(Float)
    retail_price = Column(Float)
    bulk_price = Column(Float)
    cost = Column(Float)
