# poscart/data/seed.py
from sqlalchemy.orm import Session

from poscart.data.database import SessionLocal
from poscart.data.models.product import ProductModel
from poscart.utils.logging import get_logger

logger = get_logger(__name__)

SAMPLE_PRODUCTS = [
    dict(barcode="8934563123456", item_name="Cà phê sữa đá", category="Drinks", unit="cup",
         retail_price=25000.0, cost=12000.0),
    dict(barcode="8934563000011", item_name="Nước suối", category="Drinks", unit="bottle",
         bulk_unit="crate", bulk_code="8934563000028", bulk_single_conversion=24.0,
         retail_price=5000.0, bulk_price=100000.0, cost=3000.0),
    dict(barcode="8934563000042", item_name="Bánh mì", category="Bakery", unit="piece",
         retail_price=15000.0, cost=8000.0),
    dict(barcode="8934563000059", item_name="Mì gói", category="Dry goods", unit="pack",
         bulk_unit="box", bulk_code="8934563000066", bulk_single_conversion=30.0,
         retail_price=4000.0, bulk_price=110000.0, cost=2500.0),
]


def seed_products(db: Session | None = None) -> int:
    """Insert sample products when the catalog is empty. Returns rows inserted."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            return 0
        db.add_all([ProductModel(**p) for p in SAMPLE_PRODUCTS])
        db.commit()
        logger.info(f"Seeded {len(SAMPLE_PRODUCTS)} products")
        return len(SAMPLE_PRODUCTS)
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    from poscart.data.database import init_db

    init_db()
    seed_products()
