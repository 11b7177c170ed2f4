# poscart/services/catalog_service.py
from sqlalchemy import select, or_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from poscart.data.database import fold_text
from poscart.data.models.product import ProductModel
from poscart.domain.enums import PurchasingType
from poscart.domain.errors import ProductNotFound, PersistenceError
from poscart.utils.logging import get_logger

logger = get_logger(__name__)

SEARCH_LIMIT = 50


class CatalogService:
    """
    Product search and line price resolution.
    Read-only over the products table; the cart store never calls this,
    callers resolve price and unit here before adding a line.
    """

    def __init__(self, db: Session):
        self.db = db

    def _all(self, stmt) -> list[ProductModel]:
        try:
            return list(self.db.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            logger.error(f"Catalog query failed: {e}")
            raise PersistenceError(str(e)) from e

    def search(self, query: str, limit: int = SEARCH_LIMIT) -> list[ProductModel]:
        """Substring match on barcode or name, ignoring case and accents."""
        stmt = select(ProductModel).order_by(ProductModel.product_id).limit(limit)

        if query.strip():
            pattern = f"%{fold_text(query.strip())}%"
            stmt = stmt.where(
                or_(
                    func.fold_text(ProductModel.barcode).like(pattern),
                    func.fold_text(ProductModel.item_name).like(pattern),
                )
            )

        products = self._all(stmt)
        logger.info(f"Catalog search '{query}' returned {len(products)} product(s)")
        return products

    def get_product(self, product_id: int) -> ProductModel:
        found = self._all(select(ProductModel).where(ProductModel.product_id == product_id))
        if not found:
            raise ProductNotFound(product_id)
        return found[0]

    def resolve_price(self, product_id: int, purchasing_type: PurchasingType | str) -> tuple[float, str]:
        """Unit price and unit name for one purchasing type of a product."""
        product = self.get_product(product_id)

        if PurchasingType(purchasing_type) == PurchasingType.SINGLE:
            return product.retail_price or 0.0, product.unit or ""
        return product.bulk_price or 0.0, product.bulk_unit or "bulk"
