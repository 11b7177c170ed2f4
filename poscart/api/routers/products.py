# poscart/api/routers/products.py
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from poscart.data.database import get_db
from poscart.domain.errors import ProductNotFound, PersistenceError
from poscart.domain.schemas import ProductOut
from poscart.services.catalog_service import CatalogService, SEARCH_LIMIT

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/search", response_model=list[ProductOut])
def search_products(
    q: str = Query("", max_length=100),
    limit: int = Query(SEARCH_LIMIT, gt=0, le=200),
    db: Session = Depends(get_db),
):
    try:
        return CatalogService(db).search(q, limit=limit)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=f"Storage error: {e}")


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    try:
        return CatalogService(db).get_product(product_id)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=f"Storage error: {e}")
