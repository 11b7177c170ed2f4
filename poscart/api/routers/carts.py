#poscart/api/routers/carts.py
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from poscart.data.database import get_db
from poscart.domain.enums import PurchasingType
from poscart.domain.errors import CartError, NotFoundError, PreconditionFailed, PersistenceError
from poscart.domain.schemas import (
    CreateCartIn,
    RenameCartIn,
    ParkCartIn,
    ItemIn,
    QuantityIn,
    CheckoutIn,
    CartOut,
    CartDetailOut,
    CartItemOut,
    CheckoutOut,
    RemovedOut,
    AffectedOut,
)
from poscart.services.cart_store import CartStore
from poscart.services.catalog_service import CatalogService
from poscart.utils.settings import CART_TTL_MINUTES

router = APIRouter(prefix="/carts", tags=["carts"])


def get_store(db: Session = Depends(get_db)) -> CartStore:
    return CartStore(db)


def to_http(e: CartError) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, PreconditionFailed):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, PersistenceError):
        return HTTPException(status_code=503, detail=f"Storage error: {e}")
    return HTTPException(status_code=400, detail=str(e))


@router.post("/", response_model=CartOut, status_code=201)
def create_cart(payload: CreateCartIn, store: CartStore = Depends(get_store)):
    try:
        return store.create(payload.cart_name)
    except CartError as e:
        raise to_http(e)


@router.get("/active", response_model=CartOut | None)
def get_active_cart(store: CartStore = Depends(get_store)):
    try:
        return store.list_active()
    except CartError as e:
        raise to_http(e)


@router.get("/parked", response_model=list[CartOut])
def list_parked_carts(store: CartStore = Depends(get_store)):
    try:
        return store.list_parked()
    except CartError as e:
        raise to_http(e)


@router.post("/cleanup", response_model=RemovedOut)
def cleanup_expired_carts(
    ttl_minutes: int = Query(CART_TTL_MINUTES, ge=0),
    store: CartStore = Depends(get_store),
):
    try:
        return {"removed": store.cleanup_expired(ttl_minutes)}
    except CartError as e:
        raise to_http(e)


@router.get("/{cart_id}", response_model=CartDetailOut)
def get_cart(cart_id: int, store: CartStore = Depends(get_store)):
    try:
        detail = store.get_cart_detail(cart_id)
    except CartError as e:
        raise to_http(e)
    detail["items"] = [CartItemOut.model_validate(i) for i in detail["items"]]
    return detail


@router.patch("/{cart_id}", response_model=CartOut)
def rename_cart(cart_id: int, payload: RenameCartIn, store: CartStore = Depends(get_store)):
    try:
        return store.rename(cart_id, payload.cart_name)
    except CartError as e:
        raise to_http(e)


@router.delete("/{cart_id}", status_code=204)
def cancel_cart(cart_id: int, store: CartStore = Depends(get_store)):
    try:
        store.cancel(cart_id)
    except CartError as e:
        raise to_http(e)
    return Response(status_code=204)


@router.get("/{cart_id}/items", response_model=list[CartItemOut])
def list_cart_items(cart_id: int, store: CartStore = Depends(get_store)):
    try:
        return store.list_items(cart_id)
    except CartError as e:
        raise to_http(e)


@router.post("/{cart_id}/items", response_model=CartItemOut, status_code=201)
def add_item(
    cart_id: int,
    payload: ItemIn,
    db: Session = Depends(get_db),
):
    store = CartStore(db)
    try:
        price = payload.price
        if price is None:
            # cena z katalogu wg typu zakupu
            price, _unit = CatalogService(db).resolve_price(payload.product_id, payload.purchasing_type)
        return store.add_item(
            cart_id=cart_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
            price=price,
            purchasing_type=payload.purchasing_type,
            scanned_barcode=payload.scanned_barcode,
            discount=payload.discount,
        )
    except CartError as e:
        raise to_http(e)


@router.put("/{cart_id}/items/{product_id}", response_model=AffectedOut)
def set_item_quantity(
    cart_id: int,
    product_id: int,
    payload: QuantityIn,
    store: CartStore = Depends(get_store),
):
    try:
        affected = store.set_item_quantity(cart_id, product_id, payload.purchasing_type, payload.quantity)
    except CartError as e:
        raise to_http(e)
    return {"affected": affected}


@router.delete("/{cart_id}/items/{product_id}", response_model=RemovedOut)
def remove_item(
    cart_id: int,
    product_id: int,
    purchasing_type: PurchasingType = Query(PurchasingType.SINGLE),
    store: CartStore = Depends(get_store),
):
    try:
        return {"removed": store.remove_item(cart_id, product_id, purchasing_type)}
    except CartError as e:
        raise to_http(e)


@router.post("/{cart_id}/park", response_model=CartOut)
def park_cart(cart_id: int, payload: ParkCartIn, store: CartStore = Depends(get_store)):
    try:
        return store.park(cart_id, payload.cart_name)
    except CartError as e:
        raise to_http(e)


@router.post("/{cart_id}/activate", response_model=CartOut)
def activate_cart(cart_id: int, store: CartStore = Depends(get_store)):
    try:
        return store.activate(cart_id)
    except CartError as e:
        raise to_http(e)


@router.post("/{cart_id}/checkout", response_model=CheckoutOut)
def checkout_cart(cart_id: int, payload: CheckoutIn, store: CartStore = Depends(get_store)):
    try:
        checkout = store.checkout(cart_id, payload.store_id, payload.storeman_id)
    except CartError as e:
        raise to_http(e)
    return {"cart_id": checkout.cart_id, "invoice_id": checkout.invoice_id}


@router.post("/{cart_id}/payment", status_code=204)
def confirm_payment(cart_id: int, store: CartStore = Depends(get_store)):
    try:
        store.confirm_payment(cart_id)
    except CartError as e:
        raise to_http(e)
    return Response(status_code=204)
