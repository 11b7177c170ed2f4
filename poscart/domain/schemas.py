# poscart/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List

from poscart.domain.enums import CartStatus, PurchasingType


class CreateCartIn(BaseModel):
    """Schema dla tworzenia koszyka."""

    cart_name: str = Field("", max_length=100, description="Etykieta koszyka")


class RenameCartIn(BaseModel):
    cart_name: str = Field(..., max_length=100, description="Nowa etykieta koszyka")


class ParkCartIn(BaseModel):
    cart_name: str = Field(..., max_length=100, description="Etykieta zaparkowanego koszyka")


class ItemIn(BaseModel):
    """
    Schema dla dodawania produktu do koszyka.
    Bez price cena jest brana z katalogu wg purchasing_type.
    """

    product_id: int = Field(..., gt=0, description="ID produktu (musi być > 0)")
    quantity: int = Field(..., ge=0, description="Ilość produktu (musi być >= 0)")
    purchasing_type: PurchasingType = PurchasingType.SINGLE
    scanned_barcode: str | None = Field(None, max_length=255)
    price: float | None = Field(None, ge=0)
    discount: float = Field(0.0, ge=0)


class QuantityIn(BaseModel):
    purchasing_type: PurchasingType = PurchasingType.SINGLE
    quantity: int = Field(..., ge=0, description="0 usuwa pozycję")


class CheckoutIn(BaseModel):
    store_id: str = Field(..., min_length=1, max_length=50)
    storeman_id: str = Field(..., min_length=1, max_length=50)


class CartItemOut(BaseModel):
    """Schema dla pozycji w koszyku (response)."""

    cart_id: int
    product_id: int
    scanned_barcode: str | None = None
    quantity: int
    price: float
    purchasing_type: PurchasingType
    discount: float

    model_config = ConfigDict(from_attributes=True)


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    cart_id: int
    cart_name: str
    status: CartStatus
    created_at: str

    model_config = ConfigDict(from_attributes=True)


class CartDetailOut(CartOut):
    items: List[CartItemOut]
    total: float


class CheckoutOut(BaseModel):
    cart_id: int
    invoice_id: str


class RemovedOut(BaseModel):
    removed: int


class ProductOut(BaseModel):
    product_id: int
    barcode: str | None = None
    item_name: str | None = None
    category: str | None = None
    unit: str | None = None
    bulk_unit: str | None = None
    bulk_code: str | None = None
    bulk_single_conversion: float | None = None
    retail_price: float | None = None
    bulk_price: float | None = None

    model_config = ConfigDict(from_attributes=True)


class AffectedOut(BaseModel):
    affected: int
