#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from poscart.data.models.cart import CartModel
from poscart.data.models.cart_item import CartItemModel
from poscart.data.models.product import ProductModel
from poscart.data.models.invoice_sequence import InvoiceSequenceModel

__all__ = ["CartModel", "CartItemModel", "ProductModel", "InvoiceSequenceModel"]
