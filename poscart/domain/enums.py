# poscart/domain/enums.py
from enum import Enum


class CartStatus(str, Enum):
    ACTIVE = "active"
    PARKED = "parked"
    PENDING_CHECKOUT = "pending_checkout"
    # terminal, the row is deleted on reaching them
    PROCESSED = "processed"
    CANCELLED = "cancelled"


class PurchasingType(str, Enum):
    SINGLE = "single"
    BULK = "bulk"
