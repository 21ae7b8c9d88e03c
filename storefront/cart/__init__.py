"""
Module 'cart': état du panier côté client, persistance locale et flux checkout.
"""

from .models import Product, Variant, CartItem, item_key
from .storage import CartStorage, MemoryStorage, JsonFileStorage
from .store import CartStore
from .checkout import CheckoutClient, CheckoutFailed, confirm_success

__all__ = [
    "Product",
    "Variant",
    "CartItem",
    "item_key",
    "CartStorage",
    "MemoryStorage",
    "JsonFileStorage",
    "CartStore",
    "CheckoutClient",
    "CheckoutFailed",
    "confirm_success",
]
