from .cart import Cart, CartItem, Notice, ProductSnapshot
from .client import ApiError, PDVClient
from .checkout import Checkout, STANDBY_TIMEOUT

__all__ = [
    "Cart",
    "CartItem",
    "Notice",
    "ProductSnapshot",
    "ApiError",
    "PDVClient",
    "Checkout",
    "STANDBY_TIMEOUT",
]
