from .tenancy import Business
from .inventory import Product, StockMovement
from .sales import Sale, SaleItem
from .auth import User, UserCredential
from .fiscal import NFCe

__all__ = [
    'Business',
    'Product', 'StockMovement',
    'Sale', 'SaleItem',
    'User', 'UserCredential',
    'NFCe',
]
