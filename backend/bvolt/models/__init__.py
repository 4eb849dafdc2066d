from .auth import User, SessionToken, ROLES, ROLE_ADMIN, ROLE_MANAGER, ROLE_SELLER
from .catalog import Client, Product
from .sales import Sale, SaleLine, PAYMENT_METHODS, SALE_STATUSES
from .stock import Stock, StockMovement, MOVEMENT_TYPES

__all__ = [
    'User', 'SessionToken', 'ROLES', 'ROLE_ADMIN', 'ROLE_MANAGER', 'ROLE_SELLER',
    'Client', 'Product',
    'Sale', 'SaleLine', 'PAYMENT_METHODS', 'SALE_STATUSES',
    'Stock', 'StockMovement', 'MOVEMENT_TYPES',
]
