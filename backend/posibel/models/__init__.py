from .base import EntityMixin, FixedDecimal
from .tenancy import Organization, Shop
from .auth import Role, User, SessionToken
from .catalog import ProductGroup, Product, StockLevel
from .sales import Sale, Orderline, OrderlineType, Transaction

__all__ = [
    'EntityMixin', 'FixedDecimal',
    'Organization', 'Shop',
    'Role', 'User', 'SessionToken',
    'ProductGroup', 'Product', 'StockLevel',
    'Sale', 'Orderline', 'OrderlineType', 'Transaction',
]
