from .auth import User, SessionToken
from .tenancy import Store
from .inventory import Category, Product
from .documents import Transaction, ProductCheck
from .security import SecurityEvent

__all__ = [
    'User', 'SessionToken',
    'Store',
    'Category', 'Product',
    'Transaction', 'ProductCheck',
    'SecurityEvent',
]
