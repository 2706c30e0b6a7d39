from .users import User
from .orders import Order, Product
from .stores import Store, Carrier
from .settlements import Settlement, Transaction
from .notifications import Notification

__all__ = [
    'User',
    'Order', 'Product',
    'Store', 'Carrier',
    'Settlement', 'Transaction',
    'Notification',
]
