"""
SQLAlchemy ORM Models Package.

- base: Base class and TimestampMixin
- table: DiningTable, TableSession, SessionCustomer
- cart: CartItem
- order: Order, OrderItem
"""

from .base import Base, TimestampMixin
from .table import DiningTable, TableSession, SessionCustomer
from .cart import CartItem
from .order import Order, OrderItem

__all__ = [
    "Base",
    "TimestampMixin",
    "DiningTable",
    "TableSession",
    "SessionCustomer",
    "CartItem",
    "Order",
    "OrderItem",
]
