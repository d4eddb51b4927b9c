"""
Customer routers - /api/customer/*
Authenticated by the ?table=&session= pair and the session guard.
"""

from .session import router as session_router
from .cart import router as cart_router
from .orders import router as orders_router

__all__ = ["session_router", "cart_router", "orders_router"]
